from typing import Optional
from pydantic import Field, field_validator
from datetime import date

from ..core.schemas import CamelModel, ORMModel, UtcDateTime


class PatientIcd10Create(CamelModel):
    """
    ICD-10 diagnosis added to a patient chart

    Fields:
    - icd10_code: Code from the catalogue
    - tooth_number: FDI tooth number (optional)
    - notes: Free text (optional)
    - diagnosis_date: Defaults to today
    """
    icd10_code: str = Field(..., min_length=1)
    tooth_number: Optional[str] = None
    notes: Optional[str] = None
    diagnosis_date: Optional[date] = None

    @field_validator("icd10_code")
    @classmethod
    def strip_code(cls, value: str) -> str:
        return value.strip().upper()


class RequirementUpdate(CamelModel):
    """Clinic-wide requirement when ``doctor_id`` is omitted"""
    require_icd10: bool
    doctor_id: Optional[int] = None


class RequirementResponse(ORMModel):
    id: int
    clinic_id: int
    doctor_id: Optional[int] = None
    require_icd10: bool
    updated_at: Optional[UtcDateTime] = None
