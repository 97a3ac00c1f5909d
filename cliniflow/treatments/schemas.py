"""
Treatment Schemas - Pydantic models for encounters, diagnoses, plans and items.
"""
from typing import List, Optional
from pydantic import Field, field_validator

from ..core.schemas import CamelModel, ORMModel, UtcDateTime
from .models import EncounterStatus, EncounterType, TreatmentStatus


class EncounterCreate(CamelModel):
    """
    Encounter creation

    Fields:
    - patient_id: Public patient ID
    - treatment_group_id: Group to open the visit in; defaults to the patient's
      latest group the doctor is assigned to
    - encounter_type: initial / followup / emergency
    - notes: Free text
    """
    patient_id: str = Field(..., min_length=1)
    treatment_group_id: Optional[int] = None
    encounter_type: EncounterType = EncounterType.INITIAL
    notes: Optional[str] = None


class EncounterStatusUpdate(CamelModel):
    status: EncounterStatus


class DiagnosisCreate(CamelModel):
    icd10_code: str = Field(..., min_length=1)
    tooth_number: Optional[str] = None
    is_primary: bool = False
    notes: Optional[str] = None

    @field_validator("icd10_code")
    @classmethod
    def upper_case_code(cls, value: str) -> str:
        return value.strip().upper()


class TreatmentPlanCreate(CamelModel):
    assigned_doctor_id: Optional[int] = None
    status: TreatmentStatus = TreatmentStatus.DRAFT


class TreatmentItemCreate(CamelModel):
    """
    Treatment item creation

    Fields:
    - tooth_fdi_code: Two-digit FDI tooth number
    - procedure_name: Procedure label
    - procedure_code: Procedure code (optional)
    - linked_icd10_code: Diagnosis the procedure addresses (required when the
      clinic requires ICD-10 coding)
    - status: Initial status
    """
    tooth_fdi_code: str = Field(..., min_length=1)
    procedure_name: str = Field(..., min_length=1)
    procedure_code: Optional[str] = None
    linked_icd10_code: Optional[str] = None
    status: TreatmentStatus = TreatmentStatus.PLANNED

    @field_validator("tooth_fdi_code")
    @classmethod
    def strip_tooth(cls, value: str) -> str:
        return value.strip()


class StatusUpdate(CamelModel):
    """Status change for plans and items"""
    status: TreatmentStatus


class EncounterResponse(ORMModel):
    id: int
    clinic_id: int
    treatment_group_id: Optional[int] = None
    created_by_doctor_id: Optional[int] = None
    encounter_type: EncounterType
    status: EncounterStatus
    notes: Optional[str] = None
    created_at: UtcDateTime
    updated_at: Optional[UtcDateTime] = None


class DiagnosisResponse(ORMModel):
    id: int
    encounter_id: int
    icd10_code: str
    icd10_description: Optional[str] = None
    tooth_number: Optional[str] = None
    is_primary: bool
    notes: Optional[str] = None
    created_by_doctor_id: Optional[int] = None
    created_at: UtcDateTime


class TreatmentItemResponse(ORMModel):
    id: int
    treatment_plan_id: int
    tooth_fdi_code: str
    procedure_code: Optional[str] = None
    procedure_name: str
    linked_icd10_code: Optional[str] = None
    status: TreatmentStatus
    created_by_doctor_id: Optional[int] = None
    created_at: UtcDateTime
    updated_at: Optional[UtcDateTime] = None


class TreatmentPlanResponse(ORMModel):
    id: int
    encounter_id: int
    treatment_group_id: Optional[int] = None
    created_by_doctor_id: Optional[int] = None
    assigned_doctor_id: Optional[int] = None
    status: TreatmentStatus
    created_at: UtcDateTime
    updated_at: Optional[UtcDateTime] = None
    items: List[TreatmentItemResponse] = []
