"""
Admin Schemas - notes, clinic permissions and approval payloads.
"""
from typing import Optional
from pydantic import ConfigDict, Field

from ..core.schemas import CamelModel


class AdminNoteCreate(CamelModel):
    patient_id: str = Field(..., min_length=1)
    note: str = Field(..., min_length=1)


class PermissionsUpdate(CamelModel):
    """
    Partial update of the clinic feature switches

    Keys follow the dashboard: ``enableReferrals``, ``enableInternationalPatients``,
    ``requireICD10`` and ``enableDoctorPatientChat``. Unknown keys are ignored.
    """
    model_config = ConfigDict(extra="ignore")

    enable_referrals: Optional[bool] = None
    enable_international_patients: Optional[bool] = None
    require_icd10: Optional[bool] = Field(None, alias="requireICD10")
    enable_doctor_patient_chat: Optional[bool] = None
