"""
Doctor Schemas - Pydantic models for doctor profile and approval payloads.
"""
from typing import Optional
from pydantic import Field

from ..core.schemas import CamelModel, ORMModel


class DoctorProfileUpdate(CamelModel):
    """
    Doctor Profile Update Schema - Used when a doctor edits its own profile

    All fields are optional; only the fields sent are changed.
    """
    full_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    specialty: Optional[str] = None
    bio: Optional[str] = None


class DoctorApproval(CamelModel):
    """
    Doctor approval decision

    Fields:
    - doctor_id: Application to decide on
    - approve: False rejects the application
    """
    doctor_id: int
    approve: bool = True


class DoctorPatient(ORMModel):
    patient_id: str
    full_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
