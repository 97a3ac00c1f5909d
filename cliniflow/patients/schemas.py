"""
Patient Schemas - Pydantic models for patient management and invites.
"""
from typing import Optional
from pydantic import EmailStr, Field
from datetime import date

from ..core.schemas import CamelModel, ORMModel, UtcDateTime
from .models import PatientStatus, PatientType


class ManualPatientCreate(CamelModel):
    """
    Patient registered by clinic staff

    Fields:
    - first_name / last_name: Required
    - phone, email, date_of_birth, address, notes: Optional profile fields
    """
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class InviteCreate(CamelModel):
    expires_in_hours: Optional[int] = Field(None, ge=1, le=24 * 30)


class InviteRedeem(CamelModel):
    """Optional data sent by the app when a patient accepts an invite"""
    app_user_id: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class PatientApproval(CamelModel):
    patient_id: str = Field(..., min_length=1)


class PatientDetail(ORMModel):
    patient_id: str
    first_name: str
    last_name: Optional[str] = None
    full_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    status: PatientStatus
    patient_type: PatientType
    created_at: Optional[UtcDateTime] = None
    connected_at: Optional[UtcDateTime] = None


class PatientListItem(ORMModel):
    patient_id: str
    full_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    status: PatientStatus
    patient_type: PatientType
    created_at: Optional[UtcDateTime] = None
