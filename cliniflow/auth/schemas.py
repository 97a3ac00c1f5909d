"""
Authentication Schemas - Pydantic models for registration and login payloads.

Login bodies keep their fields optional so the service can answer with the
specific ``<field>_required`` code instead of a generic validation error.
"""
from typing import Optional
from pydantic import EmailStr, Field, field_validator

from ..core.schemas import CamelModel, ORMModel, UtcDateTime
from ..clinics.models import AdminStatus
from ..doctors.models import DoctorStatus
from ..patients.models import PatientStatus, PatientType


class AdminRegistration(CamelModel):
    """
    Clinic + first admin registration

    Fields:
    - clinic_code: Unique clinic code (stored upper-case)
    - name: Clinic display name
    - email: Admin login email
    - password: Admin password
    - full_name: Admin display name (optional)
    """
    clinic_code: str = Field(..., min_length=2, max_length=32)
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: Optional[str] = None

    @field_validator("clinic_code")
    @classmethod
    def normalize_clinic_code(cls, value: str) -> str:
        return value.strip().upper()


class AdminLogin(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    clinic_code: Optional[str] = None


class DoctorRegistration(CamelModel):
    """
    Doctor application

    Includes additional professional information:
    - license_number: Professional license number
    - specialty: Dental specialty (optional)
    """
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1)
    license_number: str = Field(..., min_length=1)
    clinic_code: str = Field(..., min_length=1)
    phone: Optional[str] = None
    specialty: Optional[str] = None


class DoctorLogin(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class PatientRegistration(CamelModel):
    """Patient self-registration from the mobile app"""
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=3)
    clinic_code: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None


class PatientLogin(CamelModel):
    phone: Optional[str] = None
    clinic_code: Optional[str] = None


class AdminResponse(ORMModel):
    id: int
    email: str
    full_name: Optional[str] = None
    clinic_id: int
    status: AdminStatus


class DoctorResponse(ORMModel):
    id: int
    email: str
    full_name: str
    phone: Optional[str] = None
    license_number: str
    specialty: Optional[str] = None
    bio: Optional[str] = None
    profile_photo_url: Optional[str] = None
    diploma_file_url: Optional[str] = None
    clinic_id: int
    status: DoctorStatus
    approved_at: Optional[UtcDateTime] = None
    created_at: Optional[UtcDateTime] = None


class PatientResponse(ORMModel):
    patient_id: str
    first_name: str
    last_name: Optional[str] = None
    full_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    status: PatientStatus
    patient_type: PatientType
    created_at: Optional[UtcDateTime] = None
