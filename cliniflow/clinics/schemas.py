from typing import Optional
from pydantic import EmailStr

from ..core.schemas import CamelModel, ORMModel, UtcDateTime
from .models import ClinicStatus


class ClinicUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None


class ClinicPublic(ORMModel):
    """Profile shown to anyone holding the clinic code"""
    clinic_code: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    status: ClinicStatus


class ClinicResponse(ClinicPublic):
    id: int
    email: Optional[str] = None
    plan: str
    created_at: Optional[UtcDateTime] = None
    updated_at: Optional[UtcDateTime] = None
