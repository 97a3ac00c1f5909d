"""
Clinic and Admin Models - the tenant record and the staff accounts that manage it.

Every other table is scoped to a clinic through ``clinic_id``.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
import enum
from ..database import Base


class ClinicStatus(str, enum.Enum):
    """Enum for clinic status"""
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class AdminStatus(str, enum.Enum):
    """Enum for admin account status"""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Clinic(Base):
    """
    Clinic Model - Stores tenant information

    Fields:
    - id: Primary key for clinic
    - clinic_code: Unique upper-case code used at login
    - name: Display name
    - email: Contact email
    - address, phone, website, logo_url: Public profile fields
    - plan: Subscription plan (FREE / PRO)
    - status: ACTIVE or SUSPENDED
    """
    __tablename__ = "clinics"

    id = Column(Integer, primary_key=True, index=True)
    clinic_code = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    website = Column(String, nullable=True)
    logo_url = Column(String, nullable=True)
    plan = Column(String, default="FREE", nullable=False)
    status = Column(Enum(ClinicStatus, name="clinic_status"), default=ClinicStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    admins = relationship("Admin", back_populates="clinic", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Clinic(id={self.id}, clinic_code='{self.clinic_code}')>"

    @property
    def is_suspended(self) -> bool:
        return self.status == ClinicStatus.SUSPENDED


class Admin(Base):
    """
    Admin Model - Stores clinic administrator accounts

    Fields:
    - id: Primary key for admin
    - clinic_id: Foreign key to Clinic model
    - email: Login email (unique per clinic)
    - password_hash: bcrypt hash
    - full_name: Display name
    - status: ACTIVE or INACTIVE
    """
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=True)
    status = Column(Enum(AdminStatus, name="admin_status"), default=AdminStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    clinic = relationship("Clinic", back_populates="admins")

    def __repr__(self):
        return f"<Admin(id={self.id}, clinic_id={self.clinic_id}, email='{self.email}')>"
