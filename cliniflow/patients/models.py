"""
Patient Model - Stores patient information and invite links.

Patients are either registered by clinic staff ("manual") or connected to the
mobile app ("connected"). Manual patients can be invited to connect.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Date, Text, Enum, func
from sqlalchemy.orm import relationship
import enum
from ..database import Base


class PatientStatus(str, enum.Enum):
    """Enum for patient account status"""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class PatientType(str, enum.Enum):
    """Enum for how the patient record was created"""
    MANUAL = "manual"
    CONNECTED = "connected"


class Patient(Base):
    """
    Patient Model - Stores patient information

    Fields:
    - id: Primary key for patient
    - patient_id: Public identifier used in URLs and tokens (e.g. ``p_3f9a1c2b7d4e``)
    - clinic_id: Foreign key to Clinic model
    - first_name, last_name: Patient name
    - phone, email: Contact details (phone is the login credential)
    - date_of_birth, address, notes: Optional profile fields
    - status: PENDING until approved by the clinic
    - patient_type: manual or connected
    - app_user_id: External app account once connected
    - created_at / updated_at / connected_at: Timestamps
    """
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(String, unique=True, index=True, nullable=False)
    clinic_id = Column(Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)
    phone = Column(String, nullable=True, index=True)
    email = Column(String, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    address = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(Enum(PatientStatus, name="patient_status"), default=PatientStatus.PENDING, nullable=False)
    patient_type = Column(Enum(PatientType, name="patient_type"), default=PatientType.MANUAL, nullable=False)
    app_user_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    connected_at = Column(DateTime(timezone=True), nullable=True)

    clinic = relationship("Clinic")
    invites = relationship("InviteToken", back_populates="patient", cascade="all, delete-orphan")

    def __repr__(self):
        """String representation of the Patient model"""
        return f"<Patient(id={self.id}, patient_id='{self.patient_id}')>"

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class InviteToken(Base):
    """
    Invite Token Model - One-time link that converts a manual patient to connected

    Only the SHA-256 of the token is stored.
    """
    __tablename__ = "invite_tokens"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)
    token_hash = Column(String, unique=True, index=True, nullable=False)
    created_by_admin_id = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    patient = relationship("Patient", back_populates="invites")
