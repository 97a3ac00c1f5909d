"""
Doctor Model - Stores doctor accounts and their professional profile.

A doctor registers with an application (status PENDING) and can log in once a
clinic admin approves it.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Enum, func
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum
from ..database import Base


class DoctorStatus(str, enum.Enum):
    """Enum for doctor account status"""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"
    INACTIVE = "INACTIVE"


class Doctor(Base):
    """
    Doctor Model - Stores doctor-specific information

    Fields:
    - id: Primary key for doctor
    - clinic_id: Foreign key to Clinic model
    - email: Login email (unique)
    - password_hash: bcrypt hash
    - full_name: Doctor's name
    - phone: Contact number
    - license_number: Professional license number
    - specialty: Dental specialty
    - bio: Professional biography
    - profile_photo_url: Uploaded photo
    - diploma_file_url: Uploaded diploma document
    - status: Application/account status
    - approved_at: When an admin approved the application
    """
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    license_number = Column(String, nullable=False)
    specialty = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    profile_photo_url = Column(String, nullable=True)
    diploma_file_url = Column(String, nullable=True)
    status = Column(Enum(DoctorStatus, name="doctor_status"), default=DoctorStatus.PENDING, nullable=False)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    clinic = relationship("Clinic")
    group_assignments = relationship("TreatmentGroupDoctor", back_populates="doctor", cascade="all, delete-orphan")

    def __repr__(self):
        """String representation of the Doctor model"""
        return f"<Doctor(id={self.id}, email='{self.email}', status='{self.status}')>"

    @property
    def is_active(self) -> bool:
        return self.status == DoctorStatus.ACTIVE

    def approve(self) -> None:
        """Mark the application approved"""
        self.status = DoctorStatus.ACTIVE
        self.approved_at = datetime.now(timezone.utc)
