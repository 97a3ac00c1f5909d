from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, Text, func
from sqlalchemy.orm import relationship

from ..database import Base
from ..core.time_utils import utc_now


class AdminNote(Base):
    __tablename__ = "admin_notes"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    admin_id = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    note = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    patient = relationship("Patient")

    def __repr__(self):
        return f"<AdminNote(id={self.id}, patient_id={self.patient_id})>"


class AdminPermissions(Base):
    """Feature switches of a clinic; one row per clinic, created on first update."""
    __tablename__ = "admin_permissions"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id", ondelete="CASCADE"), unique=True, nullable=False)
    enable_referrals = Column(Boolean, default=True, nullable=False)
    enable_international_patients = Column(Boolean, default=False, nullable=False)
    require_icd10 = Column(Boolean, default=False, nullable=False)
    enable_doctor_patient_chat = Column(Boolean, default=True, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=func.now())
