"""
Treatment Group Models - a patient's course of care and the doctors attached to it.

The group status is not edited directly: it is recomputed from the statuses of
the treatment items planned under the group (see ``service.derive_group_status``).
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Enum, UniqueConstraint, func
from sqlalchemy.orm import relationship
import enum
from ..database import Base
from ..core.time_utils import utc_now


class GroupStatus(str, enum.Enum):
    """Enum for derived treatment group status"""
    NEW = "NEW"
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TreatmentGroup(Base):
    """
    Treatment Group Model

    Fields:
    - id: Primary key for group
    - patient_id: Foreign key to Patient model
    - clinic_id: Foreign key to Clinic model
    - created_by_admin_id: Admin who opened the group
    - group_name: Display name
    - description: Free text
    - calculated_status: Status derived from child treatment items
    """
    __tablename__ = "treatment_groups"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by_admin_id = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    group_name = Column(String, nullable=False)
    description = Column(Text, default="", nullable=False)
    calculated_status = Column(Enum(GroupStatus, name="group_status"), default=GroupStatus.NEW, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    patient = relationship("Patient")
    doctors = relationship(
        "TreatmentGroupDoctor",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="TreatmentGroupDoctor.assigned_at",
    )
    plans = relationship("TreatmentPlan", back_populates="group")

    def __repr__(self):
        return f"<TreatmentGroup(id={self.id}, patient_id={self.patient_id}, status='{self.calculated_status}')>"


class TreatmentGroupDoctor(Base):
    """
    Join between a treatment group and a doctor

    At most one row per group carries ``is_primary``.
    """
    __tablename__ = "treatment_group_doctors"
    __table_args__ = (UniqueConstraint("treatment_group_id", "doctor_id", name="uq_group_doctor"),)

    id = Column(Integer, primary_key=True, index=True)
    treatment_group_id = Column(Integer, ForeignKey("treatment_groups.id", ondelete="CASCADE"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    is_primary = Column(Boolean, default=False, nullable=False)
    assigned_by = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    assigned_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    group = relationship("TreatmentGroup", back_populates="doctors")
    doctor = relationship("Doctor", back_populates="group_assignments")
