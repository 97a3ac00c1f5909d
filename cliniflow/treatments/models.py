"""
Clinical record models: Encounter -> Diagnosis -> TreatmentPlan -> TreatmentItem.

An encounter is a visit opened by a doctor, its diagnoses are ICD-10 coded,
and a treatment plan lists per-tooth procedures (FDI numbering).
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Enum, func
from sqlalchemy.orm import relationship
import enum
from ..database import Base
from ..core.time_utils import utc_now


class EncounterStatus(str, enum.Enum):
    """Enum for encounter status"""
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EncounterType(str, enum.Enum):
    INITIAL = "initial"
    FOLLOWUP = "followup"
    EMERGENCY = "emergency"


class TreatmentStatus(str, enum.Enum):
    """Lifecycle shared by treatment plans and their items"""
    DRAFT = "draft"
    PROPOSED = "proposed"
    APPROVED = "approved"
    PLANNED = "planned"
    DONE = "done"
    CANCELLED = "cancelled"


class Encounter(Base):
    """
    Encounter Model - a clinical visit

    Fields:
    - id: Primary key
    - patient_id: Foreign key to Patient model
    - clinic_id: Foreign key to Clinic model
    - treatment_group_id: Optional group the visit belongs to
    - created_by_doctor_id: Doctor who opened the encounter
    - encounter_type: initial / followup / emergency
    - status: draft / active / completed / cancelled
    - notes: Free text
    """
    __tablename__ = "encounters"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False, index=True)
    treatment_group_id = Column(Integer, ForeignKey("treatment_groups.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by_doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True)
    encounter_type = Column(Enum(EncounterType, name="encounter_type"), default=EncounterType.INITIAL, nullable=False)
    status = Column(Enum(EncounterStatus, name="encounter_status"), default=EncounterStatus.DRAFT, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    patient = relationship("Patient")
    diagnoses = relationship("Diagnosis", back_populates="encounter", cascade="all, delete-orphan")
    plans = relationship("TreatmentPlan", back_populates="encounter", cascade="all, delete-orphan")


class Diagnosis(Base):
    """
    Diagnosis Model - an ICD-10 coded finding within an encounter

    At most one diagnosis per encounter is primary.
    """
    __tablename__ = "encounter_diagnoses"

    id = Column(Integer, primary_key=True, index=True)
    encounter_id = Column(Integer, ForeignKey("encounters.id", ondelete="CASCADE"), nullable=False, index=True)
    icd10_code = Column(String, ForeignKey("icd10_codes.code"), nullable=False, index=True)
    icd10_description = Column(String, nullable=True)
    tooth_number = Column(String, nullable=True)
    is_primary = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, nullable=True)
    created_by_doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    encounter = relationship("Encounter", back_populates="diagnoses")


class TreatmentPlan(Base):
    """
    Treatment Plan Model - procedures proposed for an encounter

    Fields:
    - encounter_id: Owning encounter
    - treatment_group_id: Group the plan counts towards (inherited from the encounter)
    - created_by_doctor_id / assigned_doctor_id: Author and executing doctor
    - status: Shared treatment lifecycle
    """
    __tablename__ = "treatment_plans"

    id = Column(Integer, primary_key=True, index=True)
    encounter_id = Column(Integer, ForeignKey("encounters.id", ondelete="CASCADE"), nullable=False, index=True)
    treatment_group_id = Column(Integer, ForeignKey("treatment_groups.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by_doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True)
    assigned_doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True)
    status = Column(Enum(TreatmentStatus, name="treatment_status"), default=TreatmentStatus.DRAFT, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    encounter = relationship("Encounter", back_populates="plans")
    group = relationship("TreatmentGroup", back_populates="plans")
    items = relationship(
        "TreatmentItem",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by=lambda: [TreatmentItem.tooth_fdi_code, TreatmentItem.created_at],
    )


class TreatmentItem(Base):
    """
    Treatment Item Model - one procedure on one tooth

    Fields:
    - treatment_plan_id: Owning plan
    - tooth_fdi_code: Two-digit FDI tooth number
    - procedure_code / procedure_name: Procedure identification
    - linked_icd10_code: Diagnosis the procedure addresses
    - status: Shared treatment lifecycle
    """
    __tablename__ = "treatment_items"

    id = Column(Integer, primary_key=True, index=True)
    treatment_plan_id = Column(Integer, ForeignKey("treatment_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    tooth_fdi_code = Column(String(2), nullable=False)
    procedure_code = Column(String, nullable=True)
    procedure_name = Column(String, nullable=False)
    linked_icd10_code = Column(String, nullable=True)
    status = Column(Enum(TreatmentStatus, name="treatment_status"), default=TreatmentStatus.DRAFT, nullable=False)
    created_by_doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    plan = relationship("TreatmentPlan", back_populates="items")
