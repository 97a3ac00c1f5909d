"""
ICD-10 Models - the code catalogue, per-patient coded diagnoses, clinic
requirements, and diagnosis-to-procedure suggestions.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, ForeignKey, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ..database import Base
from ..core.time_utils import utc_now


SUPPORTED_LANGUAGES = ("tr", "en", "ka", "ru")


class Icd10Code(Base):
    """
    ICD-10 catalogue entry with localized titles

    Fields:
    - code: ICD-10 code, e.g. ``K02.1``
    - category: Chapter/block grouping, e.g. ``K00-K14``
    - title_tr / title_en / title_ka / title_ru: Localized titles
    - is_dental: Whether the code belongs to the dental block
    """
    __tablename__ = "icd10_codes"

    code = Column(String, primary_key=True)
    category = Column(String, nullable=True, index=True)
    title_tr = Column(String, nullable=True)
    title_en = Column(String, nullable=True)
    title_ka = Column(String, nullable=True)
    title_ru = Column(String, nullable=True)
    is_dental = Column(Boolean, default=False, nullable=False)

    def title(self, language: str) -> str:
        """Localized title, falling back to English then to the code itself."""
        return getattr(self, f"title_{language}", None) or self.title_en or self.code


class PatientIcd10(Base):
    """
    A coded diagnosis attached directly to a patient chart
    """
    __tablename__ = "patient_icd10"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False, index=True)
    icd10_code = Column(String, ForeignKey("icd10_codes.code"), nullable=False, index=True)
    tooth_number = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True)
    admin_id = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    diagnosis_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    code = relationship("Icd10Code")
    patient = relationship("Patient")


class Icd10Requirement(Base):
    """
    Whether ICD-10 coding is mandatory, for a whole clinic (``doctor_id`` NULL)
    or for one doctor of the clinic
    """
    __tablename__ = "icd10_requirements"
    __table_args__ = (UniqueConstraint("clinic_id", "doctor_id", name="uq_icd10_requirement_scope"),)

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=True)
    require_icd10 = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=func.now())


class DiagnosisProcedureSuggestion(Base):
    """
    Procedures commonly planned for a diagnosis, lowest priority first
    """
    __tablename__ = "diagnosis_procedure_suggestions"

    id = Column(Integer, primary_key=True, index=True)
    icd10_code = Column(String, index=True, nullable=False)
    procedure_name = Column(String, nullable=False)
    priority = Column(Integer, default=100, nullable=False)
