"""
ICD-10 Service - catalogue search, patient diagnoses, coding requirements,
usage statistics and procedure suggestions.
"""
from typing import Any, Dict, List, Optional
from datetime import date
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
import logging

from ..auth.dependencies import Role, TokenPrincipal
from ..core.fdi import is_valid_fdi_tooth
from ..core.time_utils import isoformat
from ..exceptions import BadRequestException, OperationFailedException
from ..admin.models import AdminPermissions
from ..doctors.service import get_clinic_doctor
from ..patients.service import get_accessible_patient
from .models import Icd10Code, PatientIcd10, Icd10Requirement, DiagnosisProcedureSuggestion, SUPPORTED_LANGUAGES
from .schemas import PatientIcd10Create, RequirementUpdate

# Set up logging
logger = logging.getLogger(__name__)


def normalize_language(language: Optional[str]) -> str:
    language = (language or "tr").lower()
    return language if language in SUPPORTED_LANGUAGES else "tr"


def normalize_code(code: Optional[str]) -> str:
    """``" k021 "`` -> ``"K02.1"``; codes already dotted are only trimmed and upper-cased."""
    code = (code or "").strip().upper()
    if len(code) > 3 and "." not in code:
        code = f"{code[:3]}.{code[3:]}"
    return code


def serialize_code(code: Icd10Code, language: str) -> Dict[str, Any]:
    return {
        "code": code.code,
        "category": code.category,
        "title": code.title(language),
        "title_tr": code.title_tr,
        "title_en": code.title_en,
        "title_ka": code.title_ka,
        "title_ru": code.title_ru,
        "is_dental": code.is_dental,
    }


def list_codes(
    db: Session,
    category: Optional[str] = None,
    language: str = "tr",
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Search the catalogue, ordered by code.

    Args:
        db: Database session
        category: Exact category filter such as ``K00-K14``
        language: Title language (tr, en, ka, ru)
        search: Case-insensitive match on the code or the localized title
    """
    language = normalize_language(language)
    query = db.query(Icd10Code)

    if category:
        query = query.filter(Icd10Code.category == category)

    if search:
        pattern = f"%{search.strip().lower()}%"
        title_column = getattr(Icd10Code, f"title_{language}")
        query = query.filter(or_(
            func.lower(Icd10Code.code).like(pattern),
            func.lower(title_column).like(pattern),
        ))

    return [serialize_code(code, language) for code in query.order_by(Icd10Code.code).all()]


def get_code(db: Session, code: str) -> Optional[Icd10Code]:
    return db.query(Icd10Code).filter(Icd10Code.code == normalize_code(code)).first()


def serialize_patient_diagnosis(diagnosis: PatientIcd10, language: str = "tr") -> Dict[str, Any]:
    return {
        "id": diagnosis.id,
        "icd10_code": diagnosis.icd10_code,
        "title": diagnosis.code.title(language) if diagnosis.code else diagnosis.icd10_code,
        "category": diagnosis.code.category if diagnosis.code else None,
        "tooth_number": diagnosis.tooth_number,
        "notes": diagnosis.notes,
        "doctor_id": diagnosis.doctor_id,
        "admin_id": diagnosis.admin_id,
        "diagnosis_date": diagnosis.diagnosis_date.isoformat(),
        "created_at": isoformat(diagnosis.created_at),
    }


def list_patient_diagnoses(db: Session, principal: TokenPrincipal, patient_id: str, language: str = "tr") -> List[Dict[str, Any]]:
    patient = get_accessible_patient(db, principal, patient_id)
    diagnoses = (
        db.query(PatientIcd10)
        .filter(PatientIcd10.patient_id == patient.id)
        .order_by(PatientIcd10.created_at.desc(), PatientIcd10.id.desc())
        .all()
    )
    language = normalize_language(language)
    return [serialize_patient_diagnosis(diagnosis, language) for diagnosis in diagnoses]


def add_patient_diagnosis(db: Session, principal: TokenPrincipal, patient_id: str, data: PatientIcd10Create) -> PatientIcd10:
    """
    Attach an ICD-10 diagnosis to a patient of the caller's clinic.

    The author is recorded from the token: ``doctor_id`` for doctors and
    ``admin_id`` for admins.

    Raises:
        BadRequestException: ``invalid_icd10_code`` or ``invalid_tooth_number``
    """
    patient = get_accessible_patient(db, principal, patient_id)

    code = get_code(db, data.icd10_code)
    if not code:
        raise BadRequestException("invalid_icd10_code")
    if data.tooth_number and not is_valid_fdi_tooth(data.tooth_number):
        raise BadRequestException("invalid_tooth_number")

    diagnosis = PatientIcd10(
        patient_id=patient.id,
        clinic_id=patient.clinic_id,
        icd10_code=code.code,
        tooth_number=data.tooth_number or None,
        notes=data.notes,
        doctor_id=principal.doctor_id if principal.role == Role.DOCTOR else None,
        admin_id=principal.admin_id if principal.role == Role.ADMIN else None,
        diagnosis_date=data.diagnosis_date or date.today(),
    )
    db.add(diagnosis)

    try:
        db.commit()
        db.refresh(diagnosis)
        logger.info(f"ICD-10 {code.code} added to patient {patient_id} by {principal.actor}")
        return diagnosis
    except Exception as e:
        db.rollback()
        logger.error(f"Error adding ICD-10 diagnosis for patient {patient_id}: {str(e)}")
        raise OperationFailedException("add_failed")


def list_requirements(db: Session, clinic_id: int) -> List[Icd10Requirement]:
    return (
        db.query(Icd10Requirement)
        .filter(Icd10Requirement.clinic_id == clinic_id)
        .order_by(Icd10Requirement.doctor_id.is_(None).desc(), Icd10Requirement.doctor_id)
        .all()
    )


def set_requirement(db: Session, clinic_id: int, data: RequirementUpdate) -> Icd10Requirement:
    """
    Upsert the requirement for the clinic, or for one doctor of the clinic.
    """
    if data.doctor_id is not None:
        get_clinic_doctor(db, clinic_id, data.doctor_id)

    requirement = db.query(Icd10Requirement).filter(
        Icd10Requirement.clinic_id == clinic_id,
        Icd10Requirement.doctor_id.is_(None) if data.doctor_id is None else Icd10Requirement.doctor_id == data.doctor_id,
    ).first()
    if not requirement:
        requirement = Icd10Requirement(clinic_id=clinic_id, doctor_id=data.doctor_id)
        db.add(requirement)
    requirement.require_icd10 = data.require_icd10

    try:
        db.commit()
        db.refresh(requirement)
        logger.info(f"ICD-10 requirement for clinic {clinic_id} doctor {data.doctor_id} set to {data.require_icd10}")
        return requirement
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating ICD-10 requirement for clinic {clinic_id}: {str(e)}")
        raise OperationFailedException("update_failed")


def is_icd10_required(db: Session, clinic_id: int, doctor_id: Optional[int] = None) -> bool:
    """
    Whether treatment items must link a diagnosis code.

    A doctor-specific row wins over the clinic-wide row, which wins over the
    clinic permission flag.
    """
    if doctor_id is not None:
        row = db.query(Icd10Requirement).filter(
            Icd10Requirement.clinic_id == clinic_id,
            Icd10Requirement.doctor_id == doctor_id,
        ).first()
        if row:
            return row.require_icd10

    row = db.query(Icd10Requirement).filter(
        Icd10Requirement.clinic_id == clinic_id,
        Icd10Requirement.doctor_id.is_(None),
    ).first()
    if row:
        return row.require_icd10

    permissions = db.query(AdminPermissions).filter(AdminPermissions.clinic_id == clinic_id).first()
    return bool(permissions and permissions.require_icd10)


def usage_summary(db: Session, clinic_id: int, language: str = "tr") -> Dict[str, Any]:
    """
    ICD-10 usage statistics of a clinic.

    Returns:
        Dict with ``totalDiagnoses``, ``uniquePatients``, ``topCodes`` (top 5 by
        count), ``lastEntryDate`` and ``hasICD10Entries``
    """
    language = normalize_language(language)
    base = db.query(PatientIcd10).filter(PatientIcd10.clinic_id == clinic_id)

    total = base.count()
    unique_patients = (
        db.query(func.count(func.distinct(PatientIcd10.patient_id)))
        .filter(PatientIcd10.clinic_id == clinic_id)
        .scalar()
    )
    last_entry = (
        db.query(func.max(PatientIcd10.created_at))
        .filter(PatientIcd10.clinic_id == clinic_id)
        .scalar()
    )

    count_column = func.count(PatientIcd10.id).label("count")
    top_rows = (
        db.query(PatientIcd10.icd10_code, count_column)
        .filter(PatientIcd10.clinic_id == clinic_id)
        .group_by(PatientIcd10.icd10_code)
        .order_by(count_column.desc(), PatientIcd10.icd10_code)
        .limit(5)
        .all()
    )
    codes = {
        code.code: code
        for code in db.query(Icd10Code).filter(Icd10Code.code.in_([row[0] for row in top_rows])).all()
    }
    top_codes = [
        {
            "code": code,
            "count": count,
            "title": codes[code].title(language) if code in codes else code,
        }
        for code, count in top_rows
    ]

    return {
        "totalDiagnoses": total,
        "uniquePatients": unique_patients or 0,
        "topCodes": top_codes,
        "lastEntryDate": isoformat(last_entry),
        "hasICD10Entries": total > 0,
    }


def suggested_procedures(db: Session, code: str) -> List[str]:
    """Procedure names suggested for a diagnosis code, highest priority first."""
    normalized = normalize_code(code)
    if not normalized:
        return []
    rows = (
        db.query(DiagnosisProcedureSuggestion)
        .filter(DiagnosisProcedureSuggestion.icd10_code == normalized)
        .order_by(DiagnosisProcedureSuggestion.priority, DiagnosisProcedureSuggestion.id)
        .all()
    )
    return [row.procedure_name for row in rows]
