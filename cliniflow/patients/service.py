"""
Patient Service - Business logic for patient records, approval and invites.

This module provides service functions for clinic patient lists, manual
patient registration, invite links that connect a manual record to the
patient app, and patient-scoped access checks shared by other modules.
"""
from typing import Any, Dict, List, Optional, Tuple
from datetime import timedelta
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
import logging

from ..config import settings
from ..core.pagination import PageParams, paginate
from ..core.security import generate_invite_token, generate_public_id, hash_token, create_patient_token
from ..core.time_utils import utc_now, ensure_utc
from ..exceptions import BadRequestException, ForbiddenException, NotFoundException, OperationFailedException
from ..auth.dependencies import Role, TokenPrincipal
from ..clinics.service import get_clinic
from .models import Patient, PatientStatus, PatientType, InviteToken
from .schemas import ManualPatientCreate, InviteRedeem

# Set up logging
logger = logging.getLogger(__name__)


def get_clinic_patient(db: Session, clinic_id: int, patient_id: str) -> Patient:
    """
    Get a patient of the clinic by public ID.

    Raises:
        NotFoundException: ``patient_not_found`` (also for patients of another clinic)
    """
    patient = db.query(Patient).filter(
        Patient.patient_id == patient_id,
        Patient.clinic_id == clinic_id,
    ).first()
    if not patient:
        raise NotFoundException("patient_not_found")
    return patient


def get_accessible_patient(db: Session, principal: TokenPrincipal, patient_id: str) -> Patient:
    """
    Resolve a patient for the caller.

    Staff see patients of their own clinic; a patient token only reaches its
    own record (``patient_id_mismatch`` otherwise).
    """
    if principal.role == Role.PATIENT and principal.patient_id != patient_id:
        raise ForbiddenException("patient_id_mismatch")
    return get_clinic_patient(db, principal.clinic_id, patient_id)


def list_patients(
    db: Session,
    clinic_id: int,
    page_params: PageParams,
    patient_type: str = "all",
    search: Optional[str] = None,
) -> Tuple[List[Patient], Dict[str, Any]]:
    """
    List clinic patients, newest first.

    Args:
        db: Database session
        clinic_id: Admin's clinic
        page_params: Page and limit
        patient_type: ``manual``, ``connected`` or ``all``
        search: Case-insensitive match on name, phone, email or public ID
    """
    query = db.query(Patient).filter(Patient.clinic_id == clinic_id)

    if patient_type in (PatientType.MANUAL.value, PatientType.CONNECTED.value):
        query = query.filter(Patient.patient_type == PatientType(patient_type))

    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            func.lower(Patient.first_name).like(pattern),
            func.lower(Patient.last_name).like(pattern),
            func.lower(Patient.email).like(pattern),
            Patient.phone.like(pattern),
            Patient.patient_id.like(pattern),
        ))

    return paginate(query.order_by(Patient.created_at.desc(), Patient.id.desc()), page_params)


def create_manual_patient(db: Session, clinic_id: int, data: ManualPatientCreate) -> Patient:
    patient = Patient(
        patient_id=generate_public_id("p"),
        clinic_id=clinic_id,
        status=PatientStatus.ACTIVE,
        patient_type=PatientType.MANUAL,
        **data.model_dump(),
    )
    db.add(patient)

    try:
        db.commit()
        db.refresh(patient)
        logger.info(f"Manual patient {patient.patient_id} created for clinic {clinic_id}")
        return patient
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating patient for clinic {clinic_id}: {str(e)}")
        raise OperationFailedException("patient_create_failed")


def patient_stats(db: Session, clinic_id: int) -> Dict[str, int]:
    rows = (
        db.query(Patient.patient_type, Patient.status, func.count(Patient.id))
        .filter(Patient.clinic_id == clinic_id)
        .group_by(Patient.patient_type, Patient.status)
        .all()
    )
    stats = {"total": 0, "manual": 0, "connected": 0, "pending": 0, "active": 0, "inactive": 0}
    for patient_type, patient_status, count in rows:
        stats["total"] += count
        stats[patient_type.value] += count
        stats[patient_status.value.lower()] += count
    return stats


def approve_patient(db: Session, clinic_id: int, patient_id: str) -> Patient:
    patient = get_clinic_patient(db, clinic_id, patient_id)
    patient.status = PatientStatus.ACTIVE

    try:
        db.commit()
        db.refresh(patient)
        logger.info(f"Patient {patient_id} approved")
        return patient
    except Exception as e:
        db.rollback()
        logger.error(f"Error approving patient {patient_id}: {str(e)}")
        raise OperationFailedException("approve_failed")


def create_invite(
    db: Session,
    clinic_id: int,
    patient_id: str,
    admin_id: int,
    expires_in_hours: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Create a one-time invite link for a manual patient.

    Only the token hash is stored; the raw token is returned once.

    Raises:
        BadRequestException: ``already_connected`` for connected patients
    """
    patient = get_clinic_patient(db, clinic_id, patient_id)
    if patient.patient_type == PatientType.CONNECTED:
        raise BadRequestException("already_connected")

    token = generate_invite_token()
    expires_at = utc_now() + timedelta(hours=expires_in_hours or settings.invite_expire_hours)
    invite = InviteToken(
        patient_id=patient.id,
        token_hash=hash_token(token),
        created_by_admin_id=admin_id,
        expires_at=expires_at,
    )
    db.add(invite)

    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating invite for patient {patient_id}: {str(e)}")
        raise OperationFailedException("invite_create_failed")

    logger.info(f"Invite created for patient {patient_id} by admin {admin_id}")
    return {
        "token": token,
        "invite_url": f"{settings.invite_base_url.rstrip('/')}/{token}",
        "expires_at": expires_at,
    }


def redeem_invite(db: Session, token: str, data: InviteRedeem) -> Tuple[Patient, str]:
    """
    Connect a manual patient through an invite token.

    Raises:
        NotFoundException: ``invalid_invite``
        BadRequestException: ``invite_already_used`` or ``invite_expired``
    """
    invite = db.query(InviteToken).filter(InviteToken.token_hash == hash_token(token)).first()
    if not invite:
        raise NotFoundException("invalid_invite")
    if invite.used_at is not None:
        raise BadRequestException("invite_already_used")

    now = utc_now()
    if ensure_utc(invite.expires_at) < now:
        raise BadRequestException("invite_expired")

    patient = invite.patient
    patient.patient_type = PatientType.CONNECTED
    patient.status = PatientStatus.ACTIVE
    patient.connected_at = now
    if data.app_user_id:
        patient.app_user_id = data.app_user_id
    if data.phone:
        patient.phone = data.phone.strip()
    if data.email:
        patient.email = data.email
    invite.used_at = now

    try:
        db.commit()
        db.refresh(patient)
    except Exception as e:
        db.rollback()
        logger.error(f"Error redeeming invite for patient {patient.patient_id}: {str(e)}")
        raise OperationFailedException("invite_redeem_failed")

    clinic = get_clinic(db, patient.clinic_id)
    logger.info(f"Patient {patient.patient_id} connected through invite")
    return patient, create_patient_token(patient.patient_id, clinic.id, clinic.clinic_code, patient.status.value)
