"""
Doctor Service - Business logic for doctor profiles, documents and approval.

This module provides service functions for the doctor's own profile, the
patients reachable through its treatment groups, profile photo and diploma
uploads, and the admin approval workflow.
"""
from typing import List, Optional
from sqlalchemy.orm import Session
import logging

from ..core import cloudinary as storage
from ..exceptions import BadRequestException, NotFoundException, OperationFailedException
from ..patients.models import Patient
from ..treatment_groups.models import TreatmentGroup, TreatmentGroupDoctor
from .models import Doctor, DoctorStatus
from .schemas import DoctorProfileUpdate

# Set up logging
logger = logging.getLogger(__name__)

MB = 1024 * 1024

# kind -> (allowed content types, max size, storage folder, doctor column)
UPLOAD_RULES = {
    "photo": (
        {"image/jpeg", "image/png", "image/webp"},
        3 * MB,
        storage.DOCTOR_PROFILE_FOLDER,
        "profile_photo_url",
    ),
    "diploma": (
        {"image/jpeg", "image/png", "application/pdf"},
        5 * MB,
        storage.DOCTOR_DOCUMENTS_FOLDER,
        "diploma_file_url",
    ),
}


def get_doctor(db: Session, doctor_id: int) -> Doctor:
    """
    Get a doctor by ID.

    Raises:
        NotFoundException: ``doctor_not_found``
    """
    doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
    if not doctor:
        raise NotFoundException("doctor_not_found")
    return doctor


def get_clinic_doctor(db: Session, clinic_id: int, doctor_id: int) -> Doctor:
    doctor = db.query(Doctor).filter(Doctor.id == doctor_id, Doctor.clinic_id == clinic_id).first()
    if not doctor:
        raise NotFoundException("doctor_not_found")
    return doctor


def update_doctor_profile(db: Session, doctor_id: int, profile_data: DoctorProfileUpdate) -> Doctor:
    """
    Update a doctor profile.

    Args:
        db: Database session
        doctor_id: ID of the doctor (taken from the token)
        profile_data: Updated profile data

    Returns:
        Doctor: Updated doctor profile
    """
    doctor = get_doctor(db, doctor_id)

    for field, value in profile_data.model_dump(exclude_unset=True).items():
        setattr(doctor, field, value)

    try:
        db.commit()
        db.refresh(doctor)
        logger.info(f"Doctor profile {doctor_id} updated")
        return doctor
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating doctor profile {doctor_id}: {str(e)}")
        raise OperationFailedException("profile_update_failed")


def list_doctor_patients(db: Session, doctor_id: int) -> List[Patient]:
    """Patients with at least one treatment group the doctor is assigned to."""
    return (
        db.query(Patient)
        .join(TreatmentGroup, TreatmentGroup.patient_id == Patient.id)
        .join(TreatmentGroupDoctor, TreatmentGroupDoctor.treatment_group_id == TreatmentGroup.id)
        .filter(TreatmentGroupDoctor.doctor_id == doctor_id)
        .distinct()
        .order_by(Patient.first_name, Patient.id)
        .all()
    )


def upload_doctor_file(
    db: Session,
    doctor_id: int,
    kind: str,
    content: bytes,
    content_type: Optional[str],
) -> Doctor:
    """
    Validate and store a doctor photo or diploma, then save its URL on the doctor.

    Raises:
        BadRequestException: ``file_required``, ``invalid_file_type`` or ``file_too_large``
        OperationFailedException: ``upload_failed`` if storage rejects the file
    """
    allowed_types, max_size, folder, column = UPLOAD_RULES[kind]

    if not content:
        raise BadRequestException("file_required")
    if content_type not in allowed_types:
        raise BadRequestException("invalid_file_type", {"allowed": sorted(allowed_types)})
    if len(content) > max_size:
        raise BadRequestException("file_too_large", {"max_bytes": max_size})

    doctor = get_doctor(db, doctor_id)
    resource_type = "raw" if content_type == "application/pdf" else "image"
    url = storage.upload_file(content, folder, f"doctor_{doctor.id}_{kind}", resource_type)
    if not url:
        raise OperationFailedException("upload_failed")

    setattr(doctor, column, url)
    try:
        db.commit()
        db.refresh(doctor)
        logger.info(f"Doctor {doctor_id} {kind} stored at {url}")
        return doctor
    except Exception as e:
        db.rollback()
        logger.error(f"Error saving {kind} URL for doctor {doctor_id}: {str(e)}")
        raise OperationFailedException("upload_failed")


def list_doctor_applications(db: Session, clinic_id: int, status: Optional[DoctorStatus] = DoctorStatus.PENDING) -> List[Doctor]:
    query = db.query(Doctor).filter(Doctor.clinic_id == clinic_id)
    if status is not None:
        query = query.filter(Doctor.status == status)
    return query.order_by(Doctor.created_at.desc(), Doctor.id.desc()).all()


def decide_doctor_application(db: Session, clinic_id: int, doctor_id: int, approve: bool) -> Doctor:
    """
    Approve or reject a doctor application of the clinic.

    Returns:
        Doctor: The doctor with its new status
    """
    doctor = get_clinic_doctor(db, clinic_id, doctor_id)
    if approve:
        doctor.approve()
    else:
        doctor.status = DoctorStatus.REJECTED

    try:
        db.commit()
        db.refresh(doctor)
        logger.info(f"Doctor {doctor_id} application set to {doctor.status.value}")
        return doctor
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating doctor application {doctor_id}: {str(e)}")
        raise OperationFailedException("approve_failed")
