"""
Authentication Service - registration and login for admins, doctors and patients.

Admins and doctors authenticate with email + password; patients authenticate
with the phone number they registered with. Every successful login returns a
token signed with the single application secret.
"""
from typing import Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session
import logging

from ..core.security import (
    hash_password,
    verify_password,
    create_admin_token,
    create_doctor_token,
    create_patient_token,
    generate_public_id,
)
from ..exceptions import BadRequestException, ConflictException, NotFoundException, OperationFailedException
from ..clinics.models import Clinic, Admin, AdminStatus, ClinicStatus
from ..clinics.service import find_clinic_by_code, get_clinic_by_code, get_clinic
from ..doctors.models import Doctor, DoctorStatus
from ..patients.models import Patient, PatientStatus, PatientType
from .exceptions import InvalidCredentialsException, AccountStatusException
from .schemas import AdminRegistration, AdminLogin, DoctorRegistration, DoctorLogin, PatientRegistration, PatientLogin

# Set up logging
logger = logging.getLogger(__name__)


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def split_full_name(name: str) -> Tuple[str, Optional[str]]:
    """Split ``"Ayse Nur Kaya"`` into ``("Ayse Nur", "Kaya")``."""
    parts = name.strip().split()
    if len(parts) < 2:
        return name.strip(), None
    return " ".join(parts[:-1]), parts[-1]


def register_clinic(db: Session, data: AdminRegistration) -> Tuple[Clinic, Admin, str]:
    """
    Create a clinic together with its first admin account.

    Args:
        db: Database session
        data: Registration payload

    Returns:
        Tuple of the clinic, the admin and a fresh admin token

    Raises:
        ConflictException: If the clinic code is already taken
    """
    if find_clinic_by_code(db, data.clinic_code):
        raise ConflictException("clinic_code_taken")

    clinic = Clinic(clinic_code=data.clinic_code, name=data.name, email=_normalize_email(data.email))
    admin = Admin(
        clinic=clinic,
        email=_normalize_email(data.email),
        password_hash=hash_password(data.password),
        full_name=data.full_name,
    )
    db.add(clinic)
    db.add(admin)

    try:
        db.commit()
        db.refresh(admin)
    except Exception as e:
        db.rollback()
        logger.error(f"Error registering clinic {data.clinic_code}: {str(e)}")
        raise OperationFailedException("registration_failed")

    logger.info(f"Clinic {clinic.clinic_code} registered with admin {admin.email}")
    return clinic, admin, create_admin_token(admin.id, clinic.id, clinic.clinic_code)


def login_admin(db: Session, data: AdminLogin) -> Tuple[Admin, str]:
    """
    Authenticate a clinic admin.

    Raises:
        BadRequestException: ``email_required`` / ``password_required`` / ``clinic_code_required``
        InvalidCredentialsException: ``invalid_admin_credentials``
        AccountStatusException: ``admin_inactive`` or ``clinic_suspended``
    """
    if not data.email:
        raise BadRequestException("email_required")
    if not data.password:
        raise BadRequestException("password_required")
    if not data.clinic_code:
        raise BadRequestException("clinic_code_required")

    clinic = find_clinic_by_code(db, data.clinic_code)
    admin = None
    if clinic:
        admin = db.query(Admin).filter(
            Admin.clinic_id == clinic.id,
            func.lower(Admin.email) == _normalize_email(data.email),
        ).first()

    if not admin or not verify_password(data.password, admin.password_hash):
        logger.info(f"Failed admin login for {data.email} at clinic {data.clinic_code}")
        raise InvalidCredentialsException("invalid_admin_credentials")

    if admin.status != AdminStatus.ACTIVE:
        raise AccountStatusException("admin_inactive")
    if clinic.status == ClinicStatus.SUSPENDED:
        raise AccountStatusException("clinic_suspended")

    logger.info(f"Admin {admin.id} logged in to clinic {clinic.clinic_code}")
    return admin, create_admin_token(admin.id, clinic.id, clinic.clinic_code)


def register_doctor(db: Session, data: DoctorRegistration) -> Doctor:
    """
    Store a doctor application with status PENDING.

    The doctor cannot log in until an admin of the clinic approves it.
    """
    clinic = get_clinic_by_code(db, data.clinic_code)

    email = _normalize_email(data.email)
    if db.query(Doctor).filter(func.lower(Doctor.email) == email).first():
        raise ConflictException("email_taken")

    doctor = Doctor(
        clinic_id=clinic.id,
        email=email,
        password_hash=hash_password(data.password),
        full_name=data.full_name,
        license_number=data.license_number,
        phone=data.phone,
        specialty=data.specialty,
        status=DoctorStatus.PENDING,
    )
    db.add(doctor)

    try:
        db.commit()
        db.refresh(doctor)
    except Exception as e:
        db.rollback()
        logger.error(f"Error registering doctor {email}: {str(e)}")
        raise OperationFailedException("registration_failed")

    logger.info(f"Doctor application {doctor.id} received for clinic {clinic.clinic_code}")
    return doctor


def login_doctor(db: Session, data: DoctorLogin) -> Tuple[Doctor, str]:
    if not data.email:
        raise BadRequestException("email_required")
    if not data.password:
        raise BadRequestException("password_required")

    doctor = db.query(Doctor).filter(func.lower(Doctor.email) == _normalize_email(data.email)).first()
    if not doctor or not verify_password(data.password, doctor.password_hash):
        raise InvalidCredentialsException()

    if not doctor.is_active:
        logger.info(f"Doctor {doctor.id} login refused with status {doctor.status.value}")
        raise AccountStatusException("doctor_approval_required")

    clinic = get_clinic(db, doctor.clinic_id)
    if clinic.is_suspended:
        raise AccountStatusException("clinic_suspended")

    return doctor, create_doctor_token(doctor.id, clinic.id, clinic.clinic_code)


def register_patient(db: Session, data: PatientRegistration) -> Tuple[Patient, str]:
    """
    Self registration from the patient app.

    The patient is stored as a connected account with status PENDING and gets a
    token right away; clinic-only endpoints still check the status.
    """
    clinic = get_clinic_by_code(db, data.clinic_code)
    phone = data.phone.strip()

    existing = db.query(Patient).filter(Patient.clinic_id == clinic.id, Patient.phone == phone).first()
    if existing:
        raise ConflictException("phone_already_registered")

    first_name, last_name = split_full_name(data.name)
    patient = Patient(
        patient_id=generate_public_id("p"),
        clinic_id=clinic.id,
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        email=data.email,
        status=PatientStatus.PENDING,
        patient_type=PatientType.CONNECTED,
    )
    db.add(patient)

    try:
        db.commit()
        db.refresh(patient)
    except Exception as e:
        db.rollback()
        logger.error(f"Error registering patient for clinic {clinic.clinic_code}: {str(e)}")
        raise OperationFailedException("registration_failed")

    logger.info(f"Patient {patient.patient_id} registered at clinic {clinic.clinic_code}")
    token = create_patient_token(patient.patient_id, clinic.id, clinic.clinic_code, patient.status.value)
    return patient, token


def login_patient(db: Session, data: PatientLogin) -> Tuple[Patient, str]:
    """
    Patient login by phone number, optionally narrowed to one clinic.

    Raises:
        BadRequestException: ``phone_required``
        NotFoundException: ``patient_not_found``
    """
    if not data.phone:
        raise BadRequestException("phone_required")

    query = db.query(Patient).filter(Patient.phone == data.phone.strip())
    if data.clinic_code:
        clinic = get_clinic_by_code(db, data.clinic_code)
        query = query.filter(Patient.clinic_id == clinic.id)

    patient = query.order_by(Patient.id.desc()).first()
    if not patient:
        raise NotFoundException("patient_not_found")

    clinic = get_clinic(db, patient.clinic_id)
    if clinic.is_suspended:
        raise AccountStatusException("clinic_suspended")

    token = create_patient_token(patient.patient_id, clinic.id, clinic.clinic_code, patient.status.value)
    return patient, token
