"""
Authentication Router - registration and login endpoints for every role.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..clinics.schemas import ClinicResponse
from .schemas import (
    AdminRegistration,
    AdminLogin,
    DoctorRegistration,
    DoctorLogin,
    PatientRegistration,
    PatientLogin,
    AdminResponse,
    DoctorResponse,
    PatientResponse,
)
from .service import register_clinic, login_admin, register_doctor, login_doctor, register_patient, login_patient

router = APIRouter()

# ============================================================================
# ADMIN
# ============================================================================

@router.post("/api/admin/register", status_code=status.HTTP_201_CREATED, summary="Register Clinic and First Admin")
def register_admin_route(data: AdminRegistration, db: Session = Depends(get_db)):
    """
    Create a clinic and its first admin account.

    Returns the admin token so the dashboard can continue without a separate login.
    """
    clinic, admin, token = register_clinic(db, data)
    return {
        "ok": True,
        "token": token,
        "admin": AdminResponse.model_validate(admin),
        "clinic": ClinicResponse.model_validate(clinic),
    }


@router.post("/api/admin/login", summary="Admin Login")
def admin_login_route(data: AdminLogin, db: Session = Depends(get_db)):
    admin, token = login_admin(db, data)
    return {
        "ok": True,
        "token": token,
        "clinicCode": admin.clinic.clinic_code,
        "admin": AdminResponse.model_validate(admin),
    }

# ============================================================================
# DOCTOR
# ============================================================================

@router.post("/api/doctor/register", status_code=status.HTTP_201_CREATED, summary="Doctor Application (Pending Approval)")
def register_doctor_route(data: DoctorRegistration, db: Session = Depends(get_db)):
    doctor = register_doctor(db, data)
    return {
        "ok": True,
        "message": "Application received. An administrator of the clinic must approve it before login.",
        "doctor": DoctorResponse.model_validate(doctor),
    }


@router.post("/api/doctor/login", summary="Doctor Login")
def doctor_login_route(data: DoctorLogin, db: Session = Depends(get_db)):
    doctor, token = login_doctor(db, data)
    return {"ok": True, "token": token, "doctor": DoctorResponse.model_validate(doctor)}

# ============================================================================
# PATIENT
# ============================================================================

@router.post("/api/register/patient", status_code=status.HTTP_201_CREATED, summary="Patient Self-Registration")
def register_patient_route(data: PatientRegistration, db: Session = Depends(get_db)):
    patient, token = register_patient(db, data)
    return {
        "ok": True,
        "token": token,
        "patientId": patient.patient_id,
        "status": patient.status.value,
        "patient": PatientResponse.model_validate(patient),
    }


@router.post("/api/patient/login", summary="Patient Login")
def patient_login_route(data: PatientLogin, db: Session = Depends(get_db)):
    patient, token = login_patient(db, data)
    return {
        "ok": True,
        "token": token,
        "patientId": patient.patient_id,
        "status": patient.status.value,
        "patient": PatientResponse.model_validate(patient),
    }
