"""
Doctor Router - API endpoints for the doctor's own profile and documents.

Doctor registration and login live in the auth router; approval lives in the
admin router.
"""
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import TokenPrincipal, require_doctor
from ..auth.schemas import DoctorResponse
from .schemas import DoctorProfileUpdate, DoctorPatient
from .service import get_doctor, update_doctor_profile, list_doctor_patients, upload_doctor_file

router = APIRouter()


@router.get("/api/doctor/me")
def get_my_doctor_profile(
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    """
    Get the current doctor's profile
    """
    return {"ok": True, "doctor": DoctorResponse.model_validate(get_doctor(db, principal.doctor_id))}


@router.put("/api/doctor/me")
def update_my_doctor_profile(
    profile_data: DoctorProfileUpdate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    doctor = update_doctor_profile(db, principal.doctor_id, profile_data)
    return {"ok": True, "doctor": DoctorResponse.model_validate(doctor)}


@router.get("/api/doctor/patients")
def get_my_patients(
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    """
    Get the patients of the current doctor

    A patient belongs to the doctor when the doctor is assigned to one of the
    patient's treatment groups.
    """
    patients = list_doctor_patients(db, principal.doctor_id)
    return {"ok": True, "patients": [DoctorPatient.model_validate(patient) for patient in patients]}


@router.post("/api/doctor/upload-photo")
async def upload_photo(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    """
    Upload the doctor's profile photo (JPEG, PNG or WebP, up to 3 MB)
    """
    content = await file.read()
    doctor = upload_doctor_file(db, principal.doctor_id, "photo", content, file.content_type)
    return {"ok": True, "url": doctor.profile_photo_url}


@router.post("/api/doctor/upload-diploma")
async def upload_diploma(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    """
    Upload the doctor's diploma (JPEG, PNG or PDF, up to 5 MB)
    """
    content = await file.read()
    doctor = upload_doctor_file(db, principal.doctor_id, "diploma", content, file.content_type)
    return {"ok": True, "url": doctor.diploma_file_url}
