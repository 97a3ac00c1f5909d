"""
Clinic Router - public clinic profile and the admin's own clinic settings.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import TokenPrincipal, require_admin
from .schemas import ClinicUpdate, ClinicPublic, ClinicResponse
from .service import get_clinic_by_code, get_clinic, update_clinic

router = APIRouter()


@router.get("/api/clinic/{clinic_code}")
def get_public_clinic(clinic_code: str, db: Session = Depends(get_db)):
    """
    Get the public profile of a clinic

    Used by the patient app before registration.
    """
    clinic = get_clinic_by_code(db, clinic_code)
    return {"ok": True, "clinic": ClinicPublic.model_validate(clinic)}


@router.get("/api/admin/clinic")
def get_my_clinic(
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    clinic = get_clinic(db, principal.clinic_id)
    return {"ok": True, "clinic": ClinicResponse.model_validate(clinic)}


@router.put("/api/admin/clinic")
def update_my_clinic(
    update: ClinicUpdate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    clinic = update_clinic(db, principal.clinic_id, update)
    return {"ok": True, "clinic": ClinicResponse.model_validate(clinic)}
