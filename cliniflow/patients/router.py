"""
Patient Router - admin patient management, invites and patient self-service.
"""
from typing import Optional
from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..core.pagination import PageParams
from ..auth.dependencies import TokenPrincipal, require_admin, require_patient, require_admin_or_patient
from .schemas import ManualPatientCreate, InviteCreate, InviteRedeem, PatientDetail, PatientListItem
from .service import (
    list_patients,
    create_manual_patient,
    get_clinic_patient,
    get_accessible_patient,
    patient_stats,
    create_invite,
    redeem_invite,
)

router = APIRouter()


@router.get("/api/admin/patients")
def get_patients(
    type: str = Query("all", pattern="^(manual|connected|all)$", description="manual, connected or all"),
    search: Optional[str] = Query(None),
    page_params: PageParams = Depends(),
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    """
    Get a paginated list of clinic patients

    This endpoint allows admins to browse patients with optional filtering.
    """
    patients, pagination = list_patients(db, principal.clinic_id, page_params, type, search)
    return {
        "ok": True,
        "patients": [PatientListItem.model_validate(patient) for patient in patients],
        "pagination": pagination,
    }


@router.post("/api/admin/patients", status_code=status.HTTP_201_CREATED)
def add_manual_patient(
    data: ManualPatientCreate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    patient = create_manual_patient(db, principal.clinic_id, data)
    return {"ok": True, "patient": PatientDetail.model_validate(patient)}


@router.get("/api/admin/patients/stats")
def get_patient_stats(
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    return {"ok": True, "stats": patient_stats(db, principal.clinic_id)}


@router.get("/api/admin/patients/{patient_id}")
def get_patient(
    patient_id: str,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    patient = get_clinic_patient(db, principal.clinic_id, patient_id)
    return {"ok": True, "patient": PatientDetail.model_validate(patient)}


@router.post("/api/admin/patients/{patient_id}/invite", status_code=status.HTTP_201_CREATED)
def invite_patient(
    patient_id: str,
    data: Optional[InviteCreate] = Body(None),
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    """
    Create an invite link for a manual patient

    The raw token is only returned here; the database keeps its hash.
    """
    invite = create_invite(
        db,
        principal.clinic_id,
        patient_id,
        principal.admin_id,
        data.expires_in_hours if data else None,
    )
    return {"ok": True, **invite}


@router.post("/api/invite/{token}")
def accept_invite(
    token: str,
    data: Optional[InviteRedeem] = Body(None),
    db: Session = Depends(get_db)
):
    patient, patient_token = redeem_invite(db, token, data or InviteRedeem())
    return {
        "ok": True,
        "token": patient_token,
        "patientId": patient.patient_id,
        "patient": PatientDetail.model_validate(patient),
    }


@router.get("/api/patient/me")
def get_my_patient_record(
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_patient)
):
    patient = get_clinic_patient(db, principal.clinic_id, principal.patient_id)
    return {"ok": True, "patient": PatientDetail.model_validate(patient)}


@router.get("/api/patient/{patient_id}/info")
def get_patient_info(
    patient_id: str,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin_or_patient)
):
    """
    Get patient information

    Available to admins of the patient's clinic and to the patient itself.
    """
    patient = get_accessible_patient(db, principal, patient_id)
    return {"ok": True, "patient": PatientDetail.model_validate(patient)}
