"""
Admin Router - notes, permissions, dashboard statistics and approvals.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import TokenPrincipal, require_admin
from ..auth.schemas import DoctorResponse
from ..doctors.models import DoctorStatus
from ..doctors.schemas import DoctorApproval
from ..doctors.service import list_doctor_applications, decide_doctor_application
from ..icd10.service import usage_summary
from ..patients.schemas import PatientApproval, PatientDetail
from ..patients.service import approve_patient
from .schemas import AdminNoteCreate, PermissionsUpdate
from .service import (
    list_notes,
    add_note,
    serialize_note,
    get_permissions,
    update_permissions,
    patient_overview,
)

router = APIRouter(prefix="/api/admin")

# ============================================================================
# NOTES
# ============================================================================

@router.get("/notes")
def get_notes(
    patient_id: Optional[str] = Query(None, alias="patientId"),
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    """
    Get admin notes of the clinic, newest first

    Pass ``patientId`` to restrict to one patient.
    """
    notes = list_notes(db, principal.clinic_id, patient_id)
    return {"ok": True, "notes": [serialize_note(note) for note in notes]}


@router.post("/notes", status_code=status.HTTP_201_CREATED)
def create_note(
    data: AdminNoteCreate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    note = add_note(db, principal.clinic_id, principal.admin_id, data)
    return {"ok": True, "note": serialize_note(note)}

# ============================================================================
# PERMISSIONS
# ============================================================================

@router.get("/permissions")
def get_clinic_permissions(
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    return {"ok": True, "permissions": get_permissions(db, principal.clinic_id)}


@router.put("/permissions")
def update_clinic_permissions(
    data: PermissionsUpdate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    return {"ok": True, "permissions": update_permissions(db, principal.clinic_id, data)}

# ============================================================================
# DASHBOARD STATISTICS
# ============================================================================

@router.get("/patient-overview")
def get_patient_overview(
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    return {"ok": True, "overview": patient_overview(db, principal.clinic_id)}


@router.get("/icd10-summary")
def get_icd10_summary(
    language: str = Query("tr"),
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    return {"ok": True, "summary": usage_summary(db, principal.clinic_id, language)}


@router.get("/icd10-compliance")
def get_icd10_compliance(
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    summary = usage_summary(db, principal.clinic_id)
    return {
        "ok": True,
        "compliance": {
            "hasICD10Entries": summary["hasICD10Entries"],
            "mostUsedCodes": [row["code"] for row in summary["topCodes"]],
            "lastEntryDate": summary["lastEntryDate"],
        },
    }

# ============================================================================
# APPROVALS
# ============================================================================

@router.get("/doctor-applications")
def get_doctor_applications(
    status_filter: Optional[DoctorStatus] = Query(DoctorStatus.PENDING, alias="status"),
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    """
    Get doctor applications of the clinic (pending ones by default)
    """
    doctors = list_doctor_applications(db, principal.clinic_id, status_filter)
    return {"ok": True, "doctors": [DoctorResponse.model_validate(doctor) for doctor in doctors]}


@router.post("/approve-doctor")
def approve_doctor(
    data: DoctorApproval,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    doctor = decide_doctor_application(db, principal.clinic_id, data.doctor_id, data.approve)
    return {"ok": True, "doctor": DoctorResponse.model_validate(doctor)}


@router.post("/approve")
def approve_patient_registration(
    data: PatientApproval,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    patient = approve_patient(db, principal.clinic_id, data.patient_id)
    return {"ok": True, "patient": PatientDetail.model_validate(patient)}
