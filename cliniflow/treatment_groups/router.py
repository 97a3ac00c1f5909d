"""
Treatment Group Router - admin endpoints for treatment groups.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import TokenPrincipal, require_admin
from ..core.time_utils import isoformat
from .schemas import TreatmentGroupCreate, DoctorAssignment, DoctorRemoval
from .service import (
    create_group,
    list_groups,
    get_group,
    list_patient_groups,
    assign_doctor,
    remove_doctor,
    cancel_group,
    serialize_group,
)

router = APIRouter(prefix="/api/admin")


@router.post("/treatment-groups", status_code=status.HTTP_201_CREATED)
def create_treatment_group(
    data: TreatmentGroupCreate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    """
    Create a treatment group with its doctors

    The group and its doctor assignments are stored together or not at all.
    """
    group = create_group(db, principal, data)
    return {
        "ok": True,
        "message": "Treatment group created successfully",
        "data": {"group": serialize_group(group)},
    }


@router.get("/treatment-groups")
def get_treatment_groups(
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    groups = list_groups(db, principal.clinic_id)
    return {"ok": True, "data": [serialize_group(group) for group in groups]}


@router.get("/treatment-groups/{group_id}")
def get_treatment_group(
    group_id: int,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    return {"ok": True, "data": serialize_group(get_group(db, principal.clinic_id, group_id))}


@router.post("/treatment-groups/{group_id}/assign-doctor")
def assign_doctor_to_group(
    group_id: int,
    data: DoctorAssignment,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    assignment = assign_doctor(db, principal, group_id, data.doctor_id, data.is_primary)
    return {
        "ok": True,
        "message": "Doctor assigned to treatment group",
        "data": {
            "treatment_group_id": assignment.treatment_group_id,
            "doctor_id": assignment.doctor_id,
            "is_primary": assignment.is_primary,
            "assigned_at": isoformat(assignment.assigned_at),
        },
    }


@router.delete("/treatment-groups/{group_id}/remove-doctor")
def remove_doctor_from_group(
    group_id: int,
    data: DoctorRemoval,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    remove_doctor(db, principal, group_id, data.doctor_id)
    return {"ok": True, "message": "Doctor removed from treatment group"}


@router.post("/treatment-groups/{group_id}/cancel")
def cancel_treatment_group(
    group_id: int,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    """
    Cancel a treatment group

    Every plan and item in the group is cancelled and the group status recomputed.
    """
    group = cancel_group(db, principal, group_id)
    return {"ok": True, "message": "Treatment group cancelled", "data": serialize_group(group)}


@router.get("/patients/{patient_id}/treatment-group")
def get_patient_treatment_group(
    patient_id: str,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    """
    Get the treatment groups of a patient

    ``group`` is the most recent one (None when the patient has none).
    """
    groups = [serialize_group(group) for group in list_patient_groups(db, principal.clinic_id, patient_id)]
    return {"ok": True, "group": groups[0] if groups else None, "groups": groups}
