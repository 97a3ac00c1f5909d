"""
Admin Service - patient notes, clinic permissions and dashboard overview.
"""
from typing import Any, Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
import logging

from ..core.time_utils import isoformat
from ..exceptions import OperationFailedException
from ..patients.models import Patient
from ..patients.service import get_clinic_patient
from ..timeline.models import TimelineEvent
from ..treatment_groups.models import TreatmentGroup, GroupStatus
from .models import AdminNote, AdminPermissions
from .schemas import AdminNoteCreate, PermissionsUpdate

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_PERMISSIONS = {
    "enableReferrals": True,
    "enableInternationalPatients": False,
    "requireICD10": False,
    "enableDoctorPatientChat": True,
}

ACTIVE_GROUP_STATUSES = (GroupStatus.NEW, GroupStatus.PLANNED, GroupStatus.IN_PROGRESS)


def serialize_note(note: AdminNote) -> Dict[str, Any]:
    return {
        "id": note.id,
        "patient_id": note.patient.patient_id if note.patient else None,
        "admin_id": note.admin_id,
        "note": note.note,
        "created_at": isoformat(note.created_at),
    }


def list_notes(db: Session, clinic_id: int, patient_id: Optional[str] = None) -> List[AdminNote]:
    query = db.query(AdminNote).filter(AdminNote.clinic_id == clinic_id)
    if patient_id:
        patient = get_clinic_patient(db, clinic_id, patient_id)
        query = query.filter(AdminNote.patient_id == patient.id)
    return query.order_by(AdminNote.created_at.desc(), AdminNote.id.desc()).all()


def add_note(db: Session, clinic_id: int, admin_id: int, data: AdminNoteCreate) -> AdminNote:
    patient = get_clinic_patient(db, clinic_id, data.patient_id)
    note = AdminNote(clinic_id=clinic_id, patient_id=patient.id, admin_id=admin_id, note=data.note)
    db.add(note)

    try:
        db.commit()
        db.refresh(note)
        logger.info(f"Admin {admin_id} added note {note.id} for patient {data.patient_id}")
        return note
    except Exception as e:
        db.rollback()
        logger.error(f"Error adding note for patient {data.patient_id}: {str(e)}")
        raise OperationFailedException("note_create_failed")


def _permissions_dict(row: Optional[AdminPermissions]) -> Dict[str, bool]:
    if row is None:
        return dict(DEFAULT_PERMISSIONS)
    return {
        "enableReferrals": row.enable_referrals,
        "enableInternationalPatients": row.enable_international_patients,
        "requireICD10": row.require_icd10,
        "enableDoctorPatientChat": row.enable_doctor_patient_chat,
    }


def get_permissions(db: Session, clinic_id: int) -> Dict[str, bool]:
    """Clinic permissions, falling back to the defaults when none were saved."""
    row = db.query(AdminPermissions).filter(AdminPermissions.clinic_id == clinic_id).first()
    return _permissions_dict(row)


def update_permissions(db: Session, clinic_id: int, data: PermissionsUpdate) -> Dict[str, bool]:
    """
    Apply the flags that were sent; the row is created with the defaults on first update.
    """
    row = db.query(AdminPermissions).filter(AdminPermissions.clinic_id == clinic_id).first()
    if row is None:
        row = AdminPermissions(
            clinic_id=clinic_id,
            enable_referrals=DEFAULT_PERMISSIONS["enableReferrals"],
            enable_international_patients=DEFAULT_PERMISSIONS["enableInternationalPatients"],
            require_icd10=DEFAULT_PERMISSIONS["requireICD10"],
            enable_doctor_patient_chat=DEFAULT_PERMISSIONS["enableDoctorPatientChat"],
        )
        db.add(row)

    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(row, field, value)

    try:
        db.commit()
        db.refresh(row)
        logger.info(f"Permissions of clinic {clinic_id} updated")
        return _permissions_dict(row)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating permissions of clinic {clinic_id}: {str(e)}")
        raise OperationFailedException("permissions_update_failed")


def patient_overview(db: Session, clinic_id: int) -> Dict[str, Any]:
    """
    Dashboard totals computed from the clinic data.

    ``lastActivityDate`` is the newest timeline event of the clinic.
    """
    total_patients = db.query(func.count(Patient.id)).filter(Patient.clinic_id == clinic_id).scalar()
    active_treatments = (
        db.query(func.count(TreatmentGroup.id))
        .filter(TreatmentGroup.clinic_id == clinic_id, TreatmentGroup.calculated_status.in_(ACTIVE_GROUP_STATUSES))
        .scalar()
    )
    completed_treatments = (
        db.query(func.count(TreatmentGroup.id))
        .filter(TreatmentGroup.clinic_id == clinic_id, TreatmentGroup.calculated_status == GroupStatus.COMPLETED)
        .scalar()
    )
    last_activity = (
        db.query(func.max(TimelineEvent.created_at))
        .filter(TimelineEvent.clinic_id == clinic_id)
        .scalar()
    )
    return {
        "totalPatients": total_patients or 0,
        "activeTreatments": active_treatments or 0,
        "completedTreatments": completed_treatments or 0,
        "lastActivityDate": isoformat(last_activity),
    }
