"""
Treatment Group Service - group lifecycle, doctor assignment and status derivation.

A group's ``calculated_status`` is never set by hand: every change to the
treatment items under the group goes through ``recalculate_group_status``.
Group creation and the initial doctor assignments are committed together;
timeline events are recorded afterwards and never fail the request.
"""
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy.orm import Session, selectinload
import logging

from ..auth.dependencies import TokenPrincipal
from ..core.time_utils import isoformat, utc_now
from ..exceptions import BadRequestException, NotFoundException, OperationFailedException
from ..doctors.models import Doctor
from ..doctors.service import get_clinic_doctor
from ..patients.service import get_clinic_patient
from ..timeline.formatter import EventType
from ..timeline.service import record_event
from ..treatments.models import TreatmentPlan, TreatmentItem, TreatmentStatus
from .models import TreatmentGroup, TreatmentGroupDoctor, GroupStatus
from .schemas import TreatmentGroupCreate

# Set up logging
logger = logging.getLogger(__name__)


def derive_group_status(item_statuses: Iterable[TreatmentStatus]) -> GroupStatus:
    """
    Derive the group status from the statuses of its treatment items.

    - no items: NEW
    - every item cancelled: CANCELLED
    - every non-cancelled item done: COMPLETED
    - some items done: IN_PROGRESS
    - otherwise: PLANNED
    """
    statuses = list(item_statuses)
    if not statuses:
        return GroupStatus.NEW

    active = [status for status in statuses if status != TreatmentStatus.CANCELLED]
    if not active:
        return GroupStatus.CANCELLED
    done = sum(1 for status in active if status == TreatmentStatus.DONE)
    if done == len(active):
        return GroupStatus.COMPLETED
    if done:
        return GroupStatus.IN_PROGRESS
    return GroupStatus.PLANNED


def recalculate_group_status(db: Session, group_id: Optional[int]) -> Optional[GroupStatus]:
    """
    Recompute and store the status of a group. The caller commits.

    Returns:
        GroupStatus: The new status, or None when ``group_id`` is None
    """
    if group_id is None:
        return None
    group = db.query(TreatmentGroup).filter(TreatmentGroup.id == group_id).first()
    if not group:
        return None

    db.flush()
    statuses = [
        row[0]
        for row in db.query(TreatmentItem.status)
        .join(TreatmentPlan, TreatmentItem.treatment_plan_id == TreatmentPlan.id)
        .filter(TreatmentPlan.treatment_group_id == group_id)
        .all()
    ]
    status = derive_group_status(statuses)
    if group.calculated_status != status:
        logger.info(f"Treatment group {group_id} status {group.calculated_status.value} -> {status.value}")
        group.calculated_status = status
    return status


def serialize_group(group: TreatmentGroup) -> Dict[str, Any]:
    patient = group.patient
    return {
        "id": group.id,
        "patient_id": patient.patient_id if patient else None,
        "patient": {
            "patient_id": patient.patient_id,
            "name": patient.full_name,
            "phone": patient.phone,
        } if patient else None,
        "clinic_id": group.clinic_id,
        "group_name": group.group_name,
        "description": group.description,
        "calculated_status": group.calculated_status.value,
        "created_by_admin_id": group.created_by_admin_id,
        "created_at": isoformat(group.created_at),
        "updated_at": isoformat(group.updated_at),
        "doctors": [
            {
                "id": assignment.doctor_id,
                "name": assignment.doctor.full_name if assignment.doctor else None,
                "email": assignment.doctor.email if assignment.doctor else None,
                "phone": assignment.doctor.phone if assignment.doctor else None,
                "is_primary": assignment.is_primary,
                "assigned_at": isoformat(assignment.assigned_at),
            }
            for assignment in group.doctors
        ],
    }


def get_group(db: Session, clinic_id: int, group_id: int) -> TreatmentGroup:
    """
    Get a treatment group of the clinic.

    Raises:
        NotFoundException: ``treatment_group_not_found``
    """
    group = db.query(TreatmentGroup).filter(
        TreatmentGroup.id == group_id,
        TreatmentGroup.clinic_id == clinic_id,
    ).first()
    if not group:
        raise NotFoundException("treatment_group_not_found")
    return group


def primary_doctor(group: TreatmentGroup) -> Optional[Doctor]:
    for assignment in group.doctors:
        if assignment.is_primary:
            return assignment.doctor
    return None


def is_group_member(db: Session, group_id: int, doctor_id: int) -> bool:
    return db.query(TreatmentGroupDoctor).filter(
        TreatmentGroupDoctor.treatment_group_id == group_id,
        TreatmentGroupDoctor.doctor_id == doctor_id,
    ).first() is not None


def create_group(db: Session, principal: TokenPrincipal, data: TreatmentGroupCreate) -> TreatmentGroup:
    """
    Create a treatment group and attach its doctors in one transaction.

    Raises:
        BadRequestException: ``primary_doctor_not_in_list`` if the primary is not one of ``doctor_ids``
        NotFoundException: ``patient_not_found`` / ``doctor_not_found``
        OperationFailedException: ``create_failed`` (nothing is stored)
    """
    if data.primary_doctor_id not in data.doctor_ids:
        raise BadRequestException("primary_doctor_not_in_list")

    patient = get_clinic_patient(db, principal.clinic_id, data.patient_id)
    doctors = [get_clinic_doctor(db, principal.clinic_id, doctor_id) for doctor_id in data.doctor_ids]

    group = TreatmentGroup(
        patient_id=patient.id,
        clinic_id=principal.clinic_id,
        created_by_admin_id=principal.admin_id,
        group_name=data.name,
        description=data.description or "",
        calculated_status=GroupStatus.NEW,
    )
    for doctor in doctors:
        group.doctors.append(TreatmentGroupDoctor(
            doctor_id=doctor.id,
            is_primary=doctor.id == data.primary_doctor_id,
            assigned_by=principal.admin_id,
        ))
    db.add(group)

    try:
        db.commit()
        db.refresh(group)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating treatment group for patient {data.patient_id}: {str(e)}")
        raise OperationFailedException("create_failed")

    logger.info(f"Treatment group {group.id} created for patient {patient.patient_id} with {len(doctors)} doctor(s)")

    primary = primary_doctor(group)
    record_event(
        db,
        principal.clinic_id,
        EventType.TREATMENT_GROUP_CREATED,
        "Treatment group created",
        reference_id=group.id,
        details={
            "group_name": group.group_name,
            "patient_name": patient.full_name,
            "primary_doctor_name": primary.full_name if primary else None,
            "created_by_admin_id": principal.admin_id,
            "doctor_count": len(doctors),
        },
        created_by=principal.actor,
    )
    return group


def list_groups(db: Session, clinic_id: int) -> List[TreatmentGroup]:
    return (
        db.query(TreatmentGroup)
        .options(selectinload(TreatmentGroup.doctors).selectinload(TreatmentGroupDoctor.doctor))
        .filter(TreatmentGroup.clinic_id == clinic_id)
        .order_by(TreatmentGroup.created_at.desc(), TreatmentGroup.id.desc())
        .all()
    )


def list_patient_groups(db: Session, clinic_id: int, patient_id: str) -> List[TreatmentGroup]:
    patient = get_clinic_patient(db, clinic_id, patient_id)
    return (
        db.query(TreatmentGroup)
        .filter(TreatmentGroup.patient_id == patient.id)
        .order_by(TreatmentGroup.created_at.desc(), TreatmentGroup.id.desc())
        .all()
    )


def assign_doctor(db: Session, principal: TokenPrincipal, group_id: int, doctor_id: int, is_primary: bool = False) -> TreatmentGroupDoctor:
    """
    Attach a doctor to a group, or update its primary flag if already attached.

    A new primary doctor demotes the previous one.
    """
    group = get_group(db, principal.clinic_id, group_id)
    doctor = get_clinic_doctor(db, principal.clinic_id, doctor_id)

    assignment = next((a for a in group.doctors if a.doctor_id == doctor.id), None)
    if assignment is None:
        assignment = TreatmentGroupDoctor(doctor_id=doctor.id, assigned_by=principal.admin_id, assigned_at=utc_now())
        group.doctors.append(assignment)

    if is_primary:
        for other in group.doctors:
            if other is not assignment:
                other.is_primary = False
    assignment.is_primary = is_primary

    try:
        db.commit()
        db.refresh(assignment)
    except Exception as e:
        db.rollback()
        logger.error(f"Error assigning doctor {doctor_id} to treatment group {group_id}: {str(e)}")
        raise OperationFailedException("assign_failed")

    logger.info(f"Doctor {doctor_id} assigned to treatment group {group_id} (primary={is_primary})")
    record_event(
        db,
        principal.clinic_id,
        EventType.DOCTOR_ASSIGNED,
        "Doctor assigned to treatment group",
        reference_id=group.id,
        details={"doctor_name": doctor.full_name, "group_name": group.group_name, "is_primary": is_primary},
        created_by=principal.actor,
    )
    return assignment


def remove_doctor(db: Session, principal: TokenPrincipal, group_id: int, doctor_id: int) -> None:
    """
    Detach a doctor from a group.

    Raises:
        NotFoundException: ``doctor_not_assigned``
    """
    group = get_group(db, principal.clinic_id, group_id)
    assignment = next((a for a in group.doctors if a.doctor_id == doctor_id), None)
    if assignment is None:
        raise NotFoundException("doctor_not_assigned")

    doctor_name = assignment.doctor.full_name if assignment.doctor else None
    group.doctors.remove(assignment)

    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error removing doctor {doctor_id} from treatment group {group_id}: {str(e)}")
        raise OperationFailedException("remove_failed")

    logger.info(f"Doctor {doctor_id} removed from treatment group {group_id}")
    record_event(
        db,
        principal.clinic_id,
        EventType.DOCTOR_REMOVED,
        "Doctor removed from treatment group",
        reference_id=group.id,
        details={"doctor_name": doctor_name, "group_name": group.group_name},
        created_by=principal.actor,
    )


def cancel_group(db: Session, principal: TokenPrincipal, group_id: int) -> TreatmentGroup:
    """
    Cancel every plan and item in the group, then recompute its status.
    """
    group = get_group(db, principal.clinic_id, group_id)

    plans = db.query(TreatmentPlan).filter(TreatmentPlan.treatment_group_id == group.id).all()
    cancelled_items = 0
    for plan in plans:
        plan.status = TreatmentStatus.CANCELLED
        for item in plan.items:
            if item.status != TreatmentStatus.CANCELLED:
                item.status = TreatmentStatus.CANCELLED
                cancelled_items += 1

    try:
        recalculate_group_status(db, group.id)
        db.commit()
        db.refresh(group)
    except Exception as e:
        db.rollback()
        logger.error(f"Error cancelling treatment group {group_id}: {str(e)}")
        raise OperationFailedException("cancel_failed")

    logger.info(f"Treatment group {group_id} cancelled ({len(plans)} plan(s), {cancelled_items} item(s))")
    record_event(
        db,
        principal.clinic_id,
        EventType.TREATMENT_GROUP_CANCELLED,
        "Treatment group cancelled",
        reference_id=group.id,
        details={
            "group_name": group.group_name,
            "patient_name": group.patient.full_name if group.patient else None,
            "cancelled_items": cancelled_items,
        },
        created_by=principal.actor,
    )
    return group
