"""
Task Service - admin-created tasks for treatment group doctors.

Only doctors assigned to the group can hold a task of that group. A doctor
escalating a task raises its priority to urgent and puts a ``TASK_ESCALATED``
event on the clinic timeline, addressed to the group's primary doctor (or the
clinic admins when the assignee is the primary).
"""
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session, joinedload
import logging

from ..auth.dependencies import TokenPrincipal
from ..core.time_utils import isoformat, utc_now
from ..exceptions import BadRequestException, NotFoundException, OperationFailedException
from ..doctors.models import DoctorStatus
from ..doctors.service import get_clinic_doctor
from ..patients.service import get_clinic_patient
from ..timeline.formatter import EventType
from ..timeline.service import record_event
from ..treatment_groups.service import get_group, is_group_member, primary_doctor
from .models import Task, TaskStatus, TaskPriority
from .schemas import TaskCreate, TaskStatusUpdate

# Set up logging
logger = logging.getLogger(__name__)

CLINIC_ADMINS = "Clinic admin"


def serialize_task(task: Task) -> Dict[str, Any]:
    group = task.group
    patient = task.patient
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "due_date": isoformat(task.due_date),
        "completed_at": isoformat(task.completed_at),
        "escalated_at": isoformat(task.escalated_at),
        "created_at": isoformat(task.created_at),
        "updated_at": isoformat(task.updated_at),
        "assigned_doctor_id": task.assigned_doctor_id,
        "created_by_admin_id": task.created_by_admin_id,
        "treatment_group": {
            "id": group.id,
            "name": group.group_name,
            "status": group.calculated_status.value,
        } if group else None,
        "patient": {
            "patient_id": patient.patient_id,
            "name": patient.full_name,
            "phone": patient.phone,
            "status": patient.status.value,
        } if patient else None,
    }


def create_task(db: Session, principal: TokenPrincipal, data: TaskCreate) -> Task:
    """
    Create a task for a doctor of a treatment group.

    Raises:
        NotFoundException: ``treatment_group_not_found`` / ``patient_not_found`` / ``doctor_not_found``
        BadRequestException: ``patient_not_in_treatment_group`` / ``doctor_not_in_treatment_group``
    """
    group = get_group(db, principal.clinic_id, data.treatment_group_id)

    if data.patient_id:
        patient = get_clinic_patient(db, principal.clinic_id, data.patient_id)
        if patient.id != group.patient_id:
            raise BadRequestException("patient_not_in_treatment_group")

    doctor = get_clinic_doctor(db, principal.clinic_id, data.assigned_doctor_id)
    if doctor.status != DoctorStatus.ACTIVE:
        raise NotFoundException("doctor_not_found")
    if not is_group_member(db, group.id, doctor.id):
        raise BadRequestException("doctor_not_in_treatment_group")

    task = Task(
        clinic_id=principal.clinic_id,
        treatment_group_id=group.id,
        patient_id=group.patient_id,
        assigned_doctor_id=doctor.id,
        created_by_admin_id=principal.admin_id,
        title=data.title,
        description=data.description,
        priority=data.priority,
        due_date=data.due_date,
        status=TaskStatus.OPEN,
    )
    db.add(task)

    try:
        db.commit()
        db.refresh(task)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating task for doctor {doctor.id} in group {group.id}: {str(e)}")
        raise OperationFailedException("task_creation_failed")

    logger.info(f"Task {task.id} created for doctor {doctor.id} in treatment group {group.id}")
    return task


def list_clinic_tasks(
    db: Session,
    clinic_id: int,
    group_id: Optional[int] = None,
    status: Optional[TaskStatus] = None,
) -> List[Task]:
    query = db.query(Task).options(joinedload(Task.group), joinedload(Task.patient)).filter(Task.clinic_id == clinic_id)
    if group_id is not None:
        query = query.filter(Task.treatment_group_id == group_id)
    if status is not None:
        query = query.filter(Task.status == status)
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def list_doctor_tasks(db: Session, principal: TokenPrincipal, status: Optional[TaskStatus] = None) -> List[Task]:
    query = (
        db.query(Task)
        .options(joinedload(Task.group), joinedload(Task.patient))
        .filter(Task.clinic_id == principal.clinic_id, Task.assigned_doctor_id == principal.doctor_id)
    )
    if status is not None:
        query = query.filter(Task.status == status)
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def get_doctor_task(db: Session, principal: TokenPrincipal, task_id: int) -> Task:
    task = db.query(Task).filter(
        Task.id == task_id,
        Task.clinic_id == principal.clinic_id,
        Task.assigned_doctor_id == principal.doctor_id,
    ).first()
    if not task:
        raise NotFoundException("task_not_found")
    return task


def update_task_status(db: Session, principal: TokenPrincipal, task_id: int, data: TaskStatusUpdate) -> Task:
    """
    Change the status of one of the doctor's own tasks.

    ``completed_at`` follows the completed state. Moving into ``escalated``
    bumps the priority to urgent and records ``TASK_ESCALATED``.

    Raises:
        NotFoundException: ``task_not_found`` (also for tasks of other doctors)
    """
    task = get_doctor_task(db, principal, task_id)
    old_status = task.status
    escalating = data.status == TaskStatus.ESCALATED and old_status != TaskStatus.ESCALATED

    task.status = data.status
    task.completed_at = utc_now() if data.status == TaskStatus.COMPLETED else None
    if escalating:
        task.priority = TaskPriority.URGENT
        task.escalated_at = utc_now()

    try:
        db.commit()
        db.refresh(task)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating task {task_id}: {str(e)}")
        raise OperationFailedException("task_update_failed")

    logger.info(f"Task {task.id} {old_status.value} -> {task.status.value} by doctor {principal.doctor_id}")

    if escalating:
        primary = primary_doctor(task.group) if task.group else None
        escalated_to = primary.full_name if primary and primary.id != task.assigned_doctor_id else CLINIC_ADMINS
        record_event(
            db,
            principal.clinic_id,
            EventType.TASK_ESCALATED,
            "Task escalated",
            reference_id=task.id,
            details={
                "task_title": task.title,
                "escalated_to": escalated_to,
                "doctor_name": task.doctor.full_name if task.doctor else None,
                "patient_name": task.patient.full_name if task.patient else None,
                "group_name": task.group.group_name if task.group else None,
                "note": data.note,
            },
            created_by=principal.actor,
        )
    return task
