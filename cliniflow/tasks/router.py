"""
Task Router - admins hand out tasks, doctors work through them.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import TokenPrincipal, require_admin, require_doctor
from .models import TaskStatus
from .schemas import TaskCreate, TaskStatusUpdate
from . import service

router = APIRouter()


@router.post("/api/admin/tasks", status_code=status.HTTP_201_CREATED)
def create_task(
    data: TaskCreate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    """
    Create a task for a doctor of a treatment group

    The doctor must be active and assigned to the group.
    """
    task = service.create_task(db, principal, data)
    return {"ok": True, "task": service.serialize_task(task)}


@router.get("/api/admin/tasks")
def list_clinic_tasks(
    treatment_group_id: Optional[int] = Query(None),
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    tasks = service.list_clinic_tasks(db, principal.clinic_id, treatment_group_id, task_status)
    return {"ok": True, "tasks": [service.serialize_task(task) for task in tasks]}


@router.get("/api/doctor/tasks")
def list_my_tasks(
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    tasks = service.list_doctor_tasks(db, principal, task_status)
    return {"ok": True, "tasks": [service.serialize_task(task) for task in tasks]}


@router.patch("/api/doctor/tasks/{task_id}")
def update_task(
    task_id: int,
    data: TaskStatusUpdate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_doctor)
):
    task = service.update_task_status(db, principal, task_id, data)
    return {"ok": True, "task": service.serialize_task(task)}
