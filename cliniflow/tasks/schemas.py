"""
Task Schemas - snake_case bodies like the treatment group endpoints.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from .models import TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    """
    Task creation

    Fields:
    - treatment_group_id: Group of the admin's clinic
    - patient_id: Public patient ID; defaults to the group's patient
    - assigned_doctor_id: Active doctor who is a member of the group
    - title: Required
    - description: Free text (optional)
    - priority: low / medium / high / urgent
    - due_date: Deadline (optional)
    """
    treatment_group_id: int
    patient_id: Optional[str] = None
    assigned_doctor_id: int
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None


class TaskStatusUpdate(BaseModel):
    """Escalating takes an optional note that ends up on the timeline"""
    status: TaskStatus
    note: Optional[str] = None
