"""
Task Models - follow-up work an admin hands to a doctor of a treatment group.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Enum, func
from sqlalchemy.orm import relationship
import enum
from ..database import Base
from ..core.time_utils import utc_now


class TaskStatus(str, enum.Enum):
    """Enum for task status"""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ESCALATED = "escalated"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Task(Base):
    """
    Task Model

    Fields:
    - id: Primary key
    - clinic_id: Foreign key to Clinic model
    - treatment_group_id: Group the task belongs to
    - patient_id: Foreign key to Patient model (the group's patient)
    - assigned_doctor_id: Doctor responsible, always a member of the group
    - created_by_admin_id: Admin who created the task
    - title / description: What has to be done
    - status: open / in_progress / completed / cancelled / escalated
    - priority: low / medium / high / urgent
    - due_date: Optional deadline
    - completed_at: Set while the task is completed
    - escalated_at: Last escalation
    """
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False, index=True)
    treatment_group_id = Column(Integer, ForeignKey("treatment_groups.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by_admin_id = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(TaskStatus, name="task_status"), default=TaskStatus.OPEN, nullable=False)
    priority = Column(Enum(TaskPriority, name="task_priority"), default=TaskPriority.MEDIUM, nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    escalated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    group = relationship("TreatmentGroup")
    patient = relationship("Patient")
    doctor = relationship("Doctor")

    def __repr__(self):
        return f"<Task(id={self.id}, doctor_id={self.assigned_doctor_id}, status='{self.status}')>"
