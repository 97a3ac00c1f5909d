"""
Treatment Group Schemas - request bodies use the snake_case keys of the
dashboard (``patient_id``, ``doctor_ids``, ``primary_doctor_id``).
"""
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator


class TreatmentGroupCreate(BaseModel):
    """
    Treatment group creation

    Fields:
    - patient_id: Public patient ID
    - doctor_ids: Doctors to attach (at least one)
    - primary_doctor_id: Must be one of ``doctor_ids``
    - name: Group name
    - description: Free text (optional)
    """
    patient_id: str = Field(..., min_length=1)
    doctor_ids: List[int] = Field(..., min_length=1)
    primary_doctor_id: int
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

    @model_validator(mode="after")
    def deduplicate_doctors(self):
        self.doctor_ids = list(dict.fromkeys(self.doctor_ids))
        return self


class DoctorAssignment(BaseModel):
    doctor_id: int
    is_primary: bool = False


class DoctorRemoval(BaseModel):
    doctor_id: int
