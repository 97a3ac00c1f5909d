from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator


class TimelineEventCreate(BaseModel):
    """
    Manual timeline entry

    Fields:
    - type: Event type, stored upper-case
    - message: Short plain-text message
    - reference_id: Related record (optional)
    - details: Free-form payload (optional)
    """
    type: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    reference_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    @field_validator("type")
    @classmethod
    def upper_case_type(cls, value: str) -> str:
        return value.strip().upper()
