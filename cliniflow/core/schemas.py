"""
Shared Pydantic base classes.
"""
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from .time_utils import isoformat

# Timestamps leave the API as UTC ISO-8601 with an explicit offset, the same
# shape as the hand-built payloads (groups, timeline, notes).
UtcDateTime = Annotated[datetime, PlainSerializer(isoformat, return_type=str, when_used="json")]


class CamelModel(BaseModel):
    """
    Request body accepting camelCase keys (``clinicCode``) as well as the
    snake_case field names.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ORMModel(BaseModel):
    """
    Response model read straight from SQLAlchemy instances.

    Declare timestamp fields as ``UtcDateTime`` so SQLite's naive values and
    Postgres' aware values serialize alike.
    """
    model_config = ConfigDict(from_attributes=True)
