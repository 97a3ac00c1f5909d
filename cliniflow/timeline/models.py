"""
Timeline Event Model - append-only clinic activity feed.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Index
from ..database import Base
from ..core.time_utils import utc_now


class TimelineEvent(Base):
    __tablename__ = "admin_timeline_events"
    __table_args__ = (Index("ix_timeline_clinic_created", "clinic_id", "created_at", "id"),)

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False)
    type = Column(String, nullable=False, index=True)
    reference_id = Column(String, nullable=True)
    message = Column(String, nullable=False)
    details = Column(JSON, nullable=True)  # Free-form payload rendered by the formatter
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return f"<TimelineEvent(id={self.id}, clinic_id={self.clinic_id}, type='{self.type}', created_at='{self.created_at}')>"
