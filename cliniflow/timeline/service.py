"""
Timeline Service - append-only clinic activity feed.

Other modules call ``record_event`` after their own write has been committed;
a failure to record is logged and never propagates to the caller.
"""
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
import logging

from ..core.pagination import encode_cursor, decode_cursor
from ..exceptions import OperationFailedException
from .models import TimelineEvent
from .formatter import format_event, normalize_language
from .schemas import TimelineEventCreate

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 200


def record_event(
    db: Session,
    clinic_id: int,
    event_type: str,
    message: str,
    reference_id: Optional[Any] = None,
    details: Optional[Dict[str, Any]] = None,
    created_by: Optional[str] = None,
) -> Optional[TimelineEvent]:
    """
    Append an event to the clinic timeline.

    Args:
        db: Database session
        clinic_id: Clinic the event belongs to
        event_type: One of ``formatter.EventType`` or a custom type
        message: Short plain-text message
        reference_id: ID of the record the event is about
        details: Free-form payload used by the formatter
        created_by: Actor identifier

    Returns:
        TimelineEvent: The stored event, or None when recording failed
    """
    event = TimelineEvent(
        clinic_id=clinic_id,
        type=event_type,
        reference_id=str(reference_id) if reference_id is not None else None,
        message=message,
        details=details or {},
        created_by=created_by,
    )
    try:
        db.add(event)
        db.commit()
        db.refresh(event)
        logger.info(f"Timeline event {event.type} recorded for clinic {clinic_id} (id={event.id})")
        return event
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to record timeline event {event_type} for clinic {clinic_id}: {str(e)}")
        return None


def create_event(db: Session, clinic_id: int, data: TimelineEventCreate, created_by: str) -> TimelineEvent:
    """Manual event creation from the dashboard; unlike ``record_event`` a failure is an error."""
    event = TimelineEvent(
        clinic_id=clinic_id,
        type=data.type,
        reference_id=data.reference_id,
        message=data.message,
        details=data.details or {},
        created_by=created_by,
    )
    db.add(event)
    try:
        db.commit()
        db.refresh(event)
        return event
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating timeline event for clinic {clinic_id}: {str(e)}")
        raise OperationFailedException("failed_to_create_event")


def list_events(
    db: Session,
    clinic_id: int,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    cursor: Optional[str] = None,
    language: str = "en",
) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
    """
    Fetch a page of the clinic timeline, newest first.

    Events are ordered by ``created_at`` then ``id`` (both descending) so that
    events sharing a timestamp keep a stable order across pages. When a cursor
    is given, only events strictly older than the cursor position are returned
    and ``offset`` is applied after it.

    Returns:
        Tuple of formatted events and the pagination block
    """
    limit = max(1, min(limit, MAX_LIMIT))
    offset = max(0, offset)
    language = normalize_language(language)

    query = db.query(TimelineEvent).filter(TimelineEvent.clinic_id == clinic_id)

    position = decode_cursor(cursor)
    if position:
        created_at, event_id = position
        query = query.filter(
            or_(
                TimelineEvent.created_at < created_at,
                and_(TimelineEvent.created_at == created_at, TimelineEvent.id < event_id),
            )
        )

    # One extra row tells whether another page exists
    rows = (
        query.order_by(TimelineEvent.created_at.desc(), TimelineEvent.id.desc())
        .offset(offset)
        .limit(limit + 1)
        .all()
    )
    has_more = len(rows) > limit
    rows = rows[:limit]

    next_cursor = encode_cursor(rows[-1].created_at, rows[-1].id) if has_more and rows else None
    pagination = {
        "limit": limit,
        "offset": offset,
        "has_more": has_more,
        "next_cursor": next_cursor,
    }
    logger.info(f"Fetched {len(rows)} timeline events for clinic {clinic_id}")
    return [format_event(row, language) for row in rows], pagination
