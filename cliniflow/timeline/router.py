"""
Timeline Router - clinic activity feed for the admin dashboard.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import TokenPrincipal, require_admin
from .formatter import format_event
from .schemas import TimelineEventCreate
from .service import list_events, create_event, DEFAULT_LIMIT

router = APIRouter()


@router.get("/api/admin/timeline")
def get_timeline(
    limit: int = Query(DEFAULT_LIMIT, ge=1, description="Events per page (capped at 200)"),
    offset: int = Query(0, ge=0),
    cursor: Optional[str] = Query(None, description="Opaque cursor from a previous page"),
    lang: str = Query("en", description="en or tr"),
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    """
    Get the clinic timeline, newest first

    Pass ``pagination.next_cursor`` back as ``cursor`` to fetch the next page.
    """
    events, pagination = list_events(db, principal.clinic_id, limit, offset, cursor, lang)
    return {"ok": True, "events": events, "pagination": pagination}


@router.post("/api/admin/timeline/events", status_code=status.HTTP_201_CREATED)
def add_timeline_event(
    data: TimelineEventCreate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    event = create_event(db, principal.clinic_id, data, principal.actor)
    return {"ok": True, "event": format_event(event)}
