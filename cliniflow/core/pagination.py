"""
Core pagination utilities for API endpoints.

Two flavours are used: page/limit pagination for admin lists and opaque
keyset cursors for the newest-first timeline feed.
"""
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime
from fastapi import Query
from sqlalchemy.orm import Query as SQLAlchemyQuery
import base64
import binascii
import math

from .time_utils import ensure_utc
from ..exceptions import BadRequestException


class PageParams:
    """
    Page parameters for pagination.

    Attributes:
        page: Page number (1-indexed)
        limit: Number of items per page
    """
    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number"),
        limit: int = Query(20, ge=1, le=100, description="Items per page")
    ):
        self.page = page
        self.limit = limit
        self.offset = (page - 1) * limit


def paginate(query: SQLAlchemyQuery, page_params: PageParams) -> Tuple[List[Any], Dict[str, Any]]:
    """
    Paginate a SQLAlchemy query.

    Args:
        query: SQLAlchemy query to paginate (already ordered)
        page_params: Pagination parameters

    Returns:
        Tuple of the page items and the pagination block
    """
    total = query.count()
    items = query.offset(page_params.offset).limit(page_params.limit).all()
    pages = math.ceil(total / page_params.limit) if total > 0 else 0

    return items, {
        "total": total,
        "page": page_params.page,
        "limit": page_params.limit,
        "pages": pages,
        "has_next": page_params.page < pages,
        "has_prev": page_params.page > 1,
    }


def encode_cursor(created_at: datetime, row_id: int) -> str:
    """Opaque cursor pointing just after the row ``(created_at, id)``."""
    raw = f"{ensure_utc(created_at).isoformat()}|{row_id}"
    return base64.urlsafe_b64encode(raw.encode()).decode()


def decode_cursor(cursor: Optional[str]) -> Optional[Tuple[datetime, int]]:
    """
    Decode a cursor produced by ``encode_cursor``.

    Raises:
        BadRequestException: ``invalid_cursor`` for anything that does not decode
    """
    if not cursor:
        return None
    try:
        raw = base64.urlsafe_b64decode(cursor.encode()).decode()
        created_at, row_id = raw.rsplit("|", 1)
        return ensure_utc(datetime.fromisoformat(created_at)), int(row_id)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        raise BadRequestException("invalid_cursor")
