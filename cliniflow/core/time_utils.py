"""Utilities for working with timestamps in UTC."""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return the current time as a timezone-aware ``datetime`` in UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalise ``dt`` to a timezone-aware UTC ``datetime``.

    SQLite hands back naive values even for ``DateTime(timezone=True)`` columns;
    those are stored in UTC so they are tagged rather than converted.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()


def relative_time(dt: datetime, now: Optional[datetime] = None, language: str = "en") -> str:
    """Human readable age such as ``"Just now"`` or ``"3 hours ago"`` (``"3 saat önce"`` in Turkish)."""
    now = ensure_utc(now or utc_now())
    seconds = (now - ensure_utc(dt)).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if language == "tr":
        if minutes < 1:
            return "Az önce"
        if minutes < 60:
            return f"{minutes} dakika önce"
        if hours < 24:
            return f"{hours} saat önce"
        return f"{days} gün önce"

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    return f"{days} day{'s' if days > 1 else ''} ago"
