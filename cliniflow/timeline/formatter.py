"""
Rendering of timeline events into dashboard rows (icon, title, subtitle, age).
"""
from datetime import datetime
from typing import Any, Dict, Optional
import json

from ..core.time_utils import isoformat, relative_time
from .models import TimelineEvent


class EventType:
    """Event types recorded by the API"""
    TREATMENT_GROUP_CREATED = "TREATMENT_GROUP_CREATED"
    DOCTOR_ASSIGNED = "DOCTOR_ASSIGNED"
    DOCTOR_REMOVED = "DOCTOR_REMOVED"
    TREATMENT_GROUP_CANCELLED = "TREATMENT_GROUP_CANCELLED"
    TASK_ESCALATED = "TASK_ESCALATED"
    TREATMENT_COMPLETED = "TREATMENT_COMPLETED"


SUPPORTED_LANGUAGES = ("en", "tr")

UNKNOWN = {"en": "Unknown", "tr": "Bilinmiyor"}

LABELS = {
    "en": {
        "group": "Group",
        "patient": "Patient",
        "doctor": "Doctor",
        "task": "Task",
        "escalated_to": "Escalated to",
        "treatment": "Treatment",
        "system_event": "System Event",
    },
    "tr": {
        "group": "Grup",
        "patient": "Hasta",
        "doctor": "Doktor",
        "task": "Görev",
        "escalated_to": "Yükseltilen",
        "treatment": "Tedavi",
        "system_event": "Sistem Olayı",
    },
}

# type -> (icon, {language: title}, [(label key, details key), ...])
EVENT_FORMATS = {
    EventType.TREATMENT_GROUP_CREATED: (
        "🟢",
        {"en": "Treatment Group Created", "tr": "Tedavi Grubu Oluşturuldu"},
        [("group", "group_name"), ("patient", "patient_name"), ("doctor", "primary_doctor_name")],
    ),
    EventType.DOCTOR_ASSIGNED: (
        "👨‍⚕️",
        {"en": "Doctor Assigned", "tr": "Doktor Atandı"},
        [("doctor", "doctor_name"), ("group", "group_name")],
    ),
    EventType.DOCTOR_REMOVED: (
        "➖",
        {"en": "Doctor Removed", "tr": "Doktor Çıkarıldı"},
        [("doctor", "doctor_name"), ("group", "group_name")],
    ),
    EventType.TREATMENT_GROUP_CANCELLED: (
        "⛔",
        {"en": "Treatment Group Cancelled", "tr": "Tedavi Grubu İptal Edildi"},
        [("group", "group_name"), ("patient", "patient_name")],
    ),
    EventType.TASK_ESCALATED: (
        "⚠️",
        {"en": "Task Escalated", "tr": "Görev Yükseltildi"},
        [("task", "task_title"), ("escalated_to", "escalated_to")],
    ),
    EventType.TREATMENT_COMPLETED: (
        "✅",
        {"en": "Treatment Completed", "tr": "Tedavi Tamamlandı"},
        [("patient", "patient_name"), ("treatment", "treatment_type")],
    ),
}

DEFAULT_ICON = "📝"


def normalize_language(language: Optional[str]) -> str:
    language = (language or "en").lower()
    return language if language in SUPPORTED_LANGUAGES else "en"


def format_event(event: TimelineEvent, language: str = "en", now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Build the dashboard row of one event.

    Args:
        event: Stored event
        language: ``en`` or ``tr``
        now: Reference time for the relative age (defaults to the current time)

    Returns:
        Dict with the stored fields plus ``icon``, ``title``, ``subtitle`` and ``relative_time``
    """
    language = normalize_language(language)
    details = event.details or {}
    labels = LABELS[language]

    event_format = EVENT_FORMATS.get(event.type)
    if event_format:
        icon, titles, parts = event_format
        title = titles[language]
        subtitle = " | ".join(
            f"{labels[label]}: {details.get(key) or UNKNOWN[language]}" for label, key in parts
        )
    else:
        icon = DEFAULT_ICON
        title = event.message or labels["system_event"]
        subtitle = json.dumps(details, indent=2, ensure_ascii=False)

    return {
        "id": event.id,
        "type": event.type,
        "reference_id": event.reference_id,
        "icon": icon,
        "title": title,
        "subtitle": subtitle,
        "message": event.message,
        "details": details,
        "created_at": isoformat(event.created_at),
        "relative_time": relative_time(event.created_at, now=now, language=language),
        "created_by": event.created_by,
    }
