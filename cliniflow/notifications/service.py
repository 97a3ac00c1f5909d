"""
Notification Service - Web Push subscriptions and delivery.

Messages are signed with the VAPID key pair from the settings and sent through
``pywebpush``. Subscriptions the push service reports as gone (404/410) are
deleted.
"""
from typing import Dict, List, Optional
from fastapi import status
from pywebpush import webpush, WebPushException
from requests.exceptions import RequestException
from sqlalchemy.orm import Session
import json
import logging

from ..config import settings
from ..auth.dependencies import TokenPrincipal
from ..exceptions import AppException, OperationFailedException
from ..patients.service import get_accessible_patient, get_clinic_patient
from .models import PushSubscription
from .schemas import BrowserSubscription, NotificationCreate

# Set up logging
logger = logging.getLogger(__name__)

GONE_STATUS_CODES = (404, 410)


class PushNotConfiguredException(AppException):
    """Raised when no VAPID key pair is configured."""
    def __init__(self):
        super().__init__(status.HTTP_503_SERVICE_UNAVAILABLE, "push_not_configured")


def get_public_key() -> str:
    if not settings.vapid_public_key:
        raise PushNotConfiguredException()
    return settings.vapid_public_key


def save_subscription(db: Session, principal: TokenPrincipal, patient_id: str, subscription: BrowserSubscription) -> PushSubscription:
    """
    Register a browser subscription for the patient.

    The endpoint is unique: re-subscribing the same browser refreshes its keys
    and moves it to the calling patient.
    """
    patient = get_accessible_patient(db, principal, patient_id)

    row = db.query(PushSubscription).filter(PushSubscription.endpoint == subscription.endpoint).first()
    if row is None:
        row = PushSubscription(endpoint=subscription.endpoint)
        db.add(row)
    row.patient_id = patient.id
    row.p256dh = subscription.keys.p256dh
    row.auth = subscription.keys.auth

    try:
        db.commit()
        db.refresh(row)
        logger.info(f"Push subscription {row.id} saved for patient {patient_id}")
        return row
    except Exception as e:
        db.rollback()
        logger.error(f"Error saving push subscription for patient {patient_id}: {str(e)}")
        raise OperationFailedException("subscription_failed")


def delete_subscriptions(db: Session, principal: TokenPrincipal, patient_id: str, endpoint: Optional[str] = None) -> int:
    patient = get_accessible_patient(db, principal, patient_id)
    query = db.query(PushSubscription).filter(PushSubscription.patient_id == patient.id)
    if endpoint:
        query = query.filter(PushSubscription.endpoint == endpoint)

    removed = 0
    for row in query.all():
        db.delete(row)
        removed += 1

    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error removing push subscriptions of patient {patient_id}: {str(e)}")
        raise OperationFailedException("unsubscribe_failed")

    logger.info(f"Removed {removed} push subscription(s) of patient {patient_id}")
    return removed


def build_payload(data: NotificationCreate) -> str:
    return json.dumps({
        "title": data.title,
        "body": data.body,
        "data": {"url": data.url, "from": "CLINIC"},
    })


def send_to_patient(db: Session, clinic_id: int, patient_id: str, data: NotificationCreate) -> Dict[str, int]:
    """
    Push a message to every subscription of a patient.

    Returns:
        Dict with ``sent``, ``failed`` and ``pruned`` counts
    """
    if not settings.vapid_private_key:
        raise PushNotConfiguredException()

    patient = get_clinic_patient(db, clinic_id, patient_id)
    subscriptions: List[PushSubscription] = (
        db.query(PushSubscription).filter(PushSubscription.patient_id == patient.id).all()
    )

    payload = build_payload(data)
    counts = {"sent": 0, "failed": 0, "pruned": 0}

    for subscription in subscriptions:
        try:
            webpush(
                subscription_info=subscription.subscription_info(),
                data=payload,
                vapid_private_key=settings.vapid_private_key,
                vapid_claims={"sub": settings.vapid_contact},
            )
            counts["sent"] += 1
        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else None
            if status_code in GONE_STATUS_CODES:
                logger.info(f"Pruning expired push subscription {subscription.id} (HTTP {status_code})")
                db.delete(subscription)
                counts["pruned"] += 1
            else:
                logger.warning(f"Push to subscription {subscription.id} failed: {str(e)}")
                counts["failed"] += 1
        except RequestException as e:
            logger.warning(f"Push service unreachable for subscription {subscription.id}: {str(e)}")
            counts["failed"] += 1

    if counts["pruned"]:
        try:
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Error pruning push subscriptions of patient {patient_id}: {str(e)}")

    logger.info(f"Push to patient {patient_id}: {counts}")
    return counts
