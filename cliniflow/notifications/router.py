"""
Notification Router - Web Push key, patient subscriptions and admin sends.
"""
from typing import Optional
from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import TokenPrincipal, require_admin, require_patient
from .schemas import SubscriptionCreate, SubscriptionDelete, NotificationCreate
from .service import get_public_key, save_subscription, delete_subscriptions, send_to_patient

router = APIRouter()


@router.get("/api/push/public-key")
def push_public_key():
    """
    Get the VAPID application server key used by the browser to subscribe
    """
    return {"ok": True, "publicKey": get_public_key()}


@router.post("/api/patient/{patient_id}/push-subscription", status_code=status.HTTP_201_CREATED)
def subscribe(
    patient_id: str,
    data: SubscriptionCreate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_patient)
):
    subscription = save_subscription(db, principal, patient_id, data.subscription)
    return {"ok": True, "subscriptionId": subscription.id}


@router.delete("/api/patient/{patient_id}/push-subscription")
def unsubscribe(
    patient_id: str,
    data: Optional[SubscriptionDelete] = Body(None),
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_patient)
):
    removed = delete_subscriptions(db, principal, patient_id, data.endpoint if data else None)
    return {"ok": True, "removed": removed}


@router.post("/api/admin/patients/{patient_id}/notify")
def notify_patient(
    patient_id: str,
    data: NotificationCreate,
    db: Session = Depends(get_db),
    principal: TokenPrincipal = Depends(require_admin)
):
    """
    Send a push notification to every device of a patient
    """
    return {"ok": True, **send_to_patient(db, principal.clinic_id, patient_id, data)}
