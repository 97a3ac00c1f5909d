from typing import Optional
from pydantic import BaseModel, Field


class SubscriptionKeys(BaseModel):
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class BrowserSubscription(BaseModel):
    """``PushSubscription.toJSON()`` as produced by the browser"""
    endpoint: str = Field(..., min_length=1)
    keys: SubscriptionKeys


class SubscriptionCreate(BaseModel):
    subscription: BrowserSubscription


class SubscriptionDelete(BaseModel):
    """Without an endpoint every subscription of the patient is removed"""
    endpoint: Optional[str] = None


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    url: Optional[str] = None
