"""
Push Subscription Model - Web Push endpoints registered by patient devices.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..database import Base


class PushSubscription(Base):
    """
    Push Subscription Model

    Fields:
    - patient_id: Foreign key to Patient model
    - endpoint: Push service URL (unique per browser subscription)
    - p256dh / auth: Client keys used to encrypt the payload
    """
    __tablename__ = "push_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    endpoint = Column(String, unique=True, nullable=False)
    p256dh = Column(String, nullable=False)
    auth = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    patient = relationship("Patient")

    def subscription_info(self) -> dict:
        """Shape expected by ``pywebpush.webpush``"""
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}
