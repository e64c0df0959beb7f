"""Push subscription model"""

from sqlalchemy import Column, String, ForeignKey, Text
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, SerializableMixin

class PushSubscription(Base, TimestampedModel, SerializableMixin):
    """Web Push subscription, one row per registered browser or device"""

    __tablename__ = "push_subscriptions"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    endpoint = Column(Text, nullable=False)
    p256dh = Column(String(255), nullable=False)  # P-256 ECDH public key
    auth = Column(String(255), nullable=False)  # auth secret

    # Relationships
    user = relationship("User", back_populates="push_subscriptions")
