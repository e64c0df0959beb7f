"""
Notification model for user communications
"""

from sqlalchemy import Column, String, Text, ForeignKey, Index, DateTime
from sqlalchemy.orm import relationship
from typing import Iterable, List
import enum
import json

from .base import Base, TimestampedModel, SerializableMixin

class NotificationType(str, enum.Enum):
    ORDER_CONFIRMATION = "order_confirmation"
    ORDER_UPDATE = "order_update"
    PAYMENT_SUCCESS = "payment_success"
    PAYMENT_FAILURE = "payment_failure"
    SERVICE_REQUEST = "service_request"
    SERVICE_REMINDER = "service_reminder"
    ASSIGNMENT_NOTIFICATION = "assignment_notification"
    STATUS_UPDATE = "status_update"
    RENTAL_REMINDER = "rental_reminder"
    PROMOTION = "promotion"

class NotificationChannel(str, enum.Enum):
    EMAIL = "email"
    SMS = "sms"
    WHATSAPP = "whatsapp"
    PUSH = "push"

class NotificationStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"

def normalize_channels(channels: Iterable) -> List[NotificationChannel]:
    """
    Coerce to an ordered set of channels

    Raises ValueError for an unknown channel tag. Duplicates collapse
    onto their first occurrence.
    """
    result: List[NotificationChannel] = []
    for channel in channels:
        channel = NotificationChannel(channel)
        if channel not in result:
            result.append(channel)
    return result

def serialize_channels(channels: Iterable[NotificationChannel]) -> str:
    """Encode channels for the text column"""
    return json.dumps([NotificationChannel(c).value for c in channels])

def deserialize_channels(blob: str) -> List[NotificationChannel]:
    """
    Decode the stored channel blob

    Raises ValueError when the blob is not a JSON list of known channels.
    """
    data = json.loads(blob)
    if not isinstance(data, list):
        raise ValueError(f"Channel blob is not a list: {blob!r}")
    return normalize_channels(data)

class Notification(Base, TimestampedModel, SerializableMixin):
    """One logical notice to one user, delivered over one or more channels"""

    __tablename__ = "notifications"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False)

    # Notification content
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)

    # Business entity this is about, never dereferenced here
    reference_id = Column(String(64), nullable=True)
    reference_type = Column(String(50), nullable=True)

    # Delivery
    channels = Column(Text, nullable=False)  # JSON array of channel tags
    status = Column(String(20), nullable=False, default=NotificationStatus.PENDING.value)
    scheduled_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="notifications")

    # Indexes
    __table_args__ = (
        Index("idx_notifications_status_scheduled", "status", "scheduled_at"),
        Index("idx_notifications_user_created", "user_id", "created_at"),
    )

    @property
    def channel_list(self) -> List[NotificationChannel]:
        return deserialize_channels(self.channels)

    def to_dict(self, exclude=None):
        data = super().to_dict(exclude)
        if "channels" in data:
            try:
                data["channels"] = [c.value for c in self.channel_list]
            except ValueError:
                # unreadable blobs only exist on records the sweep marked failed
                data["channels"] = []
        return data
