"""Models package initialization"""

from .base import Base
from .user import User
from .push_subscription import PushSubscription
from .notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
    NotificationType,
)

# Export all models
__all__ = [
    "Base",
    "User",
    "PushSubscription",
    "Notification",
    "NotificationChannel",
    "NotificationStatus",
    "NotificationType",
]
