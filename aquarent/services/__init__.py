"""Services package"""

from .channels import ChannelRegistry, ChannelSender
from .email_service import EmailService
from .sms_service import SMSService
from .whatsapp_service import WhatsAppService
from .push_service import PushNotificationService
from .notification_dispatcher import NotificationDispatcher
from .notification_sweeper import NotificationSweeper
from .notification_engine import NotificationEngine, build_notification_engine

__all__ = [
    "ChannelRegistry",
    "ChannelSender",
    "EmailService",
    "SMSService",
    "WhatsAppService",
    "PushNotificationService",
    "NotificationDispatcher",
    "NotificationSweeper",
    "NotificationEngine",
    "build_notification_engine"
]
