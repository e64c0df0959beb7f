"""Wiring of the notification dispatcher, sweep and channel senders"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from aquarent.core.notification_config import NotificationConfig
from aquarent.services.channels import ChannelRegistry
from aquarent.services.email_service import EmailService
from aquarent.services.notification_dispatcher import NotificationDispatcher
from aquarent.services.notification_store import NotificationStore
from aquarent.services.notification_sweeper import NotificationSweeper
from aquarent.services.push_service import PushNotificationService
from aquarent.services.sms_service import SMSService
from aquarent.services.user_directory import UserDirectory
from aquarent.services.whatsapp_service import WhatsAppService

@dataclass
class NotificationEngine:
    store: NotificationStore
    directory: UserDirectory
    registry: ChannelRegistry
    dispatcher: NotificationDispatcher
    sweeper: NotificationSweeper

def default_registry(config: NotificationConfig, directory: UserDirectory) -> ChannelRegistry:
    """Mail, SMS, WhatsApp and push senders built from the config"""
    return ChannelRegistry([
        EmailService(config.mail),
        SMSService(config.sms),
        WhatsAppService(config.chat),
        PushNotificationService(config.push, directory),
    ])

def build_notification_engine(
    session_factory: async_sessionmaker[AsyncSession],
    config: NotificationConfig,
    registry: Optional[ChannelRegistry] = None
) -> NotificationEngine:
    store = NotificationStore(session_factory)
    directory = UserDirectory(session_factory)
    registry = registry or default_registry(config, directory)
    dispatcher = NotificationDispatcher(store, directory, registry, config)
    sweeper = NotificationSweeper(store, directory, dispatcher, config.sweep)
    return NotificationEngine(
        store=store,
        directory=directory,
        registry=registry,
        dispatcher=dispatcher,
        sweeper=sweeper,
    )

@lru_cache()
def get_notification_engine() -> NotificationEngine:
    """Process-wide engine on the application database and settings"""
    from aquarent.core.config import settings
    from aquarent.core.database import AsyncSessionLocal

    return build_notification_engine(AsyncSessionLocal, NotificationConfig.from_settings(settings))
