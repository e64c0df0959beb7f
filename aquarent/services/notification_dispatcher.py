"""Central notification dispatcher"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional
import logging

from aquarent.core.exceptions import (
    ChannelDeliveryError,
    InvalidArgumentException,
    UserNotFoundException,
)
from aquarent.core.monitoring import (
    notifications_created,
    record_channel_attempt,
    record_channel_skipped,
)
from aquarent.core.notification_config import NotificationConfig
from aquarent.models.notification import (
    Notification,
    NotificationChannel,
    NotificationType,
    normalize_channels,
    serialize_channels,
    deserialize_channels,
)
from aquarent.services.channels import ChannelRegistry
from aquarent.services.notification_state_machine import (
    NotificationStateMachine,
    notification_state_machine,
)
from aquarent.services.notification_store import NotificationStore
from aquarent.services.user_directory import Recipient, UserDirectory
from aquarent.utils.helpers import as_utc, generate_id, utcnow

logger = logging.getLogger(__name__)

@dataclass
class ChannelOutcome:
    """What happened on one channel during a fan-out"""

    channel: NotificationChannel
    attempted: int = 0
    delivered: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return self.attempted == 0 and not self.errors

    @property
    def succeeded(self) -> bool:
        # one reachable device is enough for multi-destination channels
        return self.delivered > 0

@dataclass
class FanOutReport:
    """Per-channel outcomes of one fan-out; logged, never persisted"""

    notification_id: str
    outcomes: Dict[NotificationChannel, ChannelOutcome] = field(default_factory=dict)

    @property
    def delivered_channels(self) -> List[NotificationChannel]:
        return [c for c, o in self.outcomes.items() if o.succeeded]

    @property
    def failed_channels(self) -> List[NotificationChannel]:
        return [c for c, o in self.outcomes.items() if not o.skipped and not o.succeeded]

    @property
    def skipped_channels(self) -> List[NotificationChannel]:
        return [c for c, o in self.outcomes.items() if o.skipped]

class NotificationDispatcher:
    """Creates notifications and fans them out across channels"""

    def __init__(
        self,
        store: NotificationStore,
        directory: UserDirectory,
        registry: ChannelRegistry,
        config: Optional[NotificationConfig] = None,
        state_machine: NotificationStateMachine = notification_state_machine
    ):
        self.store = store
        self.directory = directory
        self.registry = registry
        self.config = config or NotificationConfig()
        self.state_machine = state_machine

    async def send(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
        channels: Iterable[NotificationChannel],
        reference_id: Optional[str] = None,
        reference_type: Optional[str] = None,
        scheduled_at: Optional[datetime] = None
    ) -> str:
        """
        Send a notification to a user

        Args:
            user_id: User to notify
            title: Notification title
            message: Notification message
            type: Notification category
            channels: Channels to deliver on, at least one
            reference_id: Optional id of the related order, rental, etc.
            reference_type: Optional kind of the related entity
            scheduled_at: Deliver at this time instead of now

        Returns:
            ID of the created notification. Immediate delivery failures are
            logged and counted but do not affect the return value.

        Raises:
            InvalidArgumentException: channels empty or unknown, unknown type
            UserNotFoundException: user_id does not resolve
        """
        try:
            channel_list = normalize_channels(channels or [])
        except ValueError as e:
            raise InvalidArgumentException(f"Unknown notification channel: {e}")
        if not channel_list:
            raise InvalidArgumentException("At least one notification channel is required")

        try:
            notification_type = NotificationType(type)
        except ValueError:
            raise InvalidArgumentException(f"Unknown notification type: {type}")

        recipient = await self.directory.find_user_by_id(user_id)
        if not recipient:
            raise UserNotFoundException(user_id)

        blob = serialize_channels(channel_list)
        if deserialize_channels(blob) != channel_list:
            raise InvalidArgumentException(f"Channels do not survive serialization: {channel_list}")

        notification_id = generate_id("notif")
        scheduled_at = as_utc(scheduled_at)

        now = utcnow()
        deferred = scheduled_at is not None and scheduled_at > now
        status = self.state_machine.initial_status(deferred)

        notification = Notification(
            id=notification_id,
            user_id=user_id,
            title=title,
            message=message,
            type=notification_type.value,
            reference_id=reference_id,
            reference_type=reference_type,
            channels=blob,
            status=status.value,
            scheduled_at=scheduled_at,
            created_at=now,
            updated_at=now,
        )
        await self.store.insert(notification)

        mode = "deferred" if deferred else "immediate"
        notifications_created.labels(type=notification_type.value, mode=mode).inc()
        logger.info(
            f"Notification {notification_id} created for user {user_id} "
            f"({mode}, channels: {blob})"
        )

        if deferred:
            return notification_id

        try:
            report = await self.fan_out(notification_id, recipient, title, message, channel_list)
            if report.failed_channels:
                logger.warning(
                    f"Notification {notification_id} not delivered on "
                    f"{[c.value for c in report.failed_channels]}"
                )
        except Exception:
            # best effort: the caller still gets the id, status stays sent
            logger.exception(f"Error sending notification {notification_id}")

        return notification_id

    async def fan_out(
        self,
        notification_id: str,
        recipient: Recipient,
        title: str,
        message: str,
        channels: Iterable[NotificationChannel]
    ) -> FanOutReport:
        """Attempt delivery on every channel, each independently of the others"""
        report = FanOutReport(notification_id=notification_id)
        for channel in channels:
            report.outcomes[channel] = await self._deliver_channel(
                notification_id, recipient, title, message, channel
            )
        return report

    async def _deliver_channel(
        self,
        notification_id: str,
        recipient: Recipient,
        title: str,
        message: str,
        channel: NotificationChannel
    ) -> ChannelOutcome:
        """Channel boundary: nothing raised in here reaches the caller"""
        outcome = ChannelOutcome(channel=channel)

        sender = self.registry.get(channel)
        if sender is None:
            logger.warning(f"No sender registered for channel {channel.value}")
            record_channel_skipped(channel.value)
            return outcome

        try:
            destinations = await sender.destinations(recipient)
        except Exception as e:
            error = ChannelDeliveryError(channel.value, f"destination lookup failed: {e}")
            logger.error(f"Notification {notification_id}: {error}")
            outcome.errors.append(str(error))
            record_channel_attempt(channel.value, False)
            return outcome

        if not destinations:
            logger.debug(
                f"Notification {notification_id}: no {channel.value} destination "
                f"for user {recipient.id}, skipping"
            )
            record_channel_skipped(channel.value)
            return outcome

        for destination in destinations:
            outcome.attempted += 1
            try:
                delivered = await sender.attempt(destination, title, message)
            except Exception as e:
                error = ChannelDeliveryError(channel.value, str(e))
                logger.error(f"Notification {notification_id}: {error}")
                outcome.errors.append(str(error))
                delivered = False

            if delivered:
                outcome.delivered += 1

        record_channel_attempt(channel.value, outcome.succeeded)
        if not outcome.succeeded:
            logger.error(
                f"Notification {notification_id}: {channel.value} delivery failed "
                f"for all {outcome.attempted} destination(s)"
            )
        return outcome
