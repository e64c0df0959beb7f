"""
Durable storage for notification records

Every operation runs in its own short session, so the dispatcher and any
number of concurrent sweep workers can share one store instance.
"""

from datetime import datetime
from typing import List, Optional, Tuple
import logging

from sqlalchemy import select, update, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from aquarent.models.notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
)
from aquarent.services.notification_state_machine import (
    NotificationStateMachine,
    notification_state_machine,
)
from aquarent.utils.helpers import as_utc, utcnow

logger = logging.getLogger(__name__)

class NotificationStore:
    """Notification table access for the dispatcher and the sweep"""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        state_machine: NotificationStateMachine = notification_state_machine
    ):
        self.session_factory = session_factory
        self.state_machine = state_machine

    async def insert(self, notification: Notification) -> Notification:
        """Persist a new notification record"""
        async with self.session_factory() as session:
            async with session.begin():
                session.add(notification)
        return notification

    async def get(self, notification_id: str) -> Optional[Notification]:
        async with self.session_factory() as session:
            return await session.get(Notification, notification_id)

    async def list_due(
        self,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
        after: Optional[Tuple[datetime, str]] = None
    ) -> List[Notification]:
        """
        Pending notifications whose scheduled time has elapsed

        Args:
            now: Cut-off time, defaults to the current time
            limit: Maximum number of records, oldest schedule first
            after: (scheduled_at, id) of the last record already seen;
                only records ordered after it are returned

        Returns:
            Detached notification records
        """
        now = as_utc(now) or utcnow()
        stmt = select(Notification).where(
            and_(
                Notification.status == NotificationStatus.PENDING.value,
                Notification.scheduled_at.is_not(None),
                Notification.scheduled_at <= now
            )
        )
        if after is not None:
            last_scheduled_at, last_id = as_utc(after[0]), after[1]
            stmt = stmt.where(
                or_(
                    Notification.scheduled_at > last_scheduled_at,
                    and_(
                        Notification.scheduled_at == last_scheduled_at,
                        Notification.id > last_id
                    )
                )
            )

        stmt = stmt.order_by(Notification.scheduled_at, Notification.id)
        if limit:
            stmt = stmt.limit(limit)

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def transition(
        self,
        notification_id: str,
        new_status: NotificationStatus,
        now: Optional[datetime] = None
    ) -> bool:
        """
        Move a pending notification to a terminal status

        The update is conditional on the row still being pending, so a
        record another worker already finished is left untouched.

        Returns:
            True if this call performed the transition
        """
        self.state_machine.ensure_transition(NotificationStatus.PENDING, new_status)

        stmt = (
            update(Notification)
            .where(
                and_(
                    Notification.id == notification_id,
                    Notification.status == NotificationStatus.PENDING.value
                )
            )
            .values(status=NotificationStatus(new_status).value, updated_at=now or utcnow())
            .execution_options(synchronize_session=False)
        )

        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt)

        if result.rowcount != 1:
            logger.warning(
                f"Notification {notification_id} was not pending, "
                f"status {new_status.value} not applied"
            )
            return False
        return True

    async def list_for_user(
        self,
        user_id: str,
        status: Optional[NotificationStatus] = None,
        type: Optional[str] = None,
        channel: Optional[NotificationChannel] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[Notification]:
        """Notifications for one user, newest first"""
        stmt = select(Notification).where(Notification.user_id == user_id)

        if status:
            stmt = stmt.where(Notification.status == NotificationStatus(status).value)
        if type:
            stmt = stmt.where(Notification.type == type)
        if channel:
            stmt = stmt.where(
                Notification.channels.contains(f'"{NotificationChannel(channel).value}"')
            )

        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
        stmt = stmt.limit(limit).offset(offset)

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())
