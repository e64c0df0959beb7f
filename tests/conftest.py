"""Pytest configuration and shared fixtures.

Organization:
    - Database Fixtures: a throwaway SQLite database per test, seeded users
    - Channel Fixtures: recording senders standing in for the real gateways
    - Engine Fixtures: dispatcher, store and sweep wired onto the test database
    - Application Fixtures: FastAPI app and HTTP client
"""

import asyncio
import os
from datetime import timedelta
from typing import Any, AsyncGenerator, Callable, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Keep the app from touching the real database on startup
os.environ.setdefault("ENVIRONMENT", "test")

from aquarent.core.notification_config import NotificationConfig, SweepConfig
from aquarent.models import Base, Notification, NotificationStatus, PushSubscription, User
from aquarent.models.notification import NotificationChannel, serialize_channels
from aquarent.services.channels import ChannelRegistry, ChannelSender
from aquarent.services.notification_engine import build_notification_engine
from aquarent.services.user_directory import Recipient, UserDirectory
from aquarent.utils.helpers import generate_id, utcnow


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine(tmp_path):
    """Async engine on a fresh SQLite file with all tables created.

    A file rather than ``:memory:`` so that every session, including those of
    concurrent sweep workers, sees the same database.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'notifications.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def users(session_factory):
    """Seeded users.

    ``full`` has an email address and a phone number, ``phone_only`` has
    no email address but two registered push devices.
    """
    async with session_factory() as session:
        async with session.begin():
            session.add_all([
                User(id="user_full", name="Asha", email="asha@example.com", phone="9876543210"),
                User(id="user_phone", name="Ravi", email=None, phone="+919812345678"),
                PushSubscription(
                    id="sub_1",
                    user_id="user_phone",
                    endpoint="https://push.example.com/device-1",
                    p256dh="key-1",
                    auth="auth-1",
                ),
                PushSubscription(
                    id="sub_2",
                    user_id="user_phone",
                    endpoint="https://push.example.com/device-2",
                    p256dh="key-2",
                    auth="auth-2",
                ),
            ])
    return {"full": "user_full", "phone_only": "user_phone"}


@pytest.fixture
def insert_notification(session_factory):
    """Write a notification row directly, bypassing the dispatcher."""

    async def _insert(
        user_id: str = "user_full",
        channels: Any = (NotificationChannel.EMAIL,),
        status: NotificationStatus = NotificationStatus.PENDING,
        scheduled_at=None,
        title: str = "Filter change due",
    ) -> str:
        now = utcnow()
        notification_id = generate_id("notif")
        blob = channels if isinstance(channels, str) else serialize_channels(channels)
        async with session_factory() as session:
            async with session.begin():
                session.add(Notification(
                    id=notification_id,
                    user_id=user_id,
                    title=title,
                    message="Your purifier filter is due for replacement",
                    type="service_reminder",
                    channels=blob,
                    status=status.value,
                    scheduled_at=scheduled_at or now - timedelta(minutes=5),
                    created_at=now,
                    updated_at=now,
                ))
        return notification_id

    return _insert


# ============================================================================
# Channel Fixtures
# ============================================================================


class RecordingSender(ChannelSender):
    """Channel sender that records every attempt instead of delivering it."""

    def __init__(
        self,
        channel: NotificationChannel,
        lookup: Callable,
        result: Any = True,
        error: Optional[Exception] = None,
        delay: float = 0,
    ):
        self.channel = channel
        self.lookup = lookup
        self.result = result
        self.error = error
        self.delay = delay
        self.calls: List[tuple] = []
        self.started = asyncio.Event()

    async def destinations(self, recipient: Recipient):
        destinations = self.lookup(recipient)
        if asyncio.iscoroutine(destinations):
            destinations = await destinations
        return destinations

    async def attempt(self, destination, subject, body) -> bool:
        self.calls.append((destination, subject, body))
        self.started.set()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if callable(self.result):
            return self.result(destination)
        return self.result


@pytest.fixture
def senders(session_factory):
    """One recording sender per channel, keyed by channel."""
    directory = UserDirectory(session_factory)
    return {
        NotificationChannel.EMAIL: RecordingSender(
            NotificationChannel.EMAIL, lambda r: [r.email] if r.email else []
        ),
        NotificationChannel.SMS: RecordingSender(
            NotificationChannel.SMS, lambda r: [r.phone] if r.phone else []
        ),
        NotificationChannel.WHATSAPP: RecordingSender(
            NotificationChannel.WHATSAPP, lambda r: [r.phone] if r.phone else []
        ),
        NotificationChannel.PUSH: RecordingSender(
            NotificationChannel.PUSH, lambda r: directory.find_subscriptions_by_user(r.id)
        ),
    }


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def notification_config() -> NotificationConfig:
    return NotificationConfig(sweep=SweepConfig(record_timeout=5.0))


@pytest.fixture
def notifications(session_factory, senders, notification_config):
    """Notification engine wired to the test database and recording senders."""
    return build_notification_engine(
        session_factory,
        notification_config,
        registry=ChannelRegistry(senders.values()),
    )


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app(notifications):
    """FastAPI application whose routes use the test notification engine."""
    from aquarent.api.v1.notifications.router import get_engine
    from aquarent.main import create_app

    application = create_app()
    application.dependency_overrides[get_engine] = lambda: notifications
    return application


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
