"""Read-only lookups of users and their push registrations"""

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from aquarent.models.push_subscription import PushSubscription
from aquarent.models.user import User

@dataclass(frozen=True)
class Recipient:
    """Contact fields of a user"""

    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None

@dataclass(frozen=True)
class PushTarget:
    """One registered push endpoint"""

    endpoint: str
    p256dh: str
    auth: str

    def as_subscription_info(self) -> dict:
        """Shape expected by the Web Push protocol helpers"""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }

class UserDirectory:
    """User and push subscription lookups"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def find_user_by_id(self, user_id: str) -> Optional[Recipient]:
        async with self.session_factory() as session:
            user = await session.get(User, user_id)
            if not user:
                return None
            return Recipient(
                id=user.id,
                email=user.email or None,
                phone=user.phone or None,
                name=user.name,
            )

    async def find_subscriptions_by_user(self, user_id: str) -> List[PushTarget]:
        stmt = select(PushSubscription).where(PushSubscription.user_id == user_id)
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [
                PushTarget(endpoint=s.endpoint, p256dh=s.p256dh, auth=s.auth)
                for s in result.scalars().all()
            ]
