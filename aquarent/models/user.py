"""
User model
Only the contact fields the notification engine reads are mapped here;
the users table itself is owned by the account service.
"""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, SerializableMixin

class User(Base, TimestampedModel, SerializableMixin):
    """Registered customer, franchise owner or service agent"""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    phone = Column(String(20), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    name = Column(String(100), nullable=True)

    # Relationships
    notifications = relationship("Notification", back_populates="user")
    push_subscriptions = relationship("PushSubscription", back_populates="user")
