"""
Custom exception classes
Provides consistent error responses across the application
"""

from fastapi import HTTPException, status
from typing import Any, Dict, Optional

class AquaRentException(HTTPException):
    """Base exception class for AquaRent application"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

class BadRequestException(AquaRentException):
    """400 Bad Request"""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )

class NotFoundException(AquaRentException):
    """404 Not Found"""

    def __init__(self, detail: str = "Not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )

# Notification engine exceptions
class UserNotFoundException(NotFoundException):
    """Referenced user does not exist"""

    def __init__(self, user_id: str):
        super().__init__(
            detail=f"User {user_id} not found",
            error_code="USER_NOT_FOUND"
        )
        self.user_id = user_id

class NotificationNotFoundException(NotFoundException):
    """Notification does not exist"""

    def __init__(self, notification_id: str):
        super().__init__(
            detail=f"Notification {notification_id} not found",
            error_code="NOTIFICATION_NOT_FOUND"
        )

class InvalidArgumentException(BadRequestException):
    """Malformed input to the notification engine"""

    def __init__(self, detail: str):
        super().__init__(detail=detail, error_code="INVALID_ARGUMENT")

class ChannelDeliveryError(Exception):
    """A single channel attempt failed. Never leaves the channel boundary."""

    def __init__(self, channel: str, message: str):
        super().__init__(f"{channel}: {message}")
        self.channel = channel

class SweepRecordError(Exception):
    """Processing one due notification failed; the record is marked failed."""

    def __init__(self, notification_id: str, cause: BaseException):
        super().__init__(f"Notification {notification_id}: {cause!r}")
        self.notification_id = notification_id
        self.cause = cause

class InvalidTransitionError(Exception):
    """Status change not allowed by the notification state machine"""

    def __init__(self, current: str, new: str):
        super().__init__(f"Cannot move notification from {current} to {new}")
        self.current = current
        self.new = new
