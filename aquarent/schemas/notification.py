"""Notification request and response schemas"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

from aquarent.models.notification import (
    NotificationChannel,
    NotificationStatus,
    NotificationType,
)

class SendNotificationRequest(BaseModel):
    """Body of POST /notifications"""

    user_id: str
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    type: NotificationType
    channels: List[NotificationChannel] = Field(min_length=1)
    reference_id: Optional[str] = None
    reference_type: Optional[str] = None
    scheduled_at: Optional[datetime] = None

    @field_validator("channels")
    @classmethod
    def dedupe_channels(cls, v: List[NotificationChannel]) -> List[NotificationChannel]:
        return list(dict.fromkeys(v))

class NotificationResponse(BaseModel):
    """A stored notification"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    message: str
    type: str
    reference_id: Optional[str] = None
    reference_type: Optional[str] = None
    channels: List[str]
    status: NotificationStatus
    scheduled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

class SendNotificationResponse(BaseModel):
    message: str
    notification: NotificationResponse

class NotificationDetailResponse(BaseModel):
    notification: NotificationResponse

class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]

class SweepResponse(BaseModel):
    sent: int
    failed: int
    skipped: int
    sent_ids: List[str]
    failed_ids: List[str]
    skipped_ids: List[str]

def to_response(notification: Any) -> NotificationResponse:
    data: Dict[str, Any] = notification.to_dict()
    return NotificationResponse(**data)
