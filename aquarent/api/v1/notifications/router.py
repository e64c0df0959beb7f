"""Notification endpoints"""

from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from aquarent.core.exceptions import NotificationNotFoundException
from aquarent.models.notification import NotificationChannel, NotificationStatus, NotificationType
from aquarent.schemas.notification import (
    NotificationDetailResponse,
    NotificationListResponse,
    SendNotificationRequest,
    SendNotificationResponse,
    SweepResponse,
    to_response,
)
from aquarent.services.notification_engine import NotificationEngine, get_notification_engine

router = APIRouter()

def get_engine() -> NotificationEngine:
    return get_notification_engine()

@router.post("/", response_model=SendNotificationResponse, status_code=status.HTTP_201_CREATED)
async def send_notification(
    request: SendNotificationRequest,
    engine: NotificationEngine = Depends(get_engine)
):
    """Send a notification now, or schedule it for later"""
    notification_id = await engine.dispatcher.send(
        user_id=request.user_id,
        title=request.title,
        message=request.message,
        type=request.type,
        channels=request.channels,
        reference_id=request.reference_id,
        reference_type=request.reference_type,
        scheduled_at=request.scheduled_at,
    )
    notification = await engine.store.get(notification_id)

    return {"message": "Notification sent", "notification": to_response(notification)}

@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    user_id: str,
    status: Optional[NotificationStatus] = None,
    type: Optional[NotificationType] = None,
    channel: Optional[NotificationChannel] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    engine: NotificationEngine = Depends(get_engine)
):
    """Notifications of a user, newest first"""
    notifications = await engine.store.list_for_user(
        user_id,
        status=status,
        type=type.value if type else None,
        channel=channel,
        limit=limit,
        offset=offset,
    )
    return {"notifications": [to_response(n) for n in notifications]}

@router.post("/process-pending", response_model=SweepResponse)
async def process_pending_notifications(engine: NotificationEngine = Depends(get_engine)):
    """Run one sweep of due pending notifications"""
    result = await engine.sweeper.process_pending_notifications()
    return result.summary()

@router.get("/{notification_id}", response_model=NotificationDetailResponse)
async def get_notification(
    notification_id: str,
    engine: NotificationEngine = Depends(get_engine)
):
    """Current delivery status of one notification"""
    notification = await engine.store.get(notification_id)
    if not notification:
        raise NotificationNotFoundException(notification_id)

    return {"notification": to_response(notification)}
