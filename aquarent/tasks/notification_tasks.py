"""Notification Celery tasks"""

from celery.utils.log import get_task_logger
from typing import Any, Dict, List, Optional
import asyncio
from datetime import datetime

from aquarent.core.celery_app import celery_app
from aquarent.core.config import settings
from aquarent.core.database import task_session_factory
from aquarent.core.notification_config import NotificationConfig
from aquarent.services.notification_engine import build_notification_engine
from aquarent.utils.helpers import as_utc

logger = get_task_logger(__name__)

async def _run_sweep() -> Dict[str, Any]:
    async with task_session_factory() as session_factory:
        notifications = build_notification_engine(
            session_factory, NotificationConfig.from_settings(settings)
        )
        result = await notifications.sweeper.process_pending_notifications()
        return result.summary()

async def _run_send(payload: Dict[str, Any]) -> str:
    async with task_session_factory() as session_factory:
        notifications = build_notification_engine(
            session_factory, NotificationConfig.from_settings(settings)
        )
        return await notifications.dispatcher.send(**payload)

@celery_app.task(name="process_pending_notifications")
def process_pending_notifications_task() -> Dict[str, Any]:
    """Deliver deferred notifications whose time has come"""
    try:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            summary = loop.run_until_complete(_run_sweep())
        finally:
            loop.close()

        if summary["sent"] or summary["failed"]:
            logger.info(
                f"Pending notifications: {summary['sent']} sent, "
                f"{summary['failed']} failed, {summary['skipped']} skipped"
            )
        return summary

    except Exception as e:
        logger.error(f"Error processing pending notifications: {str(e)}")
        raise

@celery_app.task(name="send_notification")
def send_notification_task(
    user_id: str,
    title: str,
    message: str,
    type: str,
    channels: List[str],
    reference_id: Optional[str] = None,
    reference_type: Optional[str] = None,
    scheduled_at: Optional[str] = None
) -> str:
    """Send a notification from code that cannot await the dispatcher"""
    payload = {
        "user_id": user_id,
        "title": title,
        "message": message,
        "type": type,
        "channels": channels,
        "reference_id": reference_id,
        "reference_type": reference_type,
        "scheduled_at": as_utc(datetime.fromisoformat(scheduled_at)) if scheduled_at else None,
    }
    try:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            notification_id = loop.run_until_complete(_run_send(payload))
        finally:
            loop.close()

        logger.info(f"Notification {notification_id} created for user {user_id}")
        return notification_id

    except Exception as e:
        logger.error(f"Error sending notification to user {user_id}: {str(e)}")
        raise
