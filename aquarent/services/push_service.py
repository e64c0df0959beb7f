"""Push notification channel"""

from typing import List, Optional
import asyncio
import json
import logging

from firebase_admin import messaging
from firebase_admin.exceptions import FirebaseError
from pywebpush import webpush, WebPushException

from aquarent.core.firebase import initialize_firebase
from aquarent.core.notification_config import PushConfig
from aquarent.models.notification import NotificationChannel
from aquarent.services.channels import ChannelSender
from aquarent.services.user_directory import PushTarget, Recipient, UserDirectory

logger = logging.getLogger(__name__)

FCM_ENDPOINT_PREFIX = "https://fcm.googleapis.com/fcm/send/"

class PushNotificationService(ChannelSender):
    """
    Push to every registered device of a user

    With the ``webpush`` provider each subscription is addressed through the
    Web Push protocol using its endpoint and keys, signed with VAPID. With
    ``fcm`` the registration token is taken from an FCM endpoint and sent
    through Firebase Cloud Messaging.
    """

    channel = NotificationChannel.PUSH

    def __init__(self, config: PushConfig, directory: UserDirectory):
        self.config = config
        self.directory = directory
        if not config.enabled:
            logger.warning(f"Push service is disabled - {config.provider} not configured")

    async def destinations(self, recipient: Recipient) -> List[PushTarget]:
        return await self.directory.find_subscriptions_by_user(recipient.id)

    async def attempt(self, destination: PushTarget, subject: Optional[str], body: str) -> bool:
        if not self.config.enabled:
            logger.info(f"Push (disabled): To {destination.endpoint} - {subject}")
            return True

        try:
            loop = asyncio.get_running_loop()
            if self.config.provider == "fcm":
                return await loop.run_in_executor(None, self._send_fcm_sync, destination, subject, body)
            return await loop.run_in_executor(None, self._send_webpush_sync, destination, subject, body)
        except Exception as e:
            logger.error(f"Error sending push notification to {destination.endpoint}: {str(e)}")
            return False

    def _send_webpush_sync(self, target: PushTarget, title: Optional[str], body: str) -> bool:
        try:
            webpush(
                subscription_info=target.as_subscription_info(),
                data=json.dumps({"title": title or "", "body": body}),
                vapid_private_key=self.config.vapid_private_key,
                vapid_claims={"sub": self.config.vapid_claims_email},
                ttl=self.config.ttl,
            )
            logger.info(f"Push notification sent to {target.endpoint}")
            return True

        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"Web push rejected by {target.endpoint} ({status}): {str(e)}")
            return False

    def _send_fcm_sync(self, target: PushTarget, title: Optional[str], body: str) -> bool:
        if not target.endpoint.startswith(FCM_ENDPOINT_PREFIX):
            logger.warning(f"Not an FCM endpoint, skipping: {target.endpoint}")
            return False

        app = initialize_firebase(self.config)
        if app is None:
            return False

        token = target.endpoint[len(FCM_ENDPOINT_PREFIX):]
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            token=token,
        )
        try:
            message_id = messaging.send(message, app=app)
            logger.info(f"FCM push sent, message id: {message_id}")
            return True

        except FirebaseError as e:
            logger.error(f"FCM error for {target.endpoint}: {str(e)}")
            return False
