"""SMS channel with Twilio integration"""

from typing import List, Optional
import asyncio
import logging

from twilio.rest import Client
from twilio.base.exceptions import TwilioException

from aquarent.core.notification_config import SMSConfig
from aquarent.models.notification import NotificationChannel
from aquarent.services.channels import ChannelSender
from aquarent.services.user_directory import Recipient
from aquarent.utils.validators import format_phone_number

logger = logging.getLogger(__name__)

MAX_SMS_LENGTH = 1600

class SMSService(ChannelSender):
    """SMS service using Twilio"""

    channel = NotificationChannel.SMS

    def __init__(self, config: SMSConfig, client: Optional[Client] = None):
        self.config = config
        self.client = client

        if self.client is None and config.enabled:
            self.client = Client(config.account_sid, config.auth_token)
        elif self.client is None:
            logger.warning("SMS service is disabled - Twilio credentials not configured")

    async def destinations(self, recipient: Recipient) -> List[str]:
        return [recipient.phone] if recipient.phone else []

    async def attempt(self, destination: str, subject: Optional[str], body: str) -> bool:
        """
        Send SMS asynchronously

        The subject is not part of an SMS and is ignored.
        """
        if len(body) > MAX_SMS_LENGTH:
            body = body[:MAX_SMS_LENGTH - 3] + "..."

        try:
            to_phone = format_phone_number(destination, self.config.default_region)

            if self.client is None:
                logger.info(f"SMS (disabled): To {to_phone} - {body}")
                return True

            # Run in thread pool
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, self._send_sms_sync, to_phone, body)
        except Exception as e:
            logger.error(f"Failed to send SMS to {destination}: {str(e)}")
            return False

    def _send_sms_sync(self, to_phone: str, body: str) -> bool:
        """Send SMS synchronously"""
        kwargs = {"body": body, "to": to_phone}

        # Use messaging service if available for better deliverability
        if self.config.messaging_service_sid:
            kwargs["messaging_service_sid"] = self.config.messaging_service_sid
        else:
            kwargs["from_"] = self.config.from_number

        try:
            message = self.client.messages.create(**kwargs)
            logger.info(f"SMS sent to {to_phone}, SID: {message.sid}")
            return True

        except TwilioException as e:
            logger.error(f"Twilio error sending SMS to {to_phone}: {str(e)}")
            return False
