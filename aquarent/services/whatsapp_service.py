"""WhatsApp channel via Twilio or the Meta Cloud API"""

from typing import Any, Dict, List, Optional
import asyncio
import logging

import httpx
from twilio.rest import Client
from twilio.base.exceptions import TwilioException

from aquarent.core.notification_config import ChatConfig
from aquarent.models.notification import NotificationChannel
from aquarent.services.channels import ChannelSender
from aquarent.services.user_directory import Recipient
from aquarent.utils.validators import format_phone_number

logger = logging.getLogger(__name__)

class WhatsAppService(ChannelSender):
    """Chat-app messages to the user's phone number"""

    channel = NotificationChannel.WHATSAPP

    def __init__(
        self,
        config: ChatConfig,
        client: Optional[Client] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config
        self.client = client
        self.http_client = http_client

        if not config.enabled:
            logger.warning(f"WhatsApp service is disabled - {config.provider} not configured")
        elif config.provider == "twilio" and self.client is None:
            self.client = Client(config.account_sid, config.auth_token)

    async def destinations(self, recipient: Recipient) -> List[str]:
        return [recipient.phone] if recipient.phone else []

    async def attempt(self, destination: str, subject: Optional[str], body: str) -> bool:
        try:
            phone = format_phone_number(destination, self.config.default_region)

            if not self.config.enabled:
                logger.info(f"WhatsApp (disabled): To {phone} - {body}")
                return True

            if self.config.provider == "meta":
                return await self._send_meta(phone, body)
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, self._send_twilio_sync, phone, body)
        except Exception as e:
            logger.error(f"Failed to send WhatsApp message to {destination}: {str(e)}")
            return False

    def _send_twilio_sync(self, phone: str, body: str) -> bool:
        try:
            message = self.client.messages.create(
                from_=f"whatsapp:{self.config.from_number}",
                to=f"whatsapp:{phone}",
                body=body
            )
            logger.info(f"WhatsApp message sent to {phone}, SID: {message.sid}")
            return True

        except TwilioException as e:
            logger.error(f"Twilio WhatsApp error for {phone}: {str(e)}")
            return False

    def build_meta_payload(self, phone: str, body: str) -> Dict[str, Any]:
        """Cloud API message body, a template message when one is configured"""
        payload: Dict[str, Any] = {
            "messaging_product": "whatsapp",
            "to": phone.lstrip("+"),
        }
        if self.config.template_name:
            payload["type"] = "template"
            payload["template"] = {
                "name": self.config.template_name,
                "language": {"code": self.config.template_lang},
                "components": [
                    {
                        "type": "body",
                        "parameters": [{"type": "text", "text": body}],
                    }
                ],
            }
        else:
            payload["type"] = "text"
            payload["text"] = {"body": body}
        return payload

    async def _send_meta(self, phone: str, body: str) -> bool:
        url = f"{self.config.api_url}/{self.config.phone_number_id}/messages"
        headers = {"Authorization": f"Bearer {self.config.access_token}"}
        payload = self.build_meta_payload(phone, body)

        if self.http_client is not None:
            response = await self.http_client.post(url, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                response = await client.post(url, json=payload, headers=headers)

        if response.is_error:
            logger.error(
                f"Meta WhatsApp error for {phone}: "
                f"{response.status_code} {response.text}"
            )
            return False

        logger.info(f"WhatsApp message sent to {phone} via Meta")
        return True
