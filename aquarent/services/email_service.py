"""Email channel over SMTP"""

from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import List, Optional
import logging

import aiosmtplib

from aquarent.core.notification_config import MailConfig
from aquarent.models.notification import NotificationChannel
from aquarent.services.channels import ChannelSender
from aquarent.services.user_directory import Recipient

logger = logging.getLogger(__name__)

class EmailService(ChannelSender):
    """Plain-text email via an SMTP relay"""

    channel = NotificationChannel.EMAIL

    def __init__(self, config: MailConfig):
        self.config = config
        if not config.enabled:
            logger.warning("Email service is disabled - SMTP host not configured")

    async def destinations(self, recipient: Recipient) -> List[str]:
        return [recipient.email] if recipient.email else []

    def build_message(self, to_email: str, subject: Optional[str], body: str) -> MIMEMultipart:
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject or ""
        msg['From'] = f"{self.config.from_name} <{self.config.from_email}>"
        msg['To'] = to_email
        msg.attach(MIMEText(body, 'plain', 'utf-8'))
        return msg

    async def attempt(self, destination: str, subject: Optional[str], body: str) -> bool:
        """
        Send one email

        Args:
            destination: Recipient address
            subject: Subject line
            body: Plain text body

        Returns:
            True if the relay accepted the message
        """
        if not self.config.enabled:
            logger.info(f"Email (disabled): To {destination} - {subject}")
            return True

        try:
            await aiosmtplib.send(
                self.build_message(destination, subject, body),
                hostname=self.config.host,
                port=self.config.port,
                username=self.config.username,
                password=self.config.password,
                use_tls=self.config.use_tls,
                start_tls=self.config.start_tls and not self.config.use_tls,
                timeout=self.config.timeout,
            )
            logger.info(f"Email sent successfully to {destination}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {destination}: {str(e)}")
            return False
