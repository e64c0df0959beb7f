"""
Explicit configuration for the notification engine and its channel providers.

Senders and the dispatcher receive one of these objects in their constructor
instead of reading the process environment themselves. ``from_settings`` is the
only place that maps environment settings onto it.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from .config import Settings


class MailConfig(BaseModel):
    """SMTP gateway options"""

    host: Optional[str] = None
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    from_email: str = "no-reply@aquarent.in"
    from_name: str = "AquaRent"
    use_tls: bool = False
    start_tls: bool = True
    timeout: float = 10.0

    @property
    def enabled(self) -> bool:
        return bool(self.host)


class SMSConfig(BaseModel):
    """Twilio SMS options"""

    account_sid: Optional[str] = None
    auth_token: Optional[str] = None
    from_number: Optional[str] = None
    messaging_service_sid: Optional[str] = None
    default_region: str = "IN"

    @property
    def enabled(self) -> bool:
        return bool(self.account_sid and self.auth_token)


class ChatConfig(BaseModel):
    """WhatsApp options for either Twilio or the Meta Cloud API"""

    provider: Literal["twilio", "meta"] = "twilio"
    default_region: str = "IN"

    # twilio
    account_sid: Optional[str] = None
    auth_token: Optional[str] = None
    from_number: Optional[str] = None

    # meta
    api_url: str = "https://graph.facebook.com/v18.0"
    phone_number_id: Optional[str] = None
    access_token: Optional[str] = None
    template_name: Optional[str] = None
    template_lang: str = "en_US"
    timeout: float = 10.0

    @property
    def enabled(self) -> bool:
        if self.provider == "meta":
            return bool(self.phone_number_id and self.access_token)
        return bool(self.account_sid and self.auth_token and self.from_number)


class PushConfig(BaseModel):
    """Web Push (VAPID) or Firebase Cloud Messaging options"""

    provider: Literal["webpush", "fcm"] = "webpush"
    vapid_private_key: Optional[str] = None
    vapid_claims_email: str = "mailto:admin@aquarent.in"
    ttl: int = 86400
    firebase_credentials_json: Optional[str] = None
    firebase_credentials_path: Optional[str] = None

    @property
    def enabled(self) -> bool:
        if self.provider == "fcm":
            return bool(self.firebase_credentials_json or self.firebase_credentials_path)
        return bool(self.vapid_private_key)


class SweepConfig(BaseModel):
    """Pending-notification sweep tuning"""

    batch_size: int = Field(default=500, ge=1)
    concurrency: int = Field(default=1, ge=1)
    record_timeout: Optional[float] = 120.0
    fail_orphaned: bool = False


class NotificationConfig(BaseModel):
    """Everything the notification engine needs to know about its providers"""

    mail: MailConfig = Field(default_factory=MailConfig)
    sms: SMSConfig = Field(default_factory=SMSConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    push: PushConfig = Field(default_factory=PushConfig)
    sweep: SweepConfig = Field(default_factory=SweepConfig)

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationConfig":
        return cls(
            mail=MailConfig(
                host=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USER,
                password=settings.SMTP_PASSWORD,
                from_email=settings.SMTP_FROM_EMAIL,
                from_name=settings.SMTP_FROM_NAME,
                use_tls=settings.SMTP_USE_TLS,
                start_tls=settings.SMTP_START_TLS,
                timeout=settings.SMTP_TIMEOUT_SECONDS,
            ),
            sms=SMSConfig(
                account_sid=settings.TWILIO_ACCOUNT_SID,
                auth_token=settings.TWILIO_AUTH_TOKEN,
                from_number=settings.TWILIO_PHONE_NUMBER,
                messaging_service_sid=settings.TWILIO_MESSAGING_SERVICE_SID,
                default_region=settings.DEFAULT_PHONE_REGION,
            ),
            chat=ChatConfig(
                provider=settings.WHATSAPP_PROVIDER,
                default_region=settings.DEFAULT_PHONE_REGION,
                account_sid=settings.TWILIO_ACCOUNT_SID,
                auth_token=settings.TWILIO_AUTH_TOKEN,
                from_number=settings.TWILIO_WHATSAPP_FROM,
                api_url=settings.META_API_URL,
                phone_number_id=settings.META_PHONE_NUMBER_ID,
                access_token=settings.META_ACCESS_TOKEN,
                template_name=settings.META_TEMPLATE_NAME,
                template_lang=settings.META_TEMPLATE_LANG,
                timeout=settings.META_TIMEOUT_SECONDS,
            ),
            push=PushConfig(
                provider=settings.PUSH_PROVIDER,
                vapid_private_key=settings.VAPID_PRIVATE_KEY,
                vapid_claims_email=settings.VAPID_CLAIMS_EMAIL,
                ttl=settings.PUSH_TTL_SECONDS,
                firebase_credentials_json=settings.FIREBASE_CREDENTIALS_JSON,
                firebase_credentials_path=settings.FIREBASE_CREDENTIALS_PATH,
            ),
            sweep=SweepConfig(
                batch_size=settings.NOTIFICATION_SWEEP_BATCH_SIZE,
                concurrency=settings.NOTIFICATION_SWEEP_CONCURRENCY,
                record_timeout=settings.NOTIFICATION_RECORD_TIMEOUT_SECONDS,
                fail_orphaned=settings.NOTIFICATION_FAIL_ORPHANED,
            ),
        )
