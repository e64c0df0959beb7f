"""
Application configuration management using Pydantic Settings
Handles all environment variables and application settings
"""

from pydantic_settings import BaseSettings
from typing import Optional, List
from functools import lru_cache

class Settings(BaseSettings):
    """Main application settings"""

    # Application Settings
    APP_NAME: str = "AquaRent API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 4

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./aquarent.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_ECHO: bool = False

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # Email Configuration
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: str = "no-reply@aquarent.in"
    SMTP_FROM_NAME: str = "AquaRent"
    SMTP_USE_TLS: bool = False
    SMTP_START_TLS: bool = True
    SMTP_TIMEOUT_SECONDS: float = 10.0

    # SMS Service (Twilio)
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None
    TWILIO_MESSAGING_SERVICE_SID: Optional[str] = None
    DEFAULT_PHONE_REGION: str = "IN"

    # WhatsApp (twilio | meta)
    WHATSAPP_PROVIDER: str = "twilio"
    TWILIO_WHATSAPP_FROM: Optional[str] = None
    META_API_URL: str = "https://graph.facebook.com/v18.0"
    META_PHONE_NUMBER_ID: Optional[str] = None
    META_ACCESS_TOKEN: Optional[str] = None
    META_TEMPLATE_NAME: Optional[str] = None
    META_TEMPLATE_LANG: str = "en_US"
    META_TIMEOUT_SECONDS: float = 10.0

    # Push notifications (webpush | fcm)
    PUSH_PROVIDER: str = "webpush"
    VAPID_PRIVATE_KEY: Optional[str] = None
    VAPID_CLAIMS_EMAIL: str = "mailto:admin@aquarent.in"
    PUSH_TTL_SECONDS: int = 86400
    FIREBASE_CREDENTIALS_JSON: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None

    # Celery Configuration
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"
    CELERY_TIMEZONE: str = "Asia/Kolkata"

    # Notification sweep
    NOTIFICATION_SWEEP_INTERVAL_SECONDS: int = 60
    NOTIFICATION_SWEEP_BATCH_SIZE: int = 500
    NOTIFICATION_SWEEP_CONCURRENCY: int = 1
    NOTIFICATION_RECORD_TIMEOUT_SECONDS: Optional[float] = 120.0
    NOTIFICATION_FAIL_ORPHANED: bool = False

    # Monitoring
    PROMETHEUS_ENABLED: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @property
    def database_url_async(self) -> str:
        """Convert sync database URL to async"""
        if self.DATABASE_URL.startswith("postgresql://"):
            return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")
        elif self.DATABASE_URL.startswith("sqlite://"):
            return self.DATABASE_URL.replace("sqlite://", "sqlite+aiosqlite://")
        return self.DATABASE_URL

@lru_cache()
def get_settings() -> Settings:
    """
    Create cached settings instance
    This ensures settings are loaded only once
    """
    return Settings()

# Global settings instance
settings = get_settings()
