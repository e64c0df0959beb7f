# AquaRent Backend Monitoring Configuration
# Prometheus metrics, health checks, and logging setup

import logging
import logging.handlers
import os
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, Response
from prometheus_client import Counter, Histogram, CONTENT_TYPE_LATEST, generate_latest

from .config import settings

# HTTP metrics
request_count = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
request_duration = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])

# Notification metrics
notifications_created = Counter(
    'notifications_created_total',
    'Notifications persisted by the dispatcher',
    ['type', 'mode']
)
notification_channel_attempts = Counter(
    'notification_channel_attempts_total',
    'Per-channel delivery attempts',
    ['channel', 'outcome']
)
notification_sweep_records = Counter(
    'notification_sweep_records_total',
    'Due notifications handled by the sweep',
    ['outcome']
)
notification_sweep_duration = Histogram(
    'notification_sweep_duration_seconds',
    'Duration of one pending-notification sweep'
)

def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None):
    """Configure application logging"""

    log_level = level or settings.LOG_LEVEL
    log_file = log_file or settings.LOG_FILE

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers = [console_handler]

    # File handler with rotation
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        handlers=handlers
    )

    # Silence noisy loggers in production
    if settings.ENVIRONMENT == "production":
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

def setup_monitoring_middleware(app: FastAPI):
    """Add monitoring middleware to track metrics"""

    @app.middleware("http")
    async def monitor_requests(request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time

        request_count.labels(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code
        ).inc()

        request_duration.labels(
            method=request.method,
            endpoint=request.url.path
        ).observe(process_time)

        response.headers["X-Process-Time"] = str(process_time)

        return response

def setup_health_endpoints(app: FastAPI):
    """Setup health check and metrics endpoints"""

    @app.get("/health")
    async def health_check():
        """Basic health check endpoint"""
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint"""
        if not settings.PROMETHEUS_ENABLED:
            return {"error": "Metrics disabled"}

        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

def record_channel_attempt(channel: str, delivered: bool):
    """Count one channel outcome"""
    notification_channel_attempts.labels(
        channel=channel,
        outcome="delivered" if delivered else "failed"
    ).inc()

def record_channel_skipped(channel: str):
    notification_channel_attempts.labels(channel=channel, outcome="skipped").inc()
