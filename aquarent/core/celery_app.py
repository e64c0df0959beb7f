"""Celery application configuration"""

from celery import Celery
from kombu import Exchange, Queue
from aquarent.core.config import settings

# Create Celery app
celery_app = Celery(
    "aquarent",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "aquarent.tasks.notification_tasks",
    ]
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 minutes
    task_soft_time_limit=25 * 60,  # 25 minutes
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,

    # Task routing
    task_routes={
        "process_pending_notifications": {"queue": "notifications"},
        "send_notification": {"queue": "notifications"},
    },

    # Result backend configuration
    result_expires=3600,  # 1 hour
)

# Define queues
celery_app.conf.task_queues = (
    Queue("default", Exchange("default"), routing_key="default"),
    Queue("notifications", Exchange("notifications"), routing_key="notifications"),
)

# Beat schedule for periodic tasks
celery_app.conf.beat_schedule = {
    "process-pending-notifications": {
        "task": "process_pending_notifications",
        "schedule": settings.NOTIFICATION_SWEEP_INTERVAL_SECONDS,
        "options": {
            "queue": "notifications",
            # a late sweep is superseded by the next one
            "expires": settings.NOTIFICATION_SWEEP_INTERVAL_SECONDS,
        },
    },
}
