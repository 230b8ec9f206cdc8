"""Celery application configuration."""

from celery import Celery
from celery.schedules import crontab
from celery.signals import worker_process_init

from outlook_sync.config import get_settings
from outlook_sync.utils.logging import setup_logging

settings = get_settings()

# Create Celery app
app = Celery(
    "outlook_sync",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "outlook_sync.tasks.calendar_sync",
    ],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=900,  # 15 minutes
    task_soft_time_limit=840,  # 14 minutes
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    result_expires=3600,  # 1 hour
)

# Celery Beat schedule (periodic tasks)
app.conf.beat_schedule = {
    # Sync all enabled calendar bindings
    "sync-all-calendars": {
        "task": "outlook_sync.tasks.calendar_sync.sync_all_calendars",
        "schedule": crontab(minute=f"*/{settings.sync_interval_minutes}"),
    },
}


@worker_process_init.connect
def configure_worker_logging(**kwargs) -> None:
    setup_logging()


if __name__ == "__main__":
    app.start()
