"""Celery application configuration."""
from celery import Celery
from celery.schedules import crontab

from habit_tracker.config import get_settings

settings = get_settings()

celery_app = Celery(
    "habit_tracker",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["habit_tracker.tasks.import_tasks"],
)

celery_app.conf.update(
    task_track_started=True,
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
)

celery_app.conf.beat_schedule = {
    # Entry import retention sweep, daily
    "cleanup-entry-imports": {
        "task": "entry_imports.cleanup",
        "schedule": crontab(hour=settings.import_cleanup_hour_utc, minute=0),
    },
}
