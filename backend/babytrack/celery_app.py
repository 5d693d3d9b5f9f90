from celery import Celery
from celery.schedules import crontab

from babytrack.config import settings

celery = Celery(
    "babytrack",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "prune-sync-bookkeeping": {
            "task": "babytrack.tasks.sync.prune_sync_bookkeeping",
            "schedule": crontab(hour=3, minute=30),  # daily
        },
    },
)

celery.autodiscover_tasks(["babytrack.tasks"], related_name="sync")
