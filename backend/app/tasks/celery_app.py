from celery import Celery
from celery.schedules import crontab

from app.core.config import settings

celery_app = Celery(
    "timeclock",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.tasks.session_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.TIMEZONE,
    enable_utc=True,
    beat_schedule={
        # Stündlich: vergessene Sitzungen schließen und zur Prüfung markieren
        "hourly-stale-session-reconcile": {
            "task": "app.tasks.session_tasks.reconcile_stale_sessions",
            "schedule": crontab(minute=0),
        },
    },
)
