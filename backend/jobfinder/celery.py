"""
Celery Application Configuration

Configures Celery for background alert delivery with:
- Redis as message broker and result backend
- Late acknowledgement so a crashed worker's alerts are redelivered
- A dedicated "alerts" queue for notification sending

Usage:
    # Start worker:
    celery -A jobfinder.celery worker --loglevel=info -Q default,alerts

    # Enqueue alert delivery:
    from jobfinder.tasks.alerts import deliver_job_alerts
    deliver_job_alerts.delay(["match-123", "match-456"])
"""

from celery import Celery
from jobfinder.config import get_settings

settings = get_settings()

celery_app = Celery(
    "job_finder",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["jobfinder.tasks.alerts"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    worker_prefetch_multiplier=1,
    worker_concurrency=4,

    result_expires=3600,
    task_track_started=True,

    task_acks_late=True,
    task_reject_on_worker_lost=True,

    task_routes={
        "jobfinder.tasks.alerts.deliver_job_alerts": {"queue": "alerts"},
    },
    task_default_queue="default",
)
