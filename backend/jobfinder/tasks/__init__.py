"""
Celery Task Modules

Background tasks:
- alerts.py: job alert delivery over email and SMS
"""

from jobfinder.tasks.alerts import deliver_job_alerts, enqueue_job_alerts

__all__ = [
    "deliver_job_alerts",
    "enqueue_job_alerts",
]
