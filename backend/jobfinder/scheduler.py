"""
Background Scheduler - Data Retention and Alert Dispatch

Jobs:
    data_retention        daily at RETENTION_HOUR:00 UTC (default 02:00)
    dispatch_alerts       every ALERT_DISPATCH_INTERVAL_MINUTES (default 15)
    daily_alert_digest    daily at ALERT_DIGEST_HOUR:00 UTC (default 08:00)

Alert jobs only look up unsent matches and hand their ids to Celery;
delivery itself happens in jobfinder.tasks.alerts.
"""

import logging
from datetime import timedelta
from typing import List

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import select

from jobfinder.config import get_settings
from jobfinder.database import async_session, utcnow
from jobfinder.models import JobMatch
from jobfinder.services.retention import DataRetentionService
from jobfinder.tasks.alerts import enqueue_job_alerts

logger = logging.getLogger(__name__)

settings = get_settings()
scheduler = AsyncIOScheduler(timezone="UTC")

# Unsent matches older than this are no longer alerted on
PENDING_ALERT_WINDOW = timedelta(days=7)


async def run_data_retention():
    async with async_session() as db:
        result = await DataRetentionService(db).execute()
    if result.errors:
        logger.warning(f"Scheduled data retention finished with errors: {result.errors}")


async def find_pending_alert_ids(db) -> List[str]:
    cutoff = utcnow() - PENDING_ALERT_WINDOW
    result = await db.execute(
        select(JobMatch.id).where(
            JobMatch.alert_sent.is_(False),
            JobMatch.archived_at.is_(None),
            JobMatch.found_at >= cutoff,
        )
    )
    return list(result.scalars().all())


async def dispatch_pending_alerts(digest: bool = False):
    async with async_session() as db:
        match_ids = await find_pending_alert_ids(db)

    if not match_ids:
        return
    if enqueue_job_alerts(match_ids, digest=digest):
        logger.info(f"Queued alert delivery for {len(match_ids)} pending matches (digest={digest})")


async def send_daily_digest():
    await dispatch_pending_alerts(digest=True)


def start_scheduler():
    scheduler.add_job(
        run_data_retention,
        trigger=CronTrigger(hour=settings.retention_hour, minute=0),
        id="data_retention",
        replace_existing=True,
    )
    scheduler.add_job(
        dispatch_pending_alerts,
        trigger=IntervalTrigger(minutes=settings.alert_dispatch_interval_minutes),
        id="dispatch_alerts",
        replace_existing=True,
    )
    scheduler.add_job(
        send_daily_digest,
        trigger=CronTrigger(hour=settings.alert_digest_hour, minute=0),
        id="daily_alert_digest",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started: retention daily at {settings.retention_hour:02d}:00 UTC, "
        f"alert dispatch every {settings.alert_dispatch_interval_minutes} minutes"
    )


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown()
