"""
Background Tasks for Job Alert Delivery

Celery tasks for:
- Delivering alerts for newly stored matches, one alert per preference
- The daily digest for users who consolidate their email alerts

Matches are marked alert_sent only after at least one channel delivered,
so held alerts (quiet hours, digest users, channel failures) are picked up
again by the scheduler's pending-alert dispatch.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List

from prometheus_client import Counter, Histogram
from sqlalchemy import select, update

from jobfinder.celery import celery_app
from jobfinder.database import get_db_session
from jobfinder.models import JobMatch, JobPreference, NotificationSettings, User
from jobfinder.services.alerts import JobAlertService
from jobfinder.services.notification_settings import default_settings

logger = logging.getLogger(__name__)

TASK_DURATION = Histogram(
    "celery_task_duration_seconds",
    "Time spent executing Celery tasks",
    ["task_name"]
)

TASK_FAILURES = Counter(
    "celery_task_failures_total",
    "Number of Celery task failures",
    ["task_name"]
)


@dataclass
class AlertGroup:
    """Unsent matches of one preference, with the owner's delivery settings."""

    user: User
    settings: NotificationSettings
    profile_name: str
    matches: List[JobMatch] = field(default_factory=list)


# ==================== Helper Functions ====================

def load_alert_groups(match_ids: List[str]) -> List[AlertGroup]:
    session = get_db_session()
    try:
        rows = session.execute(
            select(JobMatch, JobPreference, User)
            .join(JobPreference, JobPreference.id == JobMatch.preference_id)
            .join(User, User.id == JobPreference.user_id)
            .where(JobMatch.id.in_(match_ids), JobMatch.alert_sent.is_(False))
            .order_by(JobMatch.match_score.desc(), JobMatch.found_at.desc())
        ).all()

        settings_by_user: Dict[str, NotificationSettings] = {}
        groups: Dict[str, AlertGroup] = {}
        for match, preference, user in rows:
            if user.id not in settings_by_user:
                settings = session.execute(
                    select(NotificationSettings).where(NotificationSettings.user_id == user.id)
                ).scalar_one_or_none()
                settings_by_user[user.id] = settings or default_settings(user)

            group = groups.setdefault(
                preference.id,
                AlertGroup(user, settings_by_user[user.id], preference.profile_name),
            )
            group.matches.append(match)

        session.expunge_all()
        return list(groups.values())
    finally:
        session.close()


def mark_alerts_sent(match_ids: List[str]) -> int:
    if not match_ids:
        return 0
    session = get_db_session()
    try:
        result = session.execute(
            update(JobMatch).where(JobMatch.id.in_(match_ids)).values(alert_sent=True)
        )
        session.commit()
        return result.rowcount or 0
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def run_async(coro):
    """Run a coroutine to completion from synchronous Celery code."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def enqueue_job_alerts(match_ids: List[str], digest: bool = False) -> bool:
    """
    Queue alert delivery without failing the caller.

    If the broker is unreachable the matches stay unsent and the scheduled
    dispatch retries them later.
    """
    if not match_ids:
        return False
    try:
        deliver_job_alerts.delay(match_ids, digest=digest)
        return True
    except Exception as e:
        logger.warning(f"Could not enqueue alerts for {len(match_ids)} matches: {e}")
        return False


# ==================== Tasks ====================

@celery_app.task(bind=True, max_retries=3, default_retry_delay=60)
def deliver_job_alerts(self, match_ids: List[str], digest: bool = False) -> dict:
    """
    Send alerts for the given matches.

    Users with daily consolidation enabled are skipped unless `digest` is
    set, in which case they receive one email covering all their profiles.

    Args:
        match_ids: JobMatch ids to alert on (already-sent ones are ignored)
        digest: True for the daily digest run

    Returns:
        Dict with alerts_sent, matches_delivered and skipped counts
    """
    start_time = time.time()
    stats = {"alerts_sent": 0, "matches_delivered": 0, "skipped": 0}

    try:
        groups = load_alert_groups(match_ids)
        service = JobAlertService()
        delivered: List[str] = []

        digest_groups: Dict[str, List[AlertGroup]] = {}
        for group in groups:
            if group.settings.email_consolidate_daily:
                if digest:
                    digest_groups.setdefault(group.user.id, []).append(group)
                else:
                    stats["skipped"] += 1
                continue

            result = run_async(service.send_job_alerts(
                group.settings, group.matches, group.profile_name, group.user.first_name
            ))
            if result.success:
                stats["alerts_sent"] += 1
                delivered.extend(match.id for match in group.matches)
            else:
                stats["skipped"] += 1

        for user_groups in digest_groups.values():
            first = user_groups[0]
            result = run_async(service.send_consolidated_alerts(
                first.settings,
                {group.profile_name: group.matches for group in user_groups},
                first.user.first_name,
            ))
            if result.success:
                stats["alerts_sent"] += 1
                for group in user_groups:
                    delivered.extend(match.id for match in group.matches)
            else:
                stats["skipped"] += len(user_groups)

        stats["matches_delivered"] = mark_alerts_sent(delivered)
        logger.info(
            f"Alert delivery: {stats['alerts_sent']} alerts, "
            f"{stats['matches_delivered']} matches, {stats['skipped']} skipped"
        )

    except Exception as exc:
        TASK_FAILURES.labels(task_name="deliver_job_alerts").inc()
        logger.error(f"Alert delivery failed: {exc}")
        raise self.retry(exc=exc, countdown=60)

    finally:
        duration = time.time() - start_time
        TASK_DURATION.labels(task_name="deliver_job_alerts").observe(duration)

    return stats
