"""
Job Alert Service - Delivers New-Match Alerts Over Email and SMS

Delivery rules:
    - Nothing is sent during a user's quiet hours (UTC "HH:MM" window; a
      window whose start is after its end wraps past midnight)
    - Each enabled channel with a destination is attempted independently
    - The alert counts as delivered when at least one channel succeeds

Channel failures are collected on the result, never raised.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from typing import Dict, List, Optional, Sequence

from jobfinder.middleware.metrics import record_alert
from jobfinder.services.notifications import NotificationResult, NotificationService
from jobfinder.services.templates import render_job_alert

logger = logging.getLogger(__name__)


@dataclass
class AlertDeliveryResult:
    success: bool
    email_sent: bool = False
    sms_sent: bool = False
    skipped_reason: Optional[str] = None
    errors: List[str] = field(default_factory=list)


def parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def is_quiet_hours(settings, now: Optional[time] = None) -> bool:
    if not settings.quiet_hours_enabled:
        return False
    if not settings.quiet_hours_start or not settings.quiet_hours_end:
        return False

    start = parse_hhmm(settings.quiet_hours_start)
    end = parse_hhmm(settings.quiet_hours_end)
    if now is None:
        now = datetime.now(timezone.utc).time().replace(second=0, microsecond=0)

    if start <= end:
        return start <= now <= end
    return now >= start or now <= end


class JobAlertService:
    def __init__(self, notifications: Optional[NotificationService] = None):
        self.notifications = notifications or NotificationService()

    async def send_job_alerts(
        self,
        settings,
        jobs: Sequence,
        profile_name: str,
        first_name: Optional[str] = None,
        respect_quiet_hours: bool = True,
        now: Optional[time] = None,
    ) -> AlertDeliveryResult:
        """
        Send one alert covering `jobs` on every enabled channel.

        Args:
            settings: NotificationSettings row for the recipient
            jobs: JobMatch rows to include
            profile_name: Preference profile the jobs matched
            first_name: Recipient's first name for the greeting
            respect_quiet_hours: Skip delivery inside the quiet window
            now: Current UTC time of day (defaults to the clock)
        """
        if not jobs:
            return AlertDeliveryResult(success=False, skipped_reason="no jobs")

        if respect_quiet_hours and is_quiet_hours(settings, now):
            logger.info(f"Quiet hours active, holding {len(jobs)} alerts for {profile_name}")
            return AlertDeliveryResult(success=False, skipped_reason="quiet hours")

        content = render_job_alert(list(jobs), profile_name, first_name)
        result = AlertDeliveryResult(success=False)
        attempted = False

        if settings.email_enabled and settings.email_address:
            attempted = True
            sent = await self.notifications.send_email(
                settings.email_address, content.subject, content.html, content.text
            )
            result.email_sent = sent.success
            record_alert("email", sent.success)
            if not sent.success:
                result.errors.append(f"email: {sent.error}")

        if settings.sms_enabled and settings.sms_phone_number:
            attempted = True
            sent = await self.notifications.send_sms(settings.sms_phone_number, content.sms)
            result.sms_sent = sent.success
            record_alert("sms", sent.success)
            if not sent.success:
                result.errors.append(f"sms: {sent.error}")

        if not attempted:
            result.skipped_reason = "no channels enabled"

        result.success = result.email_sent or result.sms_sent
        if result.errors:
            logger.warning(f"Alert delivery for {profile_name} had errors: {result.errors}")
        return result

    async def send_consolidated_alerts(
        self,
        settings,
        jobs_by_profile: Dict[str, Sequence],
        first_name: Optional[str] = None,
    ) -> AlertDeliveryResult:
        """Daily digest: one alert spanning every profile with new matches."""
        jobs = [job for profile_jobs in jobs_by_profile.values() for job in profile_jobs]
        label = ", ".join(name for name, profile_jobs in jobs_by_profile.items() if profile_jobs)
        return await self.send_job_alerts(
            settings, jobs, label, first_name, respect_quiet_hours=False
        )

    async def test_all_channels(self, settings) -> Dict[str, Optional[NotificationResult]]:
        results: Dict[str, Optional[NotificationResult]] = {"email": None, "sms": None}
        if settings.email_enabled and settings.email_address:
            results["email"] = await self.notifications.send_test_notification(
                "email", settings.email_address
            )
        if settings.sms_enabled and settings.sms_phone_number:
            results["sms"] = await self.notifications.send_test_notification(
                "sms", settings.sms_phone_number
            )
        return results
