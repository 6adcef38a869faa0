"""
Tests for Celery Alert Delivery and the Scheduler

Tests cover:
- Celery app configuration
- deliver_job_alerts grouping, digest handling and marking
- Retries on unexpected failures
- Enqueueing when the broker is unavailable
- Pending-alert lookup and scheduler registration
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from jobfinder.celery import celery_app
from jobfinder.services.alerts import AlertDeliveryResult
from jobfinder.tasks.alerts import AlertGroup, deliver_job_alerts, enqueue_job_alerts
from conftest import create_match


def make_group(user_id="u1", profile_name="Backend", consolidate=False, match_ids=("m1",)):
    user = SimpleNamespace(id=user_id, first_name="Jane")
    settings = SimpleNamespace(email_consolidate_daily=consolidate)
    matches = [SimpleNamespace(id=match_id) for match_id in match_ids]
    return AlertGroup(user, settings, profile_name, matches)


class TestCeleryApp:
    """Test Celery app configuration."""

    def test_celery_app_exists(self):
        assert celery_app is not None
        assert celery_app.main == "job_finder"

    def test_celery_uses_redis_broker(self):
        assert "redis" in celery_app.conf.broker_url

    def test_alerts_routed_to_alerts_queue(self):
        routes = celery_app.conf.task_routes
        assert routes["jobfinder.tasks.alerts.deliver_job_alerts"] == {"queue": "alerts"}

    def test_deliver_job_alerts_is_celery_task(self):
        assert hasattr(deliver_job_alerts, "delay")
        assert hasattr(deliver_job_alerts, "apply_async")


class TestDeliverJobAlerts:
    """Test the alert delivery task with patched storage and delivery."""

    @patch("jobfinder.tasks.alerts.mark_alerts_sent")
    @patch("jobfinder.tasks.alerts.JobAlertService")
    @patch("jobfinder.tasks.alerts.load_alert_groups")
    def test_sends_one_alert_per_preference(self, mock_load, mock_service_cls, mock_mark):
        mock_load.return_value = [
            make_group(profile_name="Backend", match_ids=("m1", "m2")),
            make_group(profile_name="Data", match_ids=("m3",)),
        ]
        service = mock_service_cls.return_value
        service.send_job_alerts = AsyncMock(return_value=AlertDeliveryResult(success=True, email_sent=True))
        mock_mark.return_value = 3

        stats = deliver_job_alerts.run(["m1", "m2", "m3"])

        assert service.send_job_alerts.call_count == 2
        mock_mark.assert_called_once_with(["m1", "m2", "m3"])
        assert stats == {"alerts_sent": 2, "matches_delivered": 3, "skipped": 0}

    @patch("jobfinder.tasks.alerts.mark_alerts_sent")
    @patch("jobfinder.tasks.alerts.JobAlertService")
    @patch("jobfinder.tasks.alerts.load_alert_groups")
    def test_failed_delivery_leaves_matches_unsent(self, mock_load, mock_service_cls, mock_mark):
        mock_load.return_value = [make_group()]
        service = mock_service_cls.return_value
        service.send_job_alerts = AsyncMock(
            return_value=AlertDeliveryResult(success=False, skipped_reason="quiet hours")
        )
        mock_mark.return_value = 0

        stats = deliver_job_alerts.run(["m1"])

        mock_mark.assert_called_once_with([])
        assert stats["skipped"] == 1

    @patch("jobfinder.tasks.alerts.mark_alerts_sent")
    @patch("jobfinder.tasks.alerts.JobAlertService")
    @patch("jobfinder.tasks.alerts.load_alert_groups")
    def test_digest_users_wait_for_daily_run(self, mock_load, mock_service_cls, mock_mark):
        mock_load.return_value = [make_group(consolidate=True)]
        service = mock_service_cls.return_value
        mock_mark.return_value = 0

        stats = deliver_job_alerts.run(["m1"])

        service.send_job_alerts.assert_not_called()
        service.send_consolidated_alerts.assert_not_called()
        assert stats["skipped"] == 1

    @patch("jobfinder.tasks.alerts.mark_alerts_sent")
    @patch("jobfinder.tasks.alerts.JobAlertService")
    @patch("jobfinder.tasks.alerts.load_alert_groups")
    def test_digest_run_consolidates_per_user(self, mock_load, mock_service_cls, mock_mark):
        mock_load.return_value = [
            make_group(profile_name="Backend", consolidate=True, match_ids=("m1",)),
            make_group(profile_name="Data", consolidate=True, match_ids=("m2",)),
        ]
        service = mock_service_cls.return_value
        service.send_consolidated_alerts = AsyncMock(
            return_value=AlertDeliveryResult(success=True, email_sent=True)
        )
        mock_mark.return_value = 2

        stats = deliver_job_alerts.run(["m1", "m2"], digest=True)

        service.send_consolidated_alerts.assert_called_once()
        jobs_by_profile = service.send_consolidated_alerts.call_args.args[1]
        assert set(jobs_by_profile) == {"Backend", "Data"}
        mock_mark.assert_called_once_with(["m1", "m2"])
        assert stats["alerts_sent"] == 1

    @patch("jobfinder.tasks.alerts.load_alert_groups")
    def test_retries_on_failure(self, mock_load):
        mock_load.side_effect = Exception("Database connection failed")

        with patch.object(deliver_job_alerts, "retry", side_effect=Exception("Retry")) as mock_retry:
            with pytest.raises(Exception, match="Retry"):
                deliver_job_alerts.run(["m1"])

        mock_retry.assert_called_once()


class TestEnqueue:
    """Test enqueueing alert delivery."""

    def test_nothing_to_enqueue(self):
        assert enqueue_job_alerts([]) is False

    @patch.object(deliver_job_alerts, "delay")
    def test_enqueues(self, mock_delay):
        assert enqueue_job_alerts(["m1"]) is True
        mock_delay.assert_called_once_with(["m1"], digest=False)

    @patch.object(deliver_job_alerts, "delay", side_effect=ConnectionError("broker down"))
    def test_broker_down_is_not_fatal(self, mock_delay):
        assert enqueue_job_alerts(["m1"]) is False


class TestScheduler:
    """Test scheduled jobs."""

    @pytest.mark.asyncio
    async def test_find_pending_alert_ids(self, db, preference):
        from jobfinder.scheduler import find_pending_alert_ids

        pending = await create_match(db, preference, job_url="https://a.com/1")
        await create_match(db, preference, job_url="https://a.com/2", alert_sent=True)
        await create_match(db, preference, job_url="https://a.com/3", days_ago=10)

        assert await find_pending_alert_ids(db) == [pending.id]

    def test_start_scheduler_registers_jobs(self):
        from jobfinder import scheduler

        fake = MagicMock()
        fake.running = True
        with patch.object(scheduler, "scheduler", fake):
            scheduler.start_scheduler()
            scheduler.stop_scheduler()

        job_ids = {c.kwargs["id"] for c in fake.add_job.call_args_list}
        assert job_ids == {"data_retention", "dispatch_alerts", "daily_alert_digest"}
        fake.start.assert_called_once()
        fake.shutdown.assert_called_once()
