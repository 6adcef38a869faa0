"""
Tests for Job Match Storage and Queries

Tests cover:
- Creating matches (duplicate rejection, auto scoring)
- Storing N8N-scored matches
- Batch processing of scraped jobs
- User-scoped listing, filters, status updates and statistics
- Maintenance helpers
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from jobfinder.errors import AppError
from jobfinder.models import JobMatch
from jobfinder.models.enums import ApplicationStatus
from jobfinder.schemas import JobData, N8NJobMatch
from jobfinder.services.job_matches import JobMatchService
from jobfinder.services.preferences import to_criteria
from conftest import create_match, create_preference

MISSING_ID = "00000000-0000-0000-0000-000000000000"


def make_job(**overrides) -> JobData:
    fields = dict(
        title="Senior Software Engineer",
        company="Tech Corp",
        location="San Francisco, CA",
        salary="$120,000 - $150,000",
        contract_type="permanent",
        url="https://example.com/job/123",
        source_website="example.com",
        description="React and Node.js",
    )
    fields.update(overrides)
    return JobData(**fields)


class TestCreateJobMatch:
    """Test single match creation."""

    @pytest.mark.asyncio
    async def test_scores_when_no_score_given(self, db, preference):
        match = await JobMatchService(db).create_job_match(preference.id, make_job())

        assert match.match_score == 95
        assert match.application_status == "not_applied"
        assert match.alert_sent is False
        assert len(match.job_hash) == 64

    @pytest.mark.asyncio
    async def test_unknown_preference(self, db):
        with pytest.raises(AppError) as exc:
            await JobMatchService(db).create_job_match(MISSING_ID, make_job())
        assert exc.value.code == "PREFERENCE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_duplicate_rejected_with_confidence(self, db, preference):
        service = JobMatchService(db)
        await service.create_job_match(preference.id, make_job(), 80)

        with pytest.raises(AppError) as exc:
            await service.create_job_match(preference.id, make_job(), 80)
        assert exc.value.status_code == 409
        assert exc.value.code == "DUPLICATE_JOB_MATCH"
        assert "100%" in exc.value.message


class TestStoreJobMatches:
    """Test storing matches scored by the workflow."""

    @pytest.mark.asyncio
    async def test_stores_and_skips_failures(self, db, preference):
        matches = [
            N8NJobMatch(preference_id=preference.id, job=make_job(), match_score=0.874),
            N8NJobMatch(preference_id=MISSING_ID, job=make_job(url="https://example.com/job/9")),
        ]

        stored = await JobMatchService(db).store_job_matches(matches)

        assert len(stored) == 1
        assert stored[0].match_score == 87

    @pytest.mark.asyncio
    async def test_database_error_skips_item(self, db, preference):
        service = JobMatchService(db)
        matches = [
            N8NJobMatch(preference_id=preference.id, job=make_job(url="https://example.com/job/1")),
            N8NJobMatch(preference_id=preference.id, job=make_job(url="https://example.com/job/2")),
        ]
        stored_match = JobMatch(preference_id=preference.id)
        failure = IntegrityError("INSERT INTO job_matches", {}, Exception("UNIQUE constraint failed"))

        with patch.object(service, "create_job_match", AsyncMock(side_effect=[failure, stored_match])), \
                patch.object(db, "rollback", AsyncMock()) as mock_rollback:
            stored = await service.store_job_matches(matches)

        assert stored == [stored_match]
        mock_rollback.assert_awaited_once()


class TestProcessBatchJobs:
    """Test the found-jobs pipeline."""

    @pytest.mark.asyncio
    async def test_matches_new_jobs_against_all_preferences(self, db, user, preference):
        second = await create_preference(db, user, profile_name="Any Engineer", job_title="Engineer")
        jobs = [
            make_job(),
            make_job(url="https://example.com/job/456", title="Marketing Manager", company="Ads Ltd"),
        ]

        results = await JobMatchService(db).process_batch_jobs(
            jobs, [to_criteria(preference), to_criteria(second)]
        )

        assert results["processed"] == 2
        assert results["duplicates"] == 0
        assert results["errors"] == []
        assert {m.preference_id for m in results["matches"]} == {preference.id, second.id}

    @pytest.mark.asyncio
    async def test_skips_stored_and_repeated_jobs(self, db, preference):
        await create_match(db, preference)
        jobs = [
            make_job(),
            make_job(url="https://example.com/job/777", title="Software Engineer II"),
            make_job(url="https://example.com/job/777", title="Software Engineer II"),
        ]

        results = await JobMatchService(db).process_batch_jobs(jobs, [to_criteria(preference)])

        assert results["duplicates"] == 2
        assert results["processed"] == 1
        total = (await db.execute(select(func.count(JobMatch.id)))).scalar()
        assert total == 1 + len(results["matches"])


class TestUserQueries:
    """Test user-scoped reads and updates."""

    @pytest.mark.asyncio
    async def test_list_with_filters_and_profile_name(self, db, user, preference):
        await create_match(db, preference, days_ago=2, job_url="https://a.com/1", source_website="indeed")
        await create_match(
            db, preference, days_ago=1,
            job_url="https://b.com/2", job_title="Data Engineer", source_website="linkedin",
            application_status="applied",
        )
        service = JobMatchService(db)

        matches, total = await service.get_user_job_matches(user.id)
        assert total == 2
        assert matches[0].job_title == "Data Engineer"
        assert matches[0].profile_name == "Software Engineering"

        matches, total = await service.get_user_job_matches(user.id, status="applied")
        assert total == 1

        matches, total = await service.get_user_job_matches(user.id, source_website="indeed")
        assert [m.source_website for m in matches] == ["indeed"]

        matches, total = await service.get_user_job_matches(user.id, search="data")
        assert total == 1

        matches, total = await service.get_user_job_matches(user.id, page=2, limit=1)
        assert total == 2
        assert len(matches) == 1

    @pytest.mark.asyncio
    async def test_get_by_id_scoped_to_owner(self, db, preference):
        match = await create_match(db, preference)
        with pytest.raises(AppError) as exc:
            await JobMatchService(db).get_job_match_by_id(match.id, "someone-else")
        assert exc.value.code == "JOB_MATCH_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_update_application_status(self, db, user, preference):
        match = await create_match(db, preference)
        updated = await JobMatchService(db).update_application_status(
            match.id, user.id, ApplicationStatus.INTERVIEWED
        )
        assert updated.application_status == "interviewed"

    @pytest.mark.asyncio
    async def test_statistics_and_dashboard(self, db, user, preference):
        await create_match(db, preference, job_url="https://a.com/1", application_status="applied")
        await create_match(db, preference, job_url="https://b.com/2", job_title="QA", source_website="indeed")
        service = JobMatchService(db)

        stats = await service.get_job_statistics(user.id)
        assert stats["total_matches"] == 2
        assert stats["applied_jobs"] == 1
        assert stats["active_profiles"] == 1
        assert stats["last_execution_at"] is not None

        by_source = await service.get_job_matches_by_source_website(user.id)
        assert {row["source_website"] for row in by_source} == {"example.com", "indeed"}

        dashboard = await service.get_dashboard(user.id)
        assert len(dashboard["recent_matches"]) == 2


class TestMaintenance:
    """Test alert flags, cleanup and per-user consolidation."""

    @pytest.mark.asyncio
    async def test_mark_alert_sent(self, db, preference):
        match = await create_match(db, preference)
        assert await JobMatchService(db).mark_alert_sent([match.id]) == 1
        assert await JobMatchService(db).mark_alert_sent([]) == 0

    @pytest.mark.asyncio
    async def test_cleanup_old_job_matches(self, db, preference):
        await create_match(db, preference, days_ago=100, job_url="https://a.com/old")
        await create_match(db, preference, days_ago=1)

        assert await JobMatchService(db).cleanup_old_job_matches(90) == 1

    @pytest.mark.asyncio
    async def test_consolidate_for_user(self, db, user, preference):
        await create_match(db, preference, days_ago=2, job_url="https://example.com/job1")
        await create_match(db, preference, days_ago=1, job_url="https://example.com/job2")

        assert await JobMatchService(db).consolidate_duplicates_for_user(user.id) == 1
