"""
Job Match Service - Storing, Querying and Batch-Processing Job Matches

Batch Pipeline (N8N found-jobs webhook):
    1. Batch duplicate detection against stored matches
    2. Rule-based matching of each new job against active preferences
    3. One stored match per (preference, job), scored 0-100

Every user-facing query is scoped through job_preferences.user_id, so a
user only ever sees matches that belong to their own profiles.
"""

import logging
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jobfinder.database import utcnow
from jobfinder.errors import AppError, conflict, not_found
from jobfinder.middleware.metrics import record_webhook_job
from jobfinder.models import ApplicationStatus, JobMatch, JobPreference
from jobfinder.schemas import (
    DuplicateDetectionOptions,
    JobData,
    N8NJobMatch,
    PreferenceCriteria,
    ScoredMatch,
)
from jobfinder.services.duplicates import DuplicateDetectionService, generate_job_hash
from jobfinder.services.matching import (
    calculate_match_score,
    match_job_against_preferences_with_score,
)
from jobfinder.services.preferences import to_criteria

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
MAX_RECENT = 50


def build_job_match(preference_id: str, job: JobData, match_score: Optional[int] = None) -> JobMatch:
    return JobMatch(
        preference_id=preference_id,
        job_title=job.title,
        company=job.company,
        location=job.location,
        salary=job.salary,
        contract_type=job.contract_type,
        job_url=job.url,
        source_website=job.source_website,
        job_description=job.description,
        requirements=job.requirements,
        posted_at=job.posted_at.replace(tzinfo=None) if job.posted_at else None,
        match_score=match_score,
        found_at=utcnow(),
        application_status=ApplicationStatus.NOT_APPLIED.value,
        alert_sent=False,
        job_hash=generate_job_hash(job.url, job.title, job.company),
    )


class JobMatchService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.duplicates = DuplicateDetectionService(db)

    def _user_matches(self):
        return select(JobMatch, JobPreference.profile_name).join(
            JobPreference, JobPreference.id == JobMatch.preference_id
        )

    @staticmethod
    def _attach_profile_names(rows) -> List[JobMatch]:
        matches = []
        for match, profile_name in rows:
            match.profile_name = profile_name
            matches.append(match)
        return matches

    async def _exists_for_preference(self, preference_id: str, job_hash: str) -> bool:
        result = await self.db.execute(
            select(JobMatch.id).where(
                JobMatch.preference_id == preference_id,
                JobMatch.job_hash == job_hash,
            )
        )
        return result.first() is not None

    # ==================== Create ====================

    async def create_job_match(
        self,
        preference_id: str,
        job: JobData,
        match_score: Optional[int] = None,
        options: Optional[DuplicateDetectionOptions] = None,
    ) -> JobMatch:
        preference = await self.db.get(JobPreference, preference_id)
        if not preference:
            raise not_found("Job preference not found", "PREFERENCE_NOT_FOUND")

        check = await self.duplicates.detect_duplicates(job, options)
        if check.is_duplicate:
            raise conflict(
                f"Duplicate job detected ({round(check.confidence * 100)}% confidence)",
                "DUPLICATE_JOB_MATCH",
            )

        if match_score is None:
            match_score = calculate_match_score(job, to_criteria(preference))

        match = build_job_match(preference_id, job, match_score)
        self.db.add(match)
        await self.db.commit()
        await self.db.refresh(match)
        return match

    async def store_job_matches(self, matches: List[N8NJobMatch]) -> List[JobMatch]:
        """Store matches computed by the N8N workflow, skipping any that fail."""
        stored = []
        for item in matches:
            score = round(item.match_score * 100) if item.match_score is not None else None
            try:
                stored.append(await self.create_job_match(item.preference_id, item.job, score))
            except AppError as e:
                logger.warning(f"Skipped N8N match {item.job.url} for {item.preference_id}: {e.message}")
            except Exception as e:
                await self.db.rollback()
                logger.error(f"Failed to store N8N match {item.job.url} for {item.preference_id}: {e}")
        return stored

    def find_matches(self, job: JobData, preferences: List[PreferenceCriteria]) -> List[ScoredMatch]:
        return match_job_against_preferences_with_score(job, preferences)

    async def process_batch_jobs(
        self,
        jobs: List[JobData],
        preferences: List[PreferenceCriteria],
    ) -> dict:
        """
        Deduplicate, match and store a batch of scraped jobs.

        Returns:
            Dict with processed (non-duplicate job count), duplicates,
            matches (stored JobMatch rows) and errors (one string per failed job)
        """
        results = {"processed": 0, "duplicates": 0, "matches": [], "errors": []}
        checks = await self.duplicates.detect_batch_duplicates(jobs)
        seen_urls = set()

        for job in jobs:
            if checks[job.url].is_duplicate or job.url in seen_urls:
                results["duplicates"] += 1
                record_webhook_job("duplicate")
                continue
            seen_urls.add(job.url)

            try:
                scored = self.find_matches(job, preferences)
                job_hash = generate_job_hash(job.url, job.title, job.company)
                stored_any = False

                for item in scored:
                    if await self._exists_for_preference(item.preference_id, job_hash):
                        results["duplicates"] += 1
                        continue
                    match = build_job_match(item.preference_id, job, item.match_score)
                    self.db.add(match)
                    await self.db.flush()
                    results["matches"].append(match)
                    stored_any = True

                results["processed"] += 1
                record_webhook_job("matched" if stored_any else "unmatched")
            except Exception as e:
                logger.error(f"Failed to process job {job.url}: {e}")
                results["errors"].append(f"{job.url}: {e}")
                record_webhook_job("error")

        await self.db.commit()
        logger.info(
            f"Batch processed: {results['processed']} jobs, {results['duplicates']} duplicates, "
            f"{len(results['matches'])} matches, {len(results['errors'])} errors"
        )
        return results

    # ==================== Read ====================

    async def get_user_job_matches(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        source_website: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[JobMatch], int]:
        limit = min(limit, MAX_PAGE_SIZE)
        filters = [JobPreference.user_id == user_id]

        if status:
            filters.append(JobMatch.application_status == status)
        if source_website:
            filters.append(JobMatch.source_website == source_website)
        if search:
            pattern = f"%{search}%"
            filters.append(or_(
                JobMatch.job_title.ilike(pattern),
                JobMatch.company.ilike(pattern),
                JobMatch.job_description.ilike(pattern),
            ))

        count_query = (
            select(func.count(JobMatch.id))
            .join(JobPreference, JobPreference.id == JobMatch.preference_id)
            .where(*filters)
        )
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            self._user_matches()
            .where(*filters)
            .order_by(JobMatch.found_at.desc(), JobMatch.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return self._attach_profile_names(result.all()), total

    async def get_job_match_by_id(self, match_id: str, user_id: str) -> JobMatch:
        result = await self.db.execute(
            self._user_matches().where(JobMatch.id == match_id, JobPreference.user_id == user_id)
        )
        rows = self._attach_profile_names(result.all())
        if not rows:
            raise not_found("Job match not found", "JOB_MATCH_NOT_FOUND")
        return rows[0]

    async def update_application_status(
        self, match_id: str, user_id: str, status: ApplicationStatus
    ) -> JobMatch:
        match = await self.get_job_match_by_id(match_id, user_id)
        match.application_status = status.value
        await self.db.commit()
        await self.db.refresh(match)
        return match

    async def get_job_statistics(self, user_id: str) -> dict:
        owned = JobPreference.user_id == user_id
        status_rows = await self.db.execute(
            select(JobMatch.application_status, func.count(JobMatch.id))
            .join(JobPreference, JobPreference.id == JobMatch.preference_id)
            .where(owned)
            .group_by(JobMatch.application_status)
        )
        by_status: Dict[str, int] = {status: count for status, count in status_rows.all()}

        last_found = await self.db.execute(
            select(func.max(JobMatch.found_at))
            .join(JobPreference, JobPreference.id == JobMatch.preference_id)
            .where(owned)
        )
        active_profiles = await self.db.execute(
            select(func.count(JobPreference.id)).where(owned, JobPreference.is_active.is_(True))
        )

        return {
            "total_matches": sum(by_status.values()),
            "applied_jobs": by_status.get(ApplicationStatus.APPLIED.value, 0),
            "interviewed_jobs": by_status.get(ApplicationStatus.INTERVIEWED.value, 0),
            "rejected_jobs": by_status.get(ApplicationStatus.REJECTED.value, 0),
            "offered_jobs": by_status.get(ApplicationStatus.OFFERED.value, 0),
            "active_profiles": active_profiles.scalar() or 0,
            "last_execution_at": last_found.scalar(),
        }

    async def get_recent_job_matches(self, user_id: str, limit: int = 10) -> List[JobMatch]:
        result = await self.db.execute(
            self._user_matches()
            .where(JobPreference.user_id == user_id)
            .order_by(JobMatch.found_at.desc(), JobMatch.id)
            .limit(min(limit, MAX_RECENT))
        )
        return self._attach_profile_names(result.all())

    async def get_job_matches_by_source_website(self, user_id: str) -> List[dict]:
        result = await self.db.execute(
            select(JobMatch.source_website, func.count(JobMatch.id).label("count"))
            .join(JobPreference, JobPreference.id == JobMatch.preference_id)
            .where(JobPreference.user_id == user_id)
            .group_by(JobMatch.source_website)
            .order_by(func.count(JobMatch.id).desc())
        )
        return [{"source_website": website, "count": count} for website, count in result.all()]

    async def get_dashboard(self, user_id: str) -> dict:
        return {
            "statistics": await self.get_job_statistics(user_id),
            "recent_matches": await self.get_recent_job_matches(user_id, limit=5),
            "matches_by_source": await self.get_job_matches_by_source_website(user_id),
        }

    # ==================== Maintenance ====================

    async def mark_alert_sent(self, match_ids: List[str]) -> int:
        if not match_ids:
            return 0
        result = await self.db.execute(
            update(JobMatch).where(JobMatch.id.in_(match_ids)).values(alert_sent=True)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def cleanup_old_job_matches(self, days_old: int = 90) -> int:
        cutoff = utcnow() - timedelta(days=days_old)
        result = await self.db.execute(delete(JobMatch).where(JobMatch.found_at < cutoff))
        await self.db.commit()
        deleted = result.rowcount or 0
        logger.info(f"Deleted {deleted} job matches older than {days_old} days")
        return deleted

    async def consolidate_duplicates_for_user(self, user_id: str) -> int:
        result = await self.db.execute(
            select(JobPreference.id).where(JobPreference.user_id == user_id)
        )
        removed = 0
        for preference_id in result.scalars().all():
            removed += await self.duplicates.consolidate_duplicates_for_preference(preference_id)
        return removed
