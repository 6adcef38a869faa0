"""
Data Retention Service - Archives and Purges Old Job Matches

Policy (defaults from settings, adjustable at runtime):
    - Matches older than (retention_days - archive_before_delete_days) are
      stamped archived_at, at most batch_size per run
    - Matches older than retention_days are deleted in batch_size chunks
    - Matches whose preference no longer exists are deleted

Runs daily from the scheduler; can also be triggered (or dry-run) through
the data-retention API. Step failures are collected, never raised.
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jobfinder.config import get_settings
from jobfinder.database import utcnow
from jobfinder.models import JobMatch, JobPreference

logger = logging.getLogger(__name__)


@dataclass
class RetentionConfig:
    job_match_retention_days: int = 90
    archive_before_delete_days: int = 30
    batch_size: int = 1000
    enable_archiving: bool = True

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RetentionResult:
    job_matches_deleted: int = 0
    job_matches_archived: int = 0
    orphans_deleted: int = 0
    errors: List[str] = field(default_factory=list)
    execution_time_ms: int = 0
    dry_run: bool = False
    completed_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("completed_at")
        return data


_config: Optional[RetentionConfig] = None
_last_result: Optional[RetentionResult] = None


def get_retention_config() -> RetentionConfig:
    global _config

    if _config is None:
        settings = get_settings()
        _config = RetentionConfig(
            job_match_retention_days=settings.job_match_retention_days,
            archive_before_delete_days=settings.archive_before_delete_days,
            batch_size=settings.retention_batch_size,
            enable_archiving=settings.enable_archiving,
        )
    return _config


def update_retention_config(**changes) -> RetentionConfig:
    config = get_retention_config()
    for key, value in changes.items():
        if value is not None and hasattr(config, key):
            setattr(config, key, value)
    logger.info(f"Retention config updated: {config.to_dict()}")
    return config


def reset_retention_config() -> None:
    global _config, _last_result
    _config = None
    _last_result = None


def get_last_result() -> Optional[RetentionResult]:
    return _last_result


class DataRetentionService:
    def __init__(self, db: AsyncSession, config: Optional[RetentionConfig] = None):
        self.db = db
        self.config = config or get_retention_config()

    def _cutoffs(self, now: datetime):
        delete_cutoff = now - timedelta(days=self.config.job_match_retention_days)
        archive_days = max(
            self.config.job_match_retention_days - self.config.archive_before_delete_days, 0
        )
        archive_cutoff = now - timedelta(days=archive_days)
        return archive_cutoff, delete_cutoff

    async def _archive(self, archive_cutoff: datetime, delete_cutoff: datetime, now: datetime, dry_run: bool) -> int:
        ids_result = await self.db.execute(
            select(JobMatch.id)
            .where(
                JobMatch.found_at < archive_cutoff,
                JobMatch.found_at >= delete_cutoff,
                JobMatch.archived_at.is_(None),
            )
            .limit(self.config.batch_size)
        )
        ids = list(ids_result.scalars().all())
        if ids and not dry_run:
            await self.db.execute(update(JobMatch).where(JobMatch.id.in_(ids)).values(archived_at=now))
            await self.db.commit()
        return len(ids)

    async def _delete_expired(self, delete_cutoff: datetime, dry_run: bool) -> int:
        if dry_run:
            result = await self.db.execute(
                select(func.count(JobMatch.id)).where(JobMatch.found_at < delete_cutoff)
            )
            return result.scalar() or 0

        deleted = 0
        while True:
            ids_result = await self.db.execute(
                select(JobMatch.id).where(JobMatch.found_at < delete_cutoff).limit(self.config.batch_size)
            )
            ids = list(ids_result.scalars().all())
            if not ids:
                break
            await self.db.execute(delete(JobMatch).where(JobMatch.id.in_(ids)))
            await self.db.commit()
            deleted += len(ids)
        return deleted

    async def _delete_orphans(self, dry_run: bool) -> int:
        orphaned = ~JobMatch.preference_id.in_(select(JobPreference.id))
        if dry_run:
            result = await self.db.execute(select(func.count(JobMatch.id)).where(orphaned))
            return result.scalar() or 0

        result = await self.db.execute(delete(JobMatch).where(orphaned))
        await self.db.commit()
        return result.rowcount or 0

    async def execute(self, dry_run: bool = False) -> RetentionResult:
        global _last_result

        start = time.perf_counter()
        now = utcnow()
        archive_cutoff, delete_cutoff = self._cutoffs(now)
        result = RetentionResult(dry_run=dry_run)

        if self.config.enable_archiving:
            try:
                result.job_matches_archived = await self._archive(archive_cutoff, delete_cutoff, now, dry_run)
            except Exception as e:
                await self.db.rollback()
                logger.error(f"Retention archive step failed: {e}")
                result.errors.append(f"archive: {e}")

        try:
            result.job_matches_deleted = await self._delete_expired(delete_cutoff, dry_run)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Retention delete step failed: {e}")
            result.errors.append(f"delete: {e}")

        try:
            result.orphans_deleted = await self._delete_orphans(dry_run)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Retention orphan cleanup failed: {e}")
            result.errors.append(f"orphans: {e}")

        result.execution_time_ms = int((time.perf_counter() - start) * 1000)
        result.completed_at = utcnow()

        logger.info(
            f"Data retention {'dry run' if dry_run else 'run'}: "
            f"{result.job_matches_archived} archived, {result.job_matches_deleted} deleted, "
            f"{result.orphans_deleted} orphans, {len(result.errors)} errors in {result.execution_time_ms}ms"
        )
        if not dry_run:
            _last_result = result
        return result

    async def manual_cleanup(self, dry_run: bool = False) -> RetentionResult:
        return await self.execute(dry_run=dry_run)

    async def statistics(self) -> dict:
        archive_cutoff, delete_cutoff = self._cutoffs(utcnow())

        totals = await self.db.execute(
            select(func.count(JobMatch.id), func.min(JobMatch.found_at), func.max(JobMatch.found_at))
        )
        total, oldest, newest = totals.one()

        near_expiry = await self.db.execute(
            select(func.count(JobMatch.id)).where(
                JobMatch.found_at < archive_cutoff,
                JobMatch.found_at >= delete_cutoff,
            )
        )
        archived = await self.db.execute(
            select(func.count(JobMatch.id)).where(JobMatch.archived_at.is_not(None))
        )

        return {
            "total_job_matches": total or 0,
            "job_matches_near_expiry": near_expiry.scalar() or 0,
            "archived_job_matches": archived.scalar() or 0,
            "oldest_job_match": oldest,
            "newest_job_match": newest,
        }

    async def health(self) -> dict:
        try:
            await self.db.execute(select(func.count(JobMatch.id)))
            database_ok = True
        except Exception as e:
            logger.error(f"Retention health check failed: {e}")
            database_ok = False

        last = get_last_result()
        return {
            "status": "healthy" if database_ok else "unhealthy",
            "config": self.config.to_dict(),
            "last_run_at": last.completed_at if last else None,
            "last_run_errors": last.errors if last else [],
        }
