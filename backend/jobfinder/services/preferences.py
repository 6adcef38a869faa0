"""
Job Preferences Service - CRUD and Business Rules for Search Profiles

Rules applied on create and update:
    - Keywords are split on commas, trimmed, de-duplicated and capped at 20
    - Salary and day-rate ranges need min <= max
    - Profile names are unique per user (case-insensitive)
    - A location needs a city, state, country or the remote flag
"""

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobfinder.errors import bad_request, conflict, not_found
from jobfinder.models import JobPreference
from jobfinder.schemas import (
    JobPreferenceCreate,
    JobPreferenceUpdate,
    LocationPreference,
    MoneyRange,
    PreferenceCriteria,
)

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 20


def clean_keywords(keywords: List[str]) -> List[str]:
    """
    Normalize a keyword list.

    ["React, Node.js", " react", ""] → ["React", "Node.js", "react"]
    """
    cleaned: List[str] = []
    seen = set()
    for entry in keywords:
        for keyword in entry.split(","):
            keyword = keyword.strip()
            if keyword and keyword not in seen:
                seen.add(keyword)
                cleaned.append(keyword)
    return cleaned[:MAX_KEYWORDS]


def validate_range(value: Optional[MoneyRange], code: str, field: str) -> None:
    if value and value.min is not None and value.max is not None and value.min > value.max:
        raise bad_request("Minimum cannot be greater than maximum", code, field)


def validate_location(location: LocationPreference) -> None:
    if not location.has_criteria():
        raise bad_request(
            "Location needs a city, state, country or remote work enabled",
            "INVALID_LOCATION",
            "location",
        )


def to_criteria(preference: JobPreference) -> PreferenceCriteria:
    return PreferenceCriteria.model_validate(preference)


class JobPreferencesService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _ensure_unique_name(
        self, user_id: str, profile_name: str, exclude_id: Optional[str] = None
    ) -> None:
        query = select(JobPreference.id).where(
            JobPreference.user_id == user_id,
            func.lower(JobPreference.profile_name) == profile_name.lower(),
        )
        if exclude_id:
            query = query.where(JobPreference.id != exclude_id)

        result = await self.db.execute(query)
        if result.first():
            raise conflict(
                f'A profile named "{profile_name}" already exists',
                "DUPLICATE_PROFILE_NAME",
                "profile_name",
            )

    async def create(self, user_id: str, data: JobPreferenceCreate) -> JobPreference:
        validate_range(data.salary_range, "INVALID_SALARY_RANGE", "salary_range")
        validate_range(data.day_rate_range, "INVALID_DAY_RATE_RANGE", "day_rate_range")
        validate_location(data.location)
        await self._ensure_unique_name(user_id, data.profile_name)

        values = data.model_dump(mode="json")
        values["keywords"] = clean_keywords(data.keywords)

        preference = JobPreference(user_id=user_id, **values)
        self.db.add(preference)
        await self.db.commit()
        await self.db.refresh(preference)

        logger.info(f"Created preference profile {preference.id} for user {user_id}")
        return preference

    async def list_for_user(self, user_id: str) -> List[JobPreference]:
        result = await self.db.execute(
            select(JobPreference)
            .where(JobPreference.user_id == user_id)
            .order_by(JobPreference.created_at.desc())
        )
        return list(result.scalars().all())

    async def get(self, preference_id: str, user_id: str) -> JobPreference:
        result = await self.db.execute(
            select(JobPreference).where(
                JobPreference.id == preference_id,
                JobPreference.user_id == user_id,
            )
        )
        preference = result.scalar_one_or_none()
        if not preference:
            raise not_found("Job preferences not found", "PREFERENCES_NOT_FOUND")
        return preference

    async def get_active(self, user_id: str) -> List[JobPreference]:
        result = await self.db.execute(
            select(JobPreference)
            .where(JobPreference.user_id == user_id, JobPreference.is_active.is_(True))
            .order_by(JobPreference.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_all_active(self) -> List[JobPreference]:
        """Every active profile across all users (handed to the N8N workflow)."""
        result = await self.db.execute(
            select(JobPreference)
            .where(JobPreference.is_active.is_(True))
            .order_by(JobPreference.created_at)
        )
        return list(result.scalars().all())

    async def update(
        self, preference_id: str, user_id: str, data: JobPreferenceUpdate
    ) -> JobPreference:
        preference = await self.get(preference_id, user_id)
        changes = data.model_dump(exclude_unset=True)

        if "salary_range" in changes:
            validate_range(data.salary_range, "INVALID_SALARY_RANGE", "salary_range")
        if "day_rate_range" in changes:
            validate_range(data.day_rate_range, "INVALID_DAY_RATE_RANGE", "day_rate_range")
        if changes.get("location") is not None:
            validate_location(data.location)
        if changes.get("profile_name") and changes["profile_name"].lower() != preference.profile_name.lower():
            await self._ensure_unique_name(user_id, changes["profile_name"], exclude_id=preference_id)

        values = data.model_dump(mode="json", exclude_unset=True)
        if "keywords" in values:
            values["keywords"] = clean_keywords(values["keywords"] or [])

        for field, value in values.items():
            if value is None and field not in ("job_title", "salary_range", "day_rate_range"):
                continue
            setattr(preference, field, value)

        await self.db.commit()
        await self.db.refresh(preference)
        return preference

    async def toggle_active(self, preference_id: str, user_id: str) -> JobPreference:
        preference = await self.get(preference_id, user_id)
        preference.is_active = not preference.is_active
        await self.db.commit()
        await self.db.refresh(preference)
        return preference

    async def delete(self, preference_id: str, user_id: str) -> None:
        preference = await self.get(preference_id, user_id)
        await self.db.delete(preference)
        await self.db.commit()
        logger.info(f"Deleted preference profile {preference_id}")

    async def stats(self, user_id: str) -> dict:
        total = await self.db.execute(
            select(func.count(JobPreference.id)).where(JobPreference.user_id == user_id)
        )
        active = await self.db.execute(
            select(func.count(JobPreference.id)).where(
                JobPreference.user_id == user_id,
                JobPreference.is_active.is_(True),
            )
        )
        return {
            "total_profiles": total.scalar() or 0,
            "active_profiles": active.scalar() or 0,
        }

    async def duplicate(
        self, preference_id: str, user_id: str, new_profile_name: str
    ) -> JobPreference:
        source = await self.get(preference_id, user_id)
        await self._ensure_unique_name(user_id, new_profile_name)

        copy = JobPreference(
            user_id=user_id,
            profile_name=new_profile_name,
            job_title=source.job_title,
            keywords=list(source.keywords or []),
            location=dict(source.location or {}),
            contract_types=list(source.contract_types or []),
            salary_range=dict(source.salary_range) if source.salary_range else None,
            day_rate_range=dict(source.day_rate_range) if source.day_rate_range else None,
            experience_levels=list(source.experience_levels or []),
            company_sizes=list(source.company_sizes or []),
            is_active=source.is_active,
        )
        self.db.add(copy)
        await self.db.commit()
        await self.db.refresh(copy)
        return copy

    async def health_check(self) -> bool:
        try:
            await self.db.execute(select(func.count(JobPreference.id)))
            return True
        except Exception as e:
            logger.error(f"Preferences health check failed: {e}")
            return False

