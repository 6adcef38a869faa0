from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from jobfinder.auth import get_current_user
from jobfinder.database import get_db
from jobfinder.models import User
from jobfinder.models.enums import ApplicationStatus
from jobfinder.schemas import (
    ApplicationStatusUpdate,
    DashboardResponse,
    JobMatchListResponse,
    JobMatchResponse,
    JobStatistics,
    SourceWebsiteCount,
)
from jobfinder.services.job_matches import JobMatchService

router = APIRouter()


@router.get("", response_model=JobMatchListResponse)
async def list_job_matches(
    status: Optional[ApplicationStatus] = Query(None),
    source_website: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    matches, total = await JobMatchService(db).get_user_job_matches(
        user.id,
        page=page,
        limit=limit,
        status=status.value if status else None,
        source_website=source_website,
        search=search,
    )
    return JobMatchListResponse(
        matches=[JobMatchResponse.model_validate(m) for m in matches],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/statistics", response_model=JobStatistics)
async def job_statistics(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return JobStatistics(**await JobMatchService(db).get_job_statistics(user.id))


@router.get("/recent", response_model=list[JobMatchResponse])
async def recent_job_matches(
    limit: int = Query(10, ge=1, le=50),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    matches = await JobMatchService(db).get_recent_job_matches(user.id, limit)
    return [JobMatchResponse.model_validate(m) for m in matches]


@router.get("/by-source", response_model=list[SourceWebsiteCount])
async def job_matches_by_source(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    counts = await JobMatchService(db).get_job_matches_by_source_website(user.id)
    return [SourceWebsiteCount(**c) for c in counts]


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = await JobMatchService(db).get_dashboard(user.id)
    return DashboardResponse(
        statistics=JobStatistics(**data["statistics"]),
        recent_matches=[JobMatchResponse.model_validate(m) for m in data["recent_matches"]],
        matches_by_source=[SourceWebsiteCount(**c) for c in data["matches_by_source"]],
    )


@router.get("/{match_id}", response_model=JobMatchResponse)
async def get_job_match(
    match_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    match = await JobMatchService(db).get_job_match_by_id(match_id, user.id)
    return JobMatchResponse.model_validate(match)


@router.patch("/{match_id}/status", response_model=JobMatchResponse)
async def update_application_status(
    match_id: str,
    update: ApplicationStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = JobMatchService(db)
    match = await service.update_application_status(match_id, user.id, update.application_status)
    return JobMatchResponse.model_validate(match)
