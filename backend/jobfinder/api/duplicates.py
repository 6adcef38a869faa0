from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jobfinder.auth import get_current_user
from jobfinder.database import get_db
from jobfinder.models import User
from jobfinder.schemas import (
    BatchDetectRequest,
    BatchDetectResponse,
    BatchDetectSummary,
    CleanupResponse,
    ConsolidationResponse,
    DetectDuplicatesRequest,
    DuplicateCheckResponse,
    DuplicateStatistics,
    JobMatchResponse,
    WebsiteDuplicateCount,
)
from jobfinder.services.duplicates import DuplicateCheckResult, DuplicateDetectionService
from jobfinder.services.job_matches import JobMatchService
from jobfinder.services.preferences import JobPreferencesService

router = APIRouter()


async def to_check_response(
    service: DuplicateDetectionService, result: DuplicateCheckResult, user: User
) -> DuplicateCheckResponse:
    """The verdict is global; only the caller's own matches are returned."""
    candidates = ([result.existing_job] if result.existing_job else []) + result.similar_jobs
    owned_ids = {m.id for m in await service.filter_owned(candidates, user.id)}

    existing = result.existing_job
    return DuplicateCheckResponse(
        is_duplicate=result.is_duplicate,
        existing_job=JobMatchResponse.model_validate(existing) if existing and existing.id in owned_ids else None,
        similar_jobs=[JobMatchResponse.model_validate(j) for j in result.similar_jobs if j.id in owned_ids],
        confidence=result.confidence,
    )


@router.get("/statistics", response_model=DuplicateStatistics)
async def duplicate_statistics(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stats = await DuplicateDetectionService(db).get_duplicate_statistics(user.id)
    return DuplicateStatistics(
        total_duplicates=stats["total_duplicates"],
        duplicates_by_website=[WebsiteDuplicateCount(**w) for w in stats["duplicates_by_website"]],
        recent_duplicates=[JobMatchResponse.model_validate(m) for m in stats["recent_duplicates"]],
    )


@router.post("/consolidate", response_model=ConsolidationResponse)
async def consolidate_all(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    removed = await JobMatchService(db).consolidate_duplicates_for_user(user.id)
    return ConsolidationResponse(
        removed_count=removed,
        message=f"Consolidated {removed} duplicate job matches",
    )


@router.post("/consolidate/{preference_id}", response_model=ConsolidationResponse)
async def consolidate_preference(
    preference_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    # 404 unless the profile belongs to the caller
    await JobPreferencesService(db).get(preference_id, user.id)
    removed = await DuplicateDetectionService(db).consolidate_duplicates_for_preference(preference_id)
    return ConsolidationResponse(
        removed_count=removed,
        message=f"Consolidated {removed} duplicate job matches",
    )


@router.post("/detect", response_model=DuplicateCheckResponse)
async def detect_duplicates(
    request: DetectDuplicatesRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = DuplicateDetectionService(db)
    result = await service.detect_duplicates(request.job_data, request.options)
    return await to_check_response(service, result, user)


@router.post("/detect/batch", response_model=BatchDetectResponse)
async def detect_batch_duplicates(
    request: BatchDetectRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = DuplicateDetectionService(db)
    results = await service.detect_batch_duplicates(request.jobs, request.options)
    duplicates_found = sum(1 for r in results.values() if r.is_duplicate)
    return BatchDetectResponse(
        results={url: await to_check_response(service, r, user) for url, r in results.items()},
        summary=BatchDetectSummary(
            total_jobs=len(request.jobs),
            duplicates_found=duplicates_found,
            unique_jobs=len(results) - duplicates_found,
        ),
    )


@router.delete("/cleanup", response_model=CleanupResponse)
async def cleanup_duplicates(
    days_old: int = Query(30, ge=1, le=365),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    removed = await DuplicateDetectionService(db).cleanup_duplicates(days_old, user_id=user.id)
    return CleanupResponse(removed_count=removed, days_old=days_old)
