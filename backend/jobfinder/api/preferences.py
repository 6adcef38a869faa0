from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jobfinder.auth import get_current_user
from jobfinder.database import get_db
from jobfinder.models import User
from jobfinder.schemas import (
    DuplicatePreferenceRequest,
    JobPreferenceCreate,
    JobPreferenceResponse,
    JobPreferenceUpdate,
    MessageResponse,
    PreferenceStats,
)
from jobfinder.services.preferences import JobPreferencesService
from jobfinder.services.rate_limit import preferences_limiter

router = APIRouter()


@router.get("", response_model=list[JobPreferenceResponse])
async def list_preferences(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    preferences = await JobPreferencesService(db).list_for_user(user.id)
    return [JobPreferenceResponse.model_validate(p) for p in preferences]


@router.post("", response_model=JobPreferenceResponse, status_code=201, dependencies=[Depends(preferences_limiter)])
async def create_preference(
    data: JobPreferenceCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    preference = await JobPreferencesService(db).create(user.id, data)
    return JobPreferenceResponse.model_validate(preference)


@router.get("/active", response_model=list[JobPreferenceResponse])
async def list_active_preferences(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    preferences = await JobPreferencesService(db).get_active(user.id)
    return [JobPreferenceResponse.model_validate(p) for p in preferences]


@router.get("/stats", response_model=PreferenceStats)
async def preference_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return PreferenceStats(**await JobPreferencesService(db).stats(user.id))


@router.get("/{preference_id}", response_model=JobPreferenceResponse)
async def get_preference(
    preference_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    preference = await JobPreferencesService(db).get(preference_id, user.id)
    return JobPreferenceResponse.model_validate(preference)


@router.put("/{preference_id}", response_model=JobPreferenceResponse, dependencies=[Depends(preferences_limiter)])
async def update_preference(
    preference_id: str,
    data: JobPreferenceUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    preference = await JobPreferencesService(db).update(preference_id, user.id, data)
    return JobPreferenceResponse.model_validate(preference)


@router.patch("/{preference_id}/toggle", response_model=JobPreferenceResponse)
async def toggle_preference(
    preference_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    preference = await JobPreferencesService(db).toggle_active(preference_id, user.id)
    return JobPreferenceResponse.model_validate(preference)


@router.post("/{preference_id}/duplicate", response_model=JobPreferenceResponse, status_code=201)
async def duplicate_preference(
    preference_id: str,
    request: DuplicatePreferenceRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    preference = await JobPreferencesService(db).duplicate(preference_id, user.id, request.profile_name)
    return JobPreferenceResponse.model_validate(preference)


@router.delete("/{preference_id}", response_model=MessageResponse)
async def delete_preference(
    preference_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await JobPreferencesService(db).delete(preference_id, user.id)
    return MessageResponse(message="Job preferences deleted successfully")
