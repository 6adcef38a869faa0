from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from jobfinder.auth import get_current_user
from jobfinder.database import get_db
from jobfinder.errors import bad_request
from jobfinder.models import User
from jobfinder.schemas import (
    NotificationResultResponse,
    NotificationSettingsResponse,
    NotificationSettingsUpdate,
    NotificationTestRequest,
)
from jobfinder.services.alerts import JobAlertService
from jobfinder.services.notification_settings import NotificationSettingsService
from jobfinder.services.notifications import NotificationService

router = APIRouter()


@router.get("/settings", response_model=NotificationSettingsResponse)
async def get_notification_settings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    settings = await NotificationSettingsService(db).get_or_create(user)
    return NotificationSettingsResponse.model_validate(settings)


@router.put("/settings", response_model=NotificationSettingsResponse)
async def update_notification_settings(
    update: NotificationSettingsUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    settings = await NotificationSettingsService(db).update(user, update)
    return NotificationSettingsResponse.model_validate(settings)


@router.post("/test", response_model=NotificationResultResponse)
async def send_test_notification(
    request: NotificationTestRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    recipient = request.recipient
    if not recipient:
        settings = await NotificationSettingsService(db).get_or_create(user)
        recipient = settings.email_address if request.type == "email" else settings.sms_phone_number
    if not recipient:
        raise bad_request(f"No {request.type} recipient configured", "MISSING_RECIPIENT", "recipient")

    result = await NotificationService().send_test_notification(request.type, recipient)
    return NotificationResultResponse(**result.to_dict())


@router.post("/test-all", response_model=dict[str, Optional[NotificationResultResponse]])
async def test_all_channels(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    settings = await NotificationSettingsService(db).get_or_create(user)
    results = await JobAlertService().test_all_channels(settings)
    return {
        channel: NotificationResultResponse(**result.to_dict()) if result else None
        for channel, result in results.items()
    }
