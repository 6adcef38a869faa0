from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobfinder.errors import bad_request
from jobfinder.models import NotificationSettings, User
from jobfinder.schemas import NotificationSettingsUpdate


def default_settings(user: User) -> NotificationSettings:
    """Email alerts to the account address; every other channel off."""
    return NotificationSettings(
        user_id=user.id,
        email_enabled=True,
        email_address=user.email,
        email_consolidate_daily=False,
        sms_enabled=False,
        push_enabled=False,
        quiet_hours_enabled=False,
    )


class NotificationSettingsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_or_create(self, user: User) -> NotificationSettings:
        result = await self.db.execute(
            select(NotificationSettings).where(NotificationSettings.user_id == user.id)
        )
        settings = result.scalar_one_or_none()
        if settings is None:
            settings = default_settings(user)
            self.db.add(settings)
            await self.db.commit()
            await self.db.refresh(settings)
        return settings

    async def update(self, user: User, data: NotificationSettingsUpdate) -> NotificationSettings:
        settings = await self.get_or_create(user)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(settings, field, value)

        if settings.quiet_hours_enabled and not (settings.quiet_hours_start and settings.quiet_hours_end):
            raise bad_request(
                "Quiet hours need both a start and an end time",
                "INVALID_QUIET_HOURS",
                "quiet_hours_start",
            )
        await self.db.commit()
        await self.db.refresh(settings)
        return settings
