import logging
from typing import Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobfinder.auth import (
    create_access_token,
    hash_password,
    verify_access_token,
    verify_password,
)
from jobfinder.errors import AppError, bad_request, conflict, not_found
from jobfinder.models import User
from jobfinder.schemas import ProfileUpdate, RegisterRequest

logger = logging.getLogger(__name__)


class AuthService:
    """Account lifecycle: registration, login, profile and password changes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    async def register(self, data: RegisterRequest) -> Tuple[User, str]:
        if await self.find_by_email(data.email):
            raise conflict("An account with this email already exists", "EMAIL_EXISTS", "email")

        user = User(
            email=data.email.lower(),
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Registered user {user.id}")
        return user, create_access_token(user.id, user.email)

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        user = await self.find_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise AppError("Invalid email or password", 401, "INVALID_CREDENTIALS")
        return user, create_access_token(user.id, user.email)

    async def update_profile(self, user: User, data: ProfileUpdate) -> User:
        changes = data.model_dump(exclude_unset=True)

        email = changes.get("email")
        if email and email.lower() != user.email:
            existing = await self.find_by_email(email)
            if existing and existing.id != user.id:
                raise conflict("An account with this email already exists", "EMAIL_EXISTS", "email")
            user.email = email.lower()

        for field in ("first_name", "last_name"):
            if field in changes:
                setattr(user, field, changes[field])

        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            raise bad_request("Current password is incorrect", "INVALID_CURRENT_PASSWORD", "current_password")
        user.password_hash = hash_password(new_password)
        await self.db.commit()
        logger.info(f"Password changed for user {user.id}")

    async def delete_account(self, user: User, password: str) -> None:
        if not verify_password(password, user.password_hash):
            raise bad_request("Password is incorrect", "INVALID_PASSWORD", "password")
        await self.db.delete(user)
        await self.db.commit()
        logger.info(f"Deleted account {user.id}")

    async def refresh_token(self, token: str) -> str:
        payload = verify_access_token(token)
        user = await self.db.get(User, payload["sub"])
        if not user:
            raise not_found("User not found", "USER_NOT_FOUND")
        return create_access_token(user.id, user.email)
