from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from jobfinder.auth import bearer_scheme, get_current_user, verify_access_token
from jobfinder.database import get_db
from jobfinder.models import User
from jobfinder.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    DeleteAccountRequest,
    LoginRequest,
    MessageResponse,
    ProfileUpdate,
    RegisterRequest,
    TokenResponse,
    TokenVerifyResponse,
    UserResponse,
)
from jobfinder.services.rate_limit import auth_limiter, password_limiter
from jobfinder.services.users import AuthService

router = APIRouter()


def _bearer_token(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Access token required", "code": "MISSING_TOKEN"},
        )
    return credentials.credentials


@router.post("/register", response_model=AuthResponse, status_code=201, dependencies=[Depends(auth_limiter)])
async def register(request: RegisterRequest, db: AsyncSession = Depends(get_db)):
    user, token = await AuthService(db).register(request)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(auth_limiter)])
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    user, token = await AuthService(db).login(request.email, request.password)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/logout", response_model=MessageResponse)
async def logout(_: User = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy
    return MessageResponse(message="Logged out successfully")


@router.get("/profile", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    update: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await AuthService(db).update_profile(user, update)
    return UserResponse.model_validate(user)


@router.post("/change-password", response_model=MessageResponse, dependencies=[Depends(password_limiter)])
async def change_password(
    request: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AuthService(db).change_password(user, request.current_password, request.new_password)
    return MessageResponse(message="Password changed successfully")


@router.delete("/account", response_model=MessageResponse)
async def delete_account(
    request: DeleteAccountRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AuthService(db).delete_account(user, request.password)
    return MessageResponse(message="Account deleted successfully")


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
):
    token = await AuthService(db).refresh_token(_bearer_token(credentials))
    return TokenResponse(token=token)


@router.get("/verify", response_model=TokenVerifyResponse)
async def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
):
    payload = verify_access_token(_bearer_token(credentials))
    return TokenVerifyResponse(valid=True, user_id=payload["sub"], email=payload.get("email"))
