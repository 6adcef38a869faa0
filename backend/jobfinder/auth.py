from datetime import timedelta
from typing import Optional

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobfinder.config import get_settings
from jobfinder.database import get_db, utcnow
from jobfinder.errors import AppError
from jobfinder.models import User

settings = get_settings()

ALGORITHM = "HS256"
TOKEN_ISSUER = "job-finder-api"
TOKEN_AUDIENCE = "job-finder-app"
# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode()[:BCRYPT_MAX_BYTES], bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode()[:BCRYPT_MAX_BYTES], password_hash.encode())
    except ValueError:
        return False


def create_access_token(user_id: str, email: str) -> str:
    expire = utcnow() + timedelta(days=settings.jwt_expire_days)
    to_encode = {
        "sub": user_id,
        "email": email,
        "exp": expire,
        "iss": TOKEN_ISSUER,
        "aud": TOKEN_AUDIENCE,
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def verify_access_token(token: str) -> dict:
    """
    Decode and validate a bearer token.

    Raises:
        AppError: 401 TOKEN_EXPIRED or 401 INVALID_TOKEN
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
            audience=TOKEN_AUDIENCE,
            issuer=TOKEN_ISSUER,
        )
    except ExpiredSignatureError:
        raise AppError("Token expired", 401, "TOKEN_EXPIRED")
    except JWTError:
        raise AppError("Invalid token", 401, "INVALID_TOKEN")

    if not payload.get("sub"):
        raise AppError("Invalid token", 401, "INVALID_TOKEN")
    return payload


def _unauthorized(message: str, code: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": message, "code": code},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access token required", "MISSING_TOKEN")

    try:
        payload = verify_access_token(credentials.credentials)
    except AppError as e:
        raise _unauthorized(e.message, e.code)

    result = await db.execute(select(User).where(User.id == payload["sub"]))
    user = result.scalar_one_or_none()
    if not user:
        raise _unauthorized("User no longer exists", "INVALID_TOKEN")
    return user
