"""
Redis Fixed-Window Rate Limiting

Each limiter counts requests per client IP in a window-sized Redis key:

    ratelimit:{name}:{client_ip}  (INCR, EXPIRE on first hit)

Limiters are FastAPI dependencies. When Redis is unavailable the request
is allowed through and a warning is logged.

Usage:
    @router.post("/login", dependencies=[Depends(auth_limiter)])
"""

import logging
from typing import Optional

import redis.asyncio as redis
from fastapi import Request

from jobfinder.config import get_settings
from jobfinder.errors import AppError
from jobfinder.middleware.metrics import record_rate_limited

logger = logging.getLogger(__name__)


class RateLimiter:
    def __init__(
        self,
        name: str,
        max_requests: int,
        window_seconds: int,
        redis_url: Optional[str] = None,
    ):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.redis_url = redis_url
        self.redis: Optional[redis.Redis] = None

    async def _ensure_connected(self) -> Optional[redis.Redis]:
        if self.redis is None:
            try:
                self.redis = redis.from_url(
                    self.redis_url or get_settings().redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
            except Exception as e:
                logger.warning(f"Failed to connect to Redis for rate limiting: {e}")
                return None
        return self.redis

    def key_for(self, client_id: str) -> str:
        return f"ratelimit:{self.name}:{client_id}"

    async def hit(self, client_id: str) -> Optional[int]:
        """
        Count one request for the client.

        Returns:
            Requests seen in the current window, or None if Redis failed
        """
        try:
            client = await self._ensure_connected()
            if not client:
                return None

            key = self.key_for(client_id)
            count = await client.incr(key)
            if count == 1:
                await client.expire(key, self.window_seconds)
            return count

        except Exception as e:
            logger.warning(f"Rate limiter '{self.name}' unavailable, allowing request: {e}")
            return None

    async def __call__(self, request: Request) -> None:
        if not get_settings().rate_limit_enabled:
            return

        client_id = request.client.host if request.client else "unknown"
        count = await self.hit(client_id)

        if count is not None and count > self.max_requests:
            record_rate_limited(self.name)
            raise AppError(
                "Too many requests, please try again later",
                429,
                f"{self.name.upper()}_RATE_LIMIT_EXCEEDED",
            )

    async def close(self) -> None:
        if self.redis:
            await self.redis.close()
            self.redis = None


api_limiter = RateLimiter(
    "api",
    max_requests=get_settings().rate_limit_max_requests,
    window_seconds=get_settings().rate_limit_window_seconds,
)
auth_limiter = RateLimiter("auth", max_requests=10, window_seconds=15 * 60)
password_limiter = RateLimiter("password", max_requests=3, window_seconds=60 * 60)
preferences_limiter = RateLimiter("preferences", max_requests=20, window_seconds=5 * 60)
webhook_limiter = RateLimiter("webhook", max_requests=100, window_seconds=60)

ALL_LIMITERS = [api_limiter, auth_limiter, password_limiter, preferences_limiter, webhook_limiter]


async def close_limiters() -> None:
    for limiter in ALL_LIMITERS:
        await limiter.close()
