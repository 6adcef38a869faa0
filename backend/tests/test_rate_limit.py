"""
Tests for Redis Rate Limiting

Tests cover:
- Fixed-window counting (INCR + EXPIRE on first hit)
- Rejection above the limit
- Failing open when Redis is unavailable
- Disabled limiting
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from jobfinder.errors import AppError
from jobfinder.services.rate_limit import RateLimiter


def make_request(host="10.0.0.1"):
    return SimpleNamespace(client=SimpleNamespace(host=host))


def enabled_settings():
    return MagicMock(rate_limit_enabled=True, redis_url="redis://localhost:6379")


class TestRateLimiter:
    """Test the limiter with a mocked Redis client."""

    @pytest.fixture
    def redis_client(self):
        client = AsyncMock()
        client.incr.return_value = 1
        return client

    @pytest.fixture
    def limiter(self, redis_client):
        limiter = RateLimiter("auth", max_requests=2, window_seconds=900)
        limiter.redis = redis_client
        return limiter

    def test_key_format(self, limiter):
        assert limiter.key_for("10.0.0.1") == "ratelimit:auth:10.0.0.1"

    @pytest.mark.asyncio
    async def test_first_hit_sets_expiry(self, limiter, redis_client):
        assert await limiter.hit("10.0.0.1") == 1
        redis_client.expire.assert_called_once_with("ratelimit:auth:10.0.0.1", 900)

    @pytest.mark.asyncio
    async def test_later_hits_keep_expiry(self, limiter, redis_client):
        redis_client.incr.return_value = 2
        await limiter.hit("10.0.0.1")
        redis_client.expire.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_over_limit(self, limiter, redis_client):
        redis_client.incr.return_value = 3
        with patch("jobfinder.services.rate_limit.get_settings", return_value=enabled_settings()):
            with pytest.raises(AppError) as exc:
                await limiter(make_request())

        assert exc.value.status_code == 429
        assert exc.value.code == "AUTH_RATE_LIMIT_EXCEEDED"

    @pytest.mark.asyncio
    async def test_allows_within_limit(self, limiter, redis_client):
        redis_client.incr.return_value = 2
        with patch("jobfinder.services.rate_limit.get_settings", return_value=enabled_settings()):
            await limiter(make_request())

    @pytest.mark.asyncio
    async def test_fails_open_when_redis_errors(self, limiter, redis_client):
        redis_client.incr.side_effect = ConnectionError("Redis down")

        assert await limiter.hit("10.0.0.1") is None
        with patch("jobfinder.services.rate_limit.get_settings", return_value=enabled_settings()):
            await limiter(make_request())

    @pytest.mark.asyncio
    async def test_disabled_skips_redis(self, limiter, redis_client):
        settings = MagicMock(rate_limit_enabled=False)
        with patch("jobfinder.services.rate_limit.get_settings", return_value=settings):
            await limiter(make_request())
        redis_client.incr.assert_not_called()

    @pytest.mark.asyncio
    async def test_close(self, limiter, redis_client):
        await limiter.close()
        redis_client.close.assert_called_once()
        assert limiter.redis is None
