"""
Tests for UnifiedRateLimiter.
"""

import time
from unittest.mock import AsyncMock, patch

import pytest

from seedmix.api.rate_limiter import UnifiedRateLimiter


class TestUnifiedRateLimiter:
    """Test suite for the sliding-window rate limiter."""

    def test_presets(self):
        assert UnifiedRateLimiter.for_spotify().windows == {3600: 600}
        assert UnifiedRateLimiter.for_gemini().windows == {60: 15}

    @pytest.mark.asyncio
    async def test_no_wait_under_limit(self):
        limiter = UnifiedRateLimiter(calls_per_minute=3)

        with patch("seedmix.api.rate_limiter.asyncio.sleep", new=AsyncMock()) as sleep:
            for _ in range(3):
                await limiter.wait_if_needed()

        sleep.assert_not_called()
        assert limiter.get_current_usage()["requests_last_60s"] == 3

    @pytest.mark.asyncio
    async def test_waits_when_window_full(self):
        limiter = UnifiedRateLimiter(calls_per_minute=2)
        now = time.time()
        limiter.request_times.extend([now - 10, now - 5])

        with patch("seedmix.api.rate_limiter.asyncio.sleep", new=AsyncMock()) as sleep:
            await limiter.wait_if_needed()

        sleep.assert_awaited_once()
        wait_time = sleep.call_args.args[0]
        assert 45 < wait_time <= 50

    def test_reset(self):
        limiter = UnifiedRateLimiter(calls_per_hour=10)
        limiter.request_times.append(time.time())

        limiter.reset()

        assert limiter.get_current_usage()["total_requests_tracked"] == 0
