"""
Tests for the external-call timeout helper.
"""

import asyncio

import pytest

from seedmix.models.errors import LLMError, ProviderError
from seedmix.utils.async_utils import call_with_timeout


async def _slow(value, delay):
    await asyncio.sleep(delay)
    return value


class TestCallWithTimeout:
    """Timeouts become the call site's ordinary failure type."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        assert await call_with_timeout(_slow("ok", 0), 1.0, "fast_call") == "ok"

    @pytest.mark.asyncio
    async def test_timeout_is_provider_error(self):
        with pytest.raises(ProviderError, match="slow_call timed out"):
            await call_with_timeout(_slow("late", 1.0), 0.01, "slow_call")

    @pytest.mark.asyncio
    async def test_custom_error_type(self):
        with pytest.raises(LLMError):
            await call_with_timeout(_slow("late", 1.0), 0.01, "completion", error_cls=LLMError)

    @pytest.mark.asyncio
    async def test_no_timeout(self):
        assert await call_with_timeout(_slow(3, 0.01), None, "unbounded") == 3
