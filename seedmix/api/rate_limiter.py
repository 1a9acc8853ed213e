"""
Unified Rate Limiter

Sliding-window rate limiting shared by the Spotify client and the Gemini
gateway. One limiter instance may be shared by many per-request clients.
"""

import asyncio
import time
from collections import deque
from typing import Dict, Optional

import structlog

logger = structlog.get_logger(__name__)


class UnifiedRateLimiter:
    """
    Rate limiter tracking request timestamps over per-minute and per-hour windows.

    Each configured window is checked before a call is allowed; the caller
    sleeps for the longest wait any window requires.
    """

    def __init__(
        self,
        calls_per_minute: Optional[int] = None,
        calls_per_hour: Optional[int] = None,
        service_name: str = "api"
    ):
        """
        Initialize rate limiter with specified limits.

        Args:
            calls_per_minute: Maximum calls per rolling minute
            calls_per_hour: Maximum calls per rolling hour
            service_name: Service name for logging
        """
        self.windows: Dict[int, int] = {}
        if calls_per_minute:
            self.windows[60] = calls_per_minute
        if calls_per_hour:
            self.windows[3600] = calls_per_hour

        self.service_name = service_name
        self.request_times: deque = deque()
        self.lock = asyncio.Lock()

        self.logger = logger.bind(service=f"RateLimiter-{service_name}")
        self.logger.debug("Rate limiter initialized", windows=self.windows)

    @classmethod
    def for_spotify(cls, calls_per_hour: int = 600) -> "UnifiedRateLimiter":
        """Create rate limiter configured for the Spotify Web API."""
        return cls(calls_per_hour=calls_per_hour, service_name="Spotify")

    @classmethod
    def for_gemini(cls, calls_per_minute: int = 15) -> "UnifiedRateLimiter":
        """Create rate limiter configured for the Gemini API."""
        return cls(calls_per_minute=calls_per_minute, service_name="Gemini")

    async def wait_if_needed(self) -> None:
        """
        Wait if necessary to respect rate limits.

        Must be called before each outgoing request.
        """
        async with self.lock:
            now = time.time()
            self._cleanup_old_requests(now)

            wait_time = max(
                (self._window_wait(now, period, limit) for period, limit in self.windows.items()),
                default=0.0
            )

            if wait_time > 0:
                self.logger.debug(
                    "Rate limit wait required",
                    wait_time=wait_time,
                    tracked_requests=len(self.request_times)
                )
                await asyncio.sleep(wait_time)
                now = time.time()

            self.request_times.append(now)

    def _window_wait(self, now: float, period: int, limit: int) -> float:
        """Seconds until one more call fits in the given window."""
        window_start = now - period
        recent = [t for t in self.request_times if t > window_start]
        if len(recent) < limit:
            return 0.0
        # The oldest call inside the window has to age out first
        return max(0.0, period - (now - recent[-limit]))

    def _cleanup_old_requests(self, now: float) -> None:
        if not self.windows:
            self.request_times.clear()
            return
        cutoff = now - max(self.windows)
        while self.request_times and self.request_times[0] < cutoff:
            self.request_times.popleft()

    def get_current_usage(self) -> dict:
        """
        Get current rate limit usage statistics.

        Returns:
            Dictionary with per-window request counts and limits
        """
        now = time.time()
        usage = {
            "service": self.service_name,
            "total_requests_tracked": len(self.request_times),
        }
        for period, limit in self.windows.items():
            count = len([t for t in self.request_times if t > now - period])
            usage[f"requests_last_{period}s"] = count
            usage[f"limit_{period}s"] = limit
        return usage

    def reset(self) -> None:
        """Reset rate limiter state (useful for testing)."""
        self.request_times.clear()
        self.logger.debug("Rate limiter reset")
