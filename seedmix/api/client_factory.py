"""
API Client Factory

Creates per-request Spotify clients and the shared Gemini model, reusing one
rate limiter per service across all clients the factory hands out.
"""

from typing import Any, Dict, Optional

import structlog

from ..models.config_models import SystemConfig
from .rate_limiter import UnifiedRateLimiter
from .spotify_client import SpotifyClient

logger = structlog.get_logger(__name__)


class APIClientFactory:
    """
    Factory for creating configured API clients.

    Spotify clients are never shared: each one is bound to the access token of
    the request that asked for it. Rate limiters are shared per service.
    """

    def __init__(self, system_config: Optional[SystemConfig] = None):
        """
        Initialize client factory.

        Args:
            system_config: System configuration (defaults are used if omitted)
        """
        self.system_config = system_config or SystemConfig()
        self.logger = logger.bind(service="APIClientFactory")
        self._rate_limiters: Dict[str, UnifiedRateLimiter] = {}

    def _get_rate_limiter(self, service: str) -> UnifiedRateLimiter:
        if service not in self._rate_limiters:
            if service == "spotify":
                limiter = UnifiedRateLimiter.for_spotify(self.system_config.spotify_rate_limit)
            else:
                limiter = UnifiedRateLimiter.for_gemini(self.system_config.gemini_rate_limit)
            self._rate_limiters[service] = limiter
        return self._rate_limiters[service]

    def create_spotify_client(self, access_token: str) -> SpotifyClient:
        """
        Create a Spotify client for one request.

        Args:
            access_token: The calling user's OAuth access token

        Returns:
            Unopened SpotifyClient; use it as an async context manager
        """
        return SpotifyClient(
            access_token=access_token,
            rate_limiter=self._get_rate_limiter("spotify"),
            timeout=self.system_config.provider_timeout_seconds
        )

    def create_gemini_rate_limiter(self) -> UnifiedRateLimiter:
        return self._get_rate_limiter("gemini")

    def create_llm_client(self) -> Optional[Any]:
        """
        Create the Gemini model used by the advisor and narrator.

        Returns:
            Configured GenerativeModel, or None when no API key is configured
        """
        api_key = self.system_config.gemini_api_key
        if not api_key:
            self.logger.warning("No Gemini API key configured - LLM steps will use fallbacks")
            return None

        import google.generativeai as genai

        genai.configure(api_key=api_key)
        model = genai.GenerativeModel(
            self.system_config.gemini_model,
            generation_config={
                "response_mime_type": "application/json",
                "temperature": self.system_config.llm_temperature,
            }
        )
        self.logger.info("Gemini model created", model=self.system_config.gemini_model)
        return model

    def get_rate_limiter_stats(self) -> Dict[str, Dict[str, Any]]:
        return {key: limiter.get_current_usage() for key, limiter in self._rate_limiters.items()}
