"""
API Module

External service clients with consistent HTTP handling, rate limiting and
error handling. The FastAPI application lives in `seedmix.api.backend`.
"""

from .base_client import BaseAPIClient
from .rate_limiter import UnifiedRateLimiter
from .spotify_client import SpotifyClient, SpotifyArtist, AudioFeatures
from .client_factory import APIClientFactory

__all__ = [
    # Base infrastructure
    "BaseAPIClient",
    "UnifiedRateLimiter",

    # Spotify client and models
    "SpotifyClient",
    "SpotifyArtist",
    "AudioFeatures",

    # Client factory
    "APIClientFactory",
]
