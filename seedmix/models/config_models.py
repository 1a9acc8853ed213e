"""
Configuration Models for SeedMix

System-wide settings (credentials, rate limits, timeouts, storage) and the
tunable parameters of the discovery pipeline.
"""

import os
from typing import Optional, Tuple

from pydantic import BaseModel, Field


class GenerationConfig(BaseModel):
    """Tunable parameters of the recommendation pipeline."""

    artist_cap: int = Field(default=2, ge=1, description="Max accepted tracks per primary artist")
    collection_target: int = Field(default=20, ge=1, description="Default playlist size")
    min_viable_tracks: int = Field(default=10, ge=0, description="Pad with seeds below this size")
    min_seed_tracks: int = Field(default=3, ge=1)
    max_seed_tracks: int = Field(default=5, ge=1)

    # Suggested-artist lookup
    max_suggested_artists: int = Field(default=8, ge=0)
    tracks_per_artist: int = Field(default=2, ge=1, description="Max tracks taken per looked-up artist")

    # Free-text search
    search_page_size: int = Field(default=20, ge=1, le=50)
    search_skip_top: int = Field(default=2, ge=0, description="Skip the most obvious hits")
    search_take: int = Field(default=10, ge=1)

    # Related-artist expansion
    related_seed_artists: int = Field(default=2, ge=0)
    related_artists_per_seed: int = Field(default=5, ge=0)

    # Seed-artist backstop
    backstop_seed_artists: int = Field(default=2, ge=0)
    backstop_slice: Tuple[int, int] = Field(default=(2, 7))

    max_concurrent_provider_calls: int = Field(default=4, ge=1)


class SystemConfig(BaseModel):
    """Overall system configuration"""

    # API configurations
    gemini_api_key: Optional[str] = Field(default=None, description="Gemini API key")
    gemini_model: str = Field(default="gemini-2.0-flash", description="Gemini model name")
    llm_temperature: float = Field(default=0.9, ge=0.0, le=2.0, description="LLM temperature")
    market: str = Field(default="US", description="Market used for artist top tracks")

    # Rate limiting
    gemini_rate_limit: int = Field(default=15, description="Gemini requests per minute")
    spotify_rate_limit: int = Field(default=600, description="Spotify requests per hour")

    # Timeouts applied to each external call
    provider_timeout_seconds: float = Field(default=10.0, gt=0)
    llm_timeout_seconds: float = Field(default=30.0, gt=0)

    # Persistence
    store_directory: str = Field(default="data/playlists", description="Playlist store path")

    generation: GenerationConfig = Field(default_factory=GenerationConfig)

    @classmethod
    def from_env(cls) -> "SystemConfig":
        """Build configuration from environment variables."""
        generation = GenerationConfig(
            artist_cap=int(os.getenv("ARTIST_CAP", "2")),
            collection_target=int(os.getenv("COLLECTION_TARGET", "20"))
        )
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY"),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
            market=os.getenv("SPOTIFY_MARKET", "US"),
            provider_timeout_seconds=float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "10")),
            llm_timeout_seconds=float(os.getenv("LLM_TIMEOUT_SECONDS", "30")),
            store_directory=os.getenv("SEEDMIX_STORE_DIR", "data/playlists"),
            generation=generation
        )
