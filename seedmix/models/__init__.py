"""
Models Module

Data models, configuration and error types shared across SeedMix.
"""

from .config_models import GenerationConfig, SystemConfig
from .errors import (
    SeedMixError,
    ProviderError,
    LLMError,
    NarrativeValidationError,
    GenerationError,
    PipelineExhaustedError,
    PlaylistNotFoundError,
    PlaylistAccessError
)
from .playlist_models import (
    Track,
    SeedTrack,
    CandidateTrack,
    AudioProfile,
    PlaylistFilters,
    DiscoveryStrategy,
    EnergyFlow,
    EmotionalArc,
    TrackInsight,
    PlaylistNarrative,
    GenerationAlgorithm,
    GeneratedPlaylistResult,
    StoredPlaylist
)

__all__ = [
    # Configuration
    "GenerationConfig",
    "SystemConfig",

    # Errors
    "SeedMixError",
    "ProviderError",
    "LLMError",
    "NarrativeValidationError",
    "GenerationError",
    "PipelineExhaustedError",
    "PlaylistNotFoundError",
    "PlaylistAccessError",

    # Playlist models
    "Track",
    "SeedTrack",
    "CandidateTrack",
    "AudioProfile",
    "PlaylistFilters",
    "DiscoveryStrategy",
    "EnergyFlow",
    "EmotionalArc",
    "TrackInsight",
    "PlaylistNarrative",
    "GenerationAlgorithm",
    "GeneratedPlaylistResult",
    "StoredPlaylist",
]
