"""
Playlist Models for SeedMix

Pydantic models for the data that flows through one playlist generation run:
seed and candidate tracks, the audio profile, the discovery strategy, the
narrative and the assembled result handed to persistence.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting both snake_case and camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Track(CamelModel):
    """A streaming-provider track as used for seeds and candidates."""

    id: str = Field(..., description="Provider track identifier")
    name: str = Field(..., description="Track title")
    artists: str = Field(..., description="Artist names joined for display")
    album: str = Field(default="", description="Album name")
    image: Optional[str] = Field(default=None, description="Cover image URL")
    uri: str = Field(default="", description="Provider URI")
    duration_ms: int = Field(default=0, ge=0, description="Duration in milliseconds")
    artist_names: List[str] = Field(default_factory=list, description="Individual artist names")
    artist_ids: List[str] = Field(default_factory=list, description="Provider artist identifiers")
    release_year: Optional[int] = Field(default=None, description="Album release year when known")

    @property
    def primary_artist(self) -> str:
        """Name of the first credited artist."""
        if self.artist_names:
            return self.artist_names[0]
        return self.artists.split(", ")[0]

    @property
    def primary_artist_id(self) -> Optional[str]:
        return self.artist_ids[0] if self.artist_ids else None


# Seeds and candidates share one shape; the aliases keep call sites readable.
SeedTrack = Track
CandidateTrack = Track


class AudioProfile(CamelModel):
    """Five-scalar audio summary of a track set."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    danceability: float = Field(default=0.5, ge=0.0, le=1.0)
    energy: float = Field(default=0.5, ge=0.0, le=1.0)
    valence: float = Field(default=0.5, ge=0.0, le=1.0)
    tempo: float = Field(default=120.0, gt=0.0, description="Beats per minute")
    acousticness: float = Field(default=0.5, ge=0.0, le=1.0)
    is_estimated: bool = Field(default=False, description="True when derived from heuristics")


class PlaylistFilters(CamelModel):
    """Caller overrides for target features, release years and size."""

    target_danceability: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    target_energy: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    target_valence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    target_tempo: Optional[float] = Field(default=None, gt=0.0, le=300.0)
    target_acousticness: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    min_year: Optional[int] = Field(default=None, ge=1900, le=2100)
    max_year: Optional[int] = Field(default=None, ge=1900, le=2100)
    limit: Optional[int] = Field(default=None, ge=1, le=100)

    @model_validator(mode="after")
    def _check_year_bounds(self) -> "PlaylistFilters":
        if self.min_year and self.max_year and self.min_year > self.max_year:
            raise ValueError("min_year must not be greater than max_year")
        return self

    def year_in_bounds(self, year: Optional[int]) -> bool:
        """Release-year predicate; unknown years always pass."""
        if year is None:
            return True
        if self.min_year is not None and year < self.min_year:
            return False
        if self.max_year is not None and year > self.max_year:
            return False
        return True


class DiscoveryStrategy(CamelModel):
    """Genres, artists and queries used to discover candidates without provider recommendations."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    primary_genres: List[str] = Field(default_factory=list)
    related_genres: List[str] = Field(default_factory=list)
    suggested_artists: List[str] = Field(default_factory=list, description="Display names, never seed artists")
    search_queries: List[str] = Field(default_factory=list)
    time_context: str = Field(default="")
    diversity_strategy: str = Field(default="")
    excluded_genres: List[str] = Field(default_factory=list)
    musical_characteristics: Optional[Dict[str, Any]] = None


class EnergyFlow(CamelModel):
    description: str = ""
    pattern: str = ""
    peaks: List[int] = Field(default_factory=list)
    valleys: List[int] = Field(default_factory=list)


class EmotionalArc(CamelModel):
    description: str = ""
    pattern: str = ""
    progression: str = ""


class TrackInsight(CamelModel):
    track_number: int = Field(..., description="1-based position in the final playlist")
    insight: str
    icon: str = "🎵"


class PlaylistNarrative(CamelModel):
    """Descriptive metadata and per-track annotations for a generated playlist."""

    playlist_name: str
    description: str
    mood: str
    vibe: str = ""
    recommended_genres: List[str] = Field(default_factory=list)
    listening_context: str = ""
    emotional_journey: str = ""
    reasoning: str = ""
    energy_flow: EnergyFlow = Field(default_factory=EnergyFlow)
    emotional_arc: EmotionalArc = Field(default_factory=EmotionalArc)
    insights: List[TrackInsight] = Field(default_factory=list)
    is_fallback: bool = Field(default=False, description="True when produced without the model")

    def positions_valid(self, track_count: int) -> bool:
        """Check every referenced track position lies within [1, track_count]."""
        positions = (
            list(self.energy_flow.peaks)
            + list(self.energy_flow.valleys)
            + [insight.track_number for insight in self.insights]
        )
        return all(1 <= position <= track_count for position in positions)


class GenerationAlgorithm(str, Enum):
    """Tag identifying which path produced a result."""
    PROVIDER_RECOMMENDATIONS = "provider-recommendations"
    AI_ENHANCED_DIVERSITY = "ai-enhanced-diversity"
    SEED_ARTIST_BACKSTOP = "seed-artist-backstop"
    SEED_PADDING = "seed-padding"


class GeneratedPlaylistResult(CamelModel):
    """Unit handed to the persistence collaborator."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=False
    )

    seed_tracks: List[Track]
    generated_tracks: List[Track]
    audio_profile: AudioProfile
    discovery_strategy: Optional[DiscoveryStrategy] = None
    narrative: Optional[PlaylistNarrative] = None
    used_fallback: bool = False
    algorithm: GenerationAlgorithm = GenerationAlgorithm.PROVIDER_RECOMMENDATIONS


class StoredPlaylist(CamelModel):
    """Persisted playlist record."""

    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    result: GeneratedPlaylistResult
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    provider_playlist_id: Optional[str] = None
