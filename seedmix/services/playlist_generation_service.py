"""
Playlist Generation Service

Runs one generation request end to end: the recommendation pipeline, the
narrative over the final track list, then persistence. Nothing is stored
unless every step before it completed.
"""

from datetime import date
from typing import List, Optional, Tuple

import structlog

from ..agents.playlist_narrator import PlaylistNarrator
from ..models.playlist_models import GeneratedPlaylistResult, PlaylistFilters, StoredPlaylist, Track
from .playlist_store import PlaylistStore
from .recommendation_orchestrator import RecommendationOrchestrator

logger = structlog.get_logger(__name__)


class PlaylistGenerationService:
    """Coordinates orchestrator, narrator and store for a single user request."""

    def __init__(
        self,
        orchestrator: RecommendationOrchestrator,
        narrator: PlaylistNarrator,
        store: PlaylistStore
    ):
        self.orchestrator = orchestrator
        self.narrator = narrator
        self.store = store
        self.logger = logger.bind(service="PlaylistGenerationService")

    async def generate_playlist(
        self,
        provider,
        user_id: str,
        seed_tracks: List[Track],
        filters: Optional[PlaylistFilters] = None
    ) -> StoredPlaylist:
        """
        Generate, narrate and persist a playlist.

        Args:
            provider: SpotifyClient bound to the caller's token
            user_id: Owning provider user id
            seed_tracks: 3-5 seed tracks
            filters: Optional caller overrides

        Returns:
            The stored playlist record

        Raises:
            ValueError: If the seed count is out of range
            GenerationError: If the pipeline could not produce a result
        """
        result = await self.orchestrator.generate(provider, seed_tracks, filters)

        narrative = await self.narrator.narrate(
            result.seed_tracks,
            result.audio_profile,
            result.generated_tracks
        )
        result = result.model_copy(update={"narrative": narrative})

        name, description = self.playlist_title(result)
        playlist_id = self.store.save(result, user_id, name, description)

        self.logger.info(
            "Playlist generated and stored",
            playlist_id=playlist_id,
            algorithm=result.algorithm.value,
            used_fallback=result.used_fallback,
            narrative_fallback=narrative.is_fallback
        )
        return self.store.get(playlist_id)

    @staticmethod
    def playlist_title(result: GeneratedPlaylistResult) -> Tuple[str, str]:
        """Name and description, from the narrative when there is one."""
        if result.narrative is not None:
            return result.narrative.playlist_name, result.narrative.description

        algorithm = "fallback discovery" if result.used_fallback else "provider recommendations"
        return (
            f"AI Playlist - {date.today().isoformat()}",
            f"Generated from {len(result.seed_tracks)} seed tracks using {algorithm}"
        )
