"""
Audio Profile Estimator for SeedMix

Derives the five-scalar AudioProfile of a seed set: the mean of provider
audio features when they are available, otherwise a genre-based estimate.
"""

from statistics import fmean
from typing import Iterable, List, Optional, Sequence

import structlog

from ..api.spotify_client import AudioFeatures
from ..models.errors import ProviderError
from ..models.playlist_models import AudioProfile, PlaylistFilters, Track
from ..utils.async_utils import call_with_timeout

logger = structlog.get_logger(__name__)


DEFAULT_TEMPO = 120.0

# Matched by substring against the lowercase joined genre string, first hit wins.
# Longer or more specific keywords come before the keywords they contain.
GENRE_TEMPO_TABLE = (
    ("drum and bass", 170.0),
    ("drum & bass", 170.0),
    ("jungle", 165.0),
    ("hardcore", 160.0),
    ("punk", 160.0),
    ("dubstep", 140.0),
    ("trap", 140.0),
    ("metal", 140.0),
    ("trance", 138.0),
    ("techno", 130.0),
    ("house", 128.0),
    ("edm", 128.0),
    ("disco", 120.0),
    ("dance", 120.0),
    ("rock", 120.0),
    ("pop", 118.0),
    ("indie", 115.0),
    ("funk", 110.0),
    ("jazz", 110.0),
    ("country", 110.0),
    ("folk", 100.0),
    ("acoustic", 100.0),
    ("hip hop", 95.0),
    ("hip-hop", 95.0),
    ("reggaeton", 95.0),
    ("rap", 95.0),
    ("soul", 95.0),
    ("r&b", 90.0),
    ("classical", 90.0),
    ("lo-fi", 85.0),
    ("lofi", 85.0),
    ("reggae", 80.0),
    ("ambient", 80.0),
)


def estimate_tempo_from_genres(genres: Iterable[str]) -> float:
    """
    Estimate a tempo from genre keywords.

    Pure and deterministic: the same genres always give the same BPM.

    Args:
        genres: Genre names in any case

    Returns:
        Estimated BPM, DEFAULT_TEMPO when nothing matches
    """
    genre_string = " ".join(genres).lower()
    for keyword, bpm in GENRE_TEMPO_TABLE:
        if keyword in genre_string:
            return bpm
    return DEFAULT_TEMPO


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


class AudioProfileEstimator:
    """
    Computes or estimates the audio profile of the seed tracks.

    Provider failures never propagate: every failure path ends in an
    estimated profile with `is_estimated=True`.
    """

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: Per-call timeout for provider requests in seconds
        """
        self.timeout = timeout
        self.logger = logger.bind(component="AudioProfileEstimator")

    def profile_from_features(
        self,
        features: Sequence[Optional[AudioFeatures]]
    ) -> Optional[AudioProfile]:
        """
        Average provider features into a measured profile.

        Missing entries are excluded from the mean.

        Returns:
            The mean profile, or None when no entries remain
        """
        present = [f for f in features if f is not None]
        if not present:
            return None

        return AudioProfile(
            danceability=_clamp(fmean(f.danceability for f in present)),
            energy=_clamp(fmean(f.energy for f in present)),
            valence=_clamp(fmean(f.valence for f in present)),
            tempo=max(1.0, fmean(f.tempo for f in present)),
            acousticness=_clamp(fmean(f.acousticness for f in present)),
            is_estimated=False
        )

    def estimate_from_genres(
        self,
        genres: Iterable[str],
        filters: Optional[PlaylistFilters] = None
    ) -> AudioProfile:
        """
        Build an estimated profile from genre keywords and caller targets.

        Caller-supplied targets win; otherwise the defaults (0.5, and the
        genre-derived tempo) are used.
        """
        filters = filters or PlaylistFilters()
        tempo = filters.target_tempo or estimate_tempo_from_genres(genres)

        return AudioProfile(
            danceability=filters.target_danceability if filters.target_danceability is not None else 0.5,
            energy=filters.target_energy if filters.target_energy is not None else 0.5,
            valence=filters.target_valence if filters.target_valence is not None else 0.5,
            tempo=tempo,
            acousticness=filters.target_acousticness if filters.target_acousticness is not None else 0.5,
            is_estimated=True
        )

    async def estimate(
        self,
        provider,
        seed_tracks: List[Track],
        filters: Optional[PlaylistFilters] = None
    ) -> AudioProfile:
        """
        Compute the seed profile, falling back to a genre estimate.

        Args:
            provider: SpotifyClient for the current request
            seed_tracks: The seed tracks
            filters: Optional caller overrides used by the estimate

        Returns:
            Measured profile, or an estimated one on any failure
        """
        seed_ids = [track.id for track in seed_tracks]

        try:
            features = await call_with_timeout(
                provider.get_audio_features(seed_ids),
                self.timeout,
                "get_audio_features"
            )
        except ProviderError as e:
            self.logger.warning(
                "Audio features unavailable - estimating from genres",
                external_call="get_audio_features",
                error=str(e)
            )
            features = []

        profile = self.profile_from_features(features or [])
        if profile is not None:
            self.logger.info(
                "Audio profile computed from provider features",
                seeds=len(seed_ids),
                features_used=len([f for f in features if f is not None])
            )
            return profile

        genres = await self._fetch_seed_genres(provider, seed_tracks)
        profile = self.estimate_from_genres(genres, filters)
        self.logger.info(
            "Audio profile estimated",
            genre_count=len(genres),
            tempo=profile.tempo
        )
        return profile

    async def _fetch_seed_genres(self, provider, seed_tracks: List[Track]) -> List[str]:
        artist_ids = list(dict.fromkeys(
            track.primary_artist_id for track in seed_tracks if track.primary_artist_id
        ))
        if not artist_ids:
            return []

        try:
            artists = await call_with_timeout(
                provider.get_artists(artist_ids),
                self.timeout,
                "get_artists"
            )
        except ProviderError as e:
            self.logger.warning(
                "Seed artist genres unavailable - using default tempo",
                external_call="get_artists",
                error=str(e)
            )
            return []

        return [genre for artist in artists for genre in artist.genres]
