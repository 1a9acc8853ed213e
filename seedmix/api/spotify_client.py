"""
Spotify Web API Client

Per-request client authenticated with the calling user's access token.
Covers the catalog, recommendation, artist and playlist endpoints the
generation pipeline and export path depend on.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from ..models.errors import ProviderError
from ..models.playlist_models import Track
from .base_client import BaseAPIClient
from .rate_limiter import UnifiedRateLimiter

logger = structlog.get_logger(__name__)


@dataclass
class AudioFeatures:
    """Spotify audio features."""
    track_id: str
    danceability: float
    energy: float
    valence: float
    acousticness: float
    tempo: float
    instrumentalness: float = 0.0
    speechiness: float = 0.0
    liveness: float = 0.0
    loudness: float = 0.0
    key: int = -1
    mode: int = 0


@dataclass
class SpotifyArtist:
    """Spotify artist data."""
    id: str
    name: str
    genres: List[str] = field(default_factory=list)
    popularity: Optional[int] = None


class SpotifyClient(BaseAPIClient):
    """
    Spotify Web API client bound to one user's access token.

    A new instance is created for every request so that tokens never leak
    between concurrent callers. Every operation raises ProviderError on failure.
    """

    BASE_URL = "https://api.spotify.com/v1"
    MAX_IDS_PER_REQUEST = 50
    MAX_URIS_PER_REQUEST = 100

    def __init__(
        self,
        access_token: str,
        rate_limiter: Optional[UnifiedRateLimiter] = None,
        timeout: float = 10
    ):
        """
        Initialize Spotify client.

        Args:
            access_token: OAuth access token of the calling user
            rate_limiter: Rate limiter instance (a default one is created if omitted)
            timeout: Request timeout in seconds
        """
        if not access_token:
            raise ValueError("Spotify access token is required")

        super().__init__(
            base_url=self.BASE_URL,
            rate_limiter=rate_limiter or UnifiedRateLimiter.for_spotify(),
            timeout=timeout,
            service_name="Spotify"
        )
        self.access_token = access_token

    def _extract_api_error(self, data: Dict[str, Any]) -> Optional[str]:
        if isinstance(data, dict) and "error" in data:
            error_info = data["error"]
            if isinstance(error_info, dict):
                return error_info.get("message", f"Error {error_info.get('status', 'unknown')}")
            return str(error_info)
        return None

    async def _make_spotify_request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        method: str = "GET",
        json_body: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json"
        }
        return await self._make_request(
            endpoint=endpoint,
            params=params,
            method=method,
            headers=headers,
            json_body=json_body
        )

    @staticmethod
    def parse_track(track_data: Dict[str, Any]) -> Track:
        """
        Convert a Spotify track object into a Track.

        Args:
            track_data: Track object from any Spotify endpoint

        Returns:
            Track with joined artist names, first album image and release year
        """
        artists = track_data.get("artists") or []
        album = track_data.get("album") or {}
        images = album.get("images") or []
        release_date = album.get("release_date") or ""
        release_year = int(release_date[:4]) if release_date[:4].isdigit() else None
        artist_names = [a.get("name", "") for a in artists if a.get("name")]

        return Track(
            id=track_data["id"],
            name=track_data.get("name", ""),
            artists=", ".join(artist_names),
            album=album.get("name", ""),
            image=images[0].get("url") if images else None,
            uri=track_data.get("uri", ""),
            duration_ms=track_data.get("duration_ms") or 0,
            artist_names=artist_names,
            artist_ids=[a["id"] for a in artists if a.get("id")],
            release_year=release_year
        )

    @staticmethod
    def _parse_artist(artist_data: Dict[str, Any]) -> SpotifyArtist:
        return SpotifyArtist(
            id=artist_data["id"],
            name=artist_data.get("name", ""),
            genres=list(artist_data.get("genres") or []),
            popularity=artist_data.get("popularity")
        )

    @staticmethod
    def _parse_features(features_data: Dict[str, Any]) -> AudioFeatures:
        return AudioFeatures(
            track_id=features_data["id"],
            danceability=features_data["danceability"],
            energy=features_data["energy"],
            valence=features_data["valence"],
            acousticness=features_data["acousticness"],
            tempo=features_data["tempo"],
            instrumentalness=features_data.get("instrumentalness", 0.0),
            speechiness=features_data.get("speechiness", 0.0),
            liveness=features_data.get("liveness", 0.0),
            loudness=features_data.get("loudness", 0.0),
            key=features_data.get("key", -1),
            mode=features_data.get("mode", 0)
        )

    def _parse_tracks(self, items: List[Optional[Dict[str, Any]]], endpoint: str) -> List[Track]:
        try:
            return [self.parse_track(item) for item in items if item]
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"Malformed track payload: {e}", endpoint=endpoint) from e

    def _parse_artists(self, items: List[Optional[Dict[str, Any]]], endpoint: str) -> List[SpotifyArtist]:
        try:
            return [self._parse_artist(item) for item in items if item]
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"Malformed artist payload: {e}", endpoint=endpoint) from e

    async def get_current_user(self) -> Dict[str, Any]:
        """Get the profile of the token's owner."""
        data = await self._make_spotify_request("me")
        if not data.get("id"):
            raise ProviderError("User profile missing id", endpoint="me")
        return data

    async def get_tracks(self, track_ids: List[str]) -> List[Track]:
        """
        Get track details for several tracks.

        Args:
            track_ids: Spotify track IDs (max 50)

        Returns:
            Tracks in request order; unknown IDs are skipped
        """
        if not track_ids:
            return []
        data = await self._make_spotify_request(
            "tracks",
            {"ids": ",".join(track_ids[:self.MAX_IDS_PER_REQUEST])}
        )
        return self._parse_tracks(data.get("tracks") or [], "tracks")

    async def get_audio_features(self, track_ids: List[str]) -> List[Optional[AudioFeatures]]:
        """
        Get audio features for several tracks.

        Args:
            track_ids: Spotify track IDs (max 100)

        Returns:
            Features index-aligned with the request; None where unavailable
        """
        if not track_ids:
            return []
        data = await self._make_spotify_request(
            "audio-features",
            {"ids": ",".join(track_ids[:100])}
        )
        features: List[Optional[AudioFeatures]] = []
        for features_data in data.get("audio_features") or []:
            try:
                features.append(self._parse_features(features_data) if features_data else None)
            except (KeyError, TypeError):
                features.append(None)

        self.logger.debug(
            "Audio features retrieved",
            requested=len(track_ids),
            retrieved=len([f for f in features if f])
        )
        return features

    async def get_artists(self, artist_ids: List[str]) -> List[SpotifyArtist]:
        """Get artist details (including genres) for several artists."""
        if not artist_ids:
            return []
        data = await self._make_spotify_request(
            "artists",
            {"ids": ",".join(artist_ids[:self.MAX_IDS_PER_REQUEST])}
        )
        return self._parse_artists(data.get("artists") or [], "artists")

    async def search_tracks(self, query: str, limit: int = 20, offset: int = 0) -> List[Track]:
        """
        Search for tracks with a free-text query.

        Args:
            query: Search query
            limit: Number of results
            offset: Result offset

        Returns:
            Matching tracks in provider ranking order
        """
        data = await self._make_spotify_request(
            "search",
            {"q": query, "type": "track", "limit": limit, "offset": offset}
        )
        items = (data.get("tracks") or {}).get("items") or []
        return self._parse_tracks(items, "search")

    async def search_artists(self, name: str, limit: int = 1) -> List[SpotifyArtist]:
        """Search for artists by name."""
        data = await self._make_spotify_request(
            "search",
            {"q": name, "type": "artist", "limit": limit}
        )
        items = (data.get("artists") or {}).get("items") or []
        return self._parse_artists(items, "search")

    async def get_recommendations(
        self,
        seed_track_ids: List[str],
        targets: Dict[str, float],
        limit: int = 20
    ) -> List[Track]:
        """
        Get provider recommendations seeded with tracks.

        Args:
            seed_track_ids: Up to 5 seed track IDs
            targets: Target feature values keyed by feature name (e.g. "energy")
            limit: Number of recommendations

        Returns:
            Recommended tracks
        """
        params: Dict[str, Any] = {
            "seed_tracks": ",".join(seed_track_ids[:5]),
            "limit": limit,
        }
        for feature, value in targets.items():
            params[f"target_{feature}"] = round(value, 3)

        data = await self._make_spotify_request("recommendations", params)
        return self._parse_tracks(data.get("tracks") or [], "recommendations")

    async def get_artist_top_tracks(self, artist_id: str, market: str = "US") -> List[Track]:
        """Get an artist's top tracks in a market."""
        data = await self._make_spotify_request(
            f"artists/{artist_id}/top-tracks",
            {"market": market}
        )
        return self._parse_tracks(data.get("tracks") or [], "artists/top-tracks")

    async def get_related_artists(self, artist_id: str) -> List[SpotifyArtist]:
        """Get artists related to an artist."""
        data = await self._make_spotify_request(f"artists/{artist_id}/related-artists")
        return self._parse_artists(data.get("artists") or [], "artists/related-artists")

    async def create_playlist(
        self,
        user_id: str,
        name: str,
        description: str = "",
        public: bool = False
    ) -> Dict[str, Any]:
        """Create an empty playlist owned by the user."""
        data = await self._make_spotify_request(
            f"users/{user_id}/playlists",
            method="POST",
            json_body={"name": name, "description": description, "public": public}
        )
        if not data.get("id"):
            raise ProviderError("Created playlist missing id", endpoint="users/playlists")
        return data

    async def add_tracks_to_playlist(self, playlist_id: str, uris: List[str]) -> Dict[str, Any]:
        """
        Append tracks to a playlist.

        Args:
            playlist_id: Spotify playlist ID
            uris: Track URIs (max 100 per call)
        """
        if len(uris) > self.MAX_URIS_PER_REQUEST:
            raise ValueError(f"At most {self.MAX_URIS_PER_REQUEST} URIs per request")
        return await self._make_spotify_request(
            f"playlists/{playlist_id}/tracks",
            method="POST",
            json_body={"uris": uris}
        )
