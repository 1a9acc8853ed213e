"""
Shared fixtures for SeedMix tests.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from seedmix.models.playlist_models import Track


@pytest.fixture
def make_track():
    """Factory for Track objects with sensible defaults."""
    def _make_track(
        track_id: str,
        name: str = None,
        artist: str = "Some Artist",
        artist_id: str = None,
        year: int = None
    ) -> Track:
        return Track(
            id=track_id,
            name=name or f"Song {track_id}",
            artists=artist,
            album="Album",
            uri=f"spotify:track:{track_id}",
            duration_ms=200000,
            artist_names=[artist],
            artist_ids=[artist_id or f"id-{artist.lower().replace(' ', '-')}"],
            release_year=year
        )
    return _make_track


@pytest.fixture
def seed_tracks(make_track):
    """Three seeds by three different artists."""
    return [
        make_track("seed1", "Seed One", "Seed Artist A", "artist-a"),
        make_track("seed2", "Seed Two", "Seed Artist B", "artist-b"),
        make_track("seed3", "Seed Three", "Seed Artist C", "artist-c"),
    ]


@pytest.fixture
def mock_provider():
    """SpotifyClient stand-in whose calls all succeed with empty results."""
    provider = Mock()
    provider.get_current_user = AsyncMock(return_value={"id": "user-1"})
    provider.get_tracks = AsyncMock(return_value=[])
    provider.get_audio_features = AsyncMock(return_value=[])
    provider.get_artists = AsyncMock(return_value=[])
    provider.search_tracks = AsyncMock(return_value=[])
    provider.search_artists = AsyncMock(return_value=[])
    provider.get_recommendations = AsyncMock(return_value=[])
    provider.get_artist_top_tracks = AsyncMock(return_value=[])
    provider.get_related_artists = AsyncMock(return_value=[])
    provider.create_playlist = AsyncMock(return_value={"id": "sp-playlist"})
    provider.add_tracks_to_playlist = AsyncMock(return_value={"snapshot_id": "snap"})
    return provider
