"""
Tests for AudioProfileEstimator.
"""

import pytest

from seedmix.agents.audio_profile import (
    DEFAULT_TEMPO,
    AudioProfileEstimator,
    estimate_tempo_from_genres,
)
from seedmix.api.spotify_client import AudioFeatures, SpotifyArtist
from seedmix.models.errors import ProviderError
from seedmix.models.playlist_models import PlaylistFilters


def _features(track_id, energy, danceability=0.5, valence=0.5, tempo=120.0, acousticness=0.5):
    return AudioFeatures(
        track_id=track_id,
        danceability=danceability,
        energy=energy,
        valence=valence,
        acousticness=acousticness,
        tempo=tempo
    )


class TestGenreTempo:
    """Test the genre-to-tempo heuristic."""

    @pytest.mark.parametrize("genres,expected", [
        (["Drum and Bass"], 170.0),
        (["deep house"], 128.0),
        (["east coast hip hop"], 95.0),
        (["chamber music"], DEFAULT_TEMPO),
        ([], DEFAULT_TEMPO),
    ])
    def test_lookup(self, genres, expected):
        assert estimate_tempo_from_genres(genres) == expected

    def test_is_deterministic(self):
        genres = ["indie folk", "dream pop", "house"]
        results = {estimate_tempo_from_genres(genres) for _ in range(20)}
        assert len(results) == 1


class TestAudioProfileEstimator:
    """Test suite for AudioProfileEstimator."""

    @pytest.fixture
    def estimator(self):
        return AudioProfileEstimator()

    @pytest.mark.asyncio
    async def test_mean_energy_of_three_seeds(self, estimator, mock_provider, seed_tracks):
        mock_provider.get_audio_features.return_value = [
            _features("seed1", 0.2), _features("seed2", 0.4), _features("seed3", 0.3)
        ]

        profile = await estimator.estimate(mock_provider, seed_tracks)

        assert profile.energy == pytest.approx(0.3)
        assert profile.is_estimated is False

    @pytest.mark.asyncio
    async def test_missing_entries_are_excluded(self, estimator, mock_provider, seed_tracks):
        mock_provider.get_audio_features.return_value = [
            _features("seed1", 0.2, tempo=100.0), None, _features("seed3", 0.6, tempo=140.0)
        ]

        profile = await estimator.estimate(mock_provider, seed_tracks)

        assert profile.energy == pytest.approx(0.4)
        assert profile.tempo == pytest.approx(120.0)

    @pytest.mark.asyncio
    async def test_provider_failure_estimates_from_seed_genres(self, estimator, mock_provider, seed_tracks):
        mock_provider.get_audio_features.side_effect = ProviderError("forbidden", status=403)
        mock_provider.get_artists.return_value = [SpotifyArtist(id="artist-a", name="A", genres=["uk house"])]

        profile = await estimator.estimate(mock_provider, seed_tracks)

        assert profile.is_estimated is True
        assert profile.tempo == 128.0
        assert profile.energy == 0.5
        mock_provider.get_artists.assert_awaited_once_with(["artist-a", "artist-b", "artist-c"])

    @pytest.mark.asyncio
    async def test_total_failure_gives_default_profile(self, estimator, mock_provider, seed_tracks):
        mock_provider.get_audio_features.side_effect = ProviderError("down")
        mock_provider.get_artists.side_effect = ProviderError("down")

        profile = await estimator.estimate(mock_provider, seed_tracks)

        assert profile.is_estimated is True
        assert (profile.danceability, profile.energy, profile.valence, profile.acousticness) == (0.5, 0.5, 0.5, 0.5)
        assert profile.tempo == DEFAULT_TEMPO

    @pytest.mark.asyncio
    async def test_filters_override_estimate(self, estimator, mock_provider, seed_tracks):
        filters = PlaylistFilters(target_energy=0.9, target_tempo=150.0)

        profile = await estimator.estimate(mock_provider, seed_tracks, filters)

        assert profile.is_estimated is True
        assert profile.energy == 0.9
        assert profile.tempo == 150.0
        assert profile.valence == 0.5
