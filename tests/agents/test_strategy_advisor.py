"""
Tests for StrategyAdvisor.
"""

import asyncio
import json
from unittest.mock import AsyncMock, Mock

import pytest

from seedmix.agents.strategy_advisor import StrategyAdvisor
from seedmix.models.playlist_models import AudioProfile


def _response(data):
    response = Mock()
    response.text = data if isinstance(data, str) else json.dumps(data)
    return response


class TestStrategyAdvisor:
    """Test suite for StrategyAdvisor."""

    @pytest.fixture
    def mock_gemini_client(self):
        client = Mock()
        client.generate_content_async = AsyncMock()
        return client

    @pytest.fixture
    def profile(self):
        return AudioProfile(danceability=0.4, energy=0.3, valence=0.3, tempo=95.0, acousticness=0.8)

    @pytest.mark.asyncio
    async def test_valid_model_output(self, mock_gemini_client, seed_tracks, profile):
        mock_gemini_client.generate_content_async.return_value = _response({
            "primaryGenres": ["indie folk"],
            "relatedGenres": ["chamber pop"],
            "suggestedArtists": ["X", "Seed Artist A", "Y", "x"],
            "searchQueries": ["indie chill", " "],
            "timeContext": "Evening",
            "diversityStrategy": "Mix eras"
        })
        advisor = StrategyAdvisor(mock_gemini_client)

        strategy = await advisor.advise(seed_tracks, profile)

        assert strategy.suggested_artists == ["X", "Y"]
        assert strategy.search_queries == ["indie chill"]
        assert strategy.primary_genres == ["indie folk"]
        assert advisor.success_count == 1

    @pytest.mark.asyncio
    async def test_prompt_lists_seeds_and_descriptors(self, mock_gemini_client, seed_tracks, profile):
        mock_gemini_client.generate_content_async.return_value = _response({"searchQueries": ["q"]})
        advisor = StrategyAdvisor(mock_gemini_client)

        await advisor.advise(seed_tracks, profile)

        prompt = mock_gemini_client.generate_content_async.call_args.args[0]
        assert '"Seed One" by Seed Artist A' in prompt
        assert "low energy" in prompt
        assert "do not mix in unrelated genres" in prompt

    @pytest.mark.asyncio
    async def test_malformed_output_falls_back(self, mock_gemini_client, seed_tracks, profile):
        mock_gemini_client.generate_content_async.return_value = _response("I cannot help with that")
        advisor = StrategyAdvisor(mock_gemini_client)

        strategy = await advisor.advise(seed_tracks, profile)

        assert strategy == StrategyAdvisor.fallback_strategy(profile)
        assert advisor.fallback_count == 1

    @pytest.mark.asyncio
    async def test_wrong_shape_falls_back(self, mock_gemini_client, seed_tracks, profile):
        mock_gemini_client.generate_content_async.return_value = _response({"suggestedArtists": "X, Y"})
        advisor = StrategyAdvisor(mock_gemini_client)

        strategy = await advisor.advise(seed_tracks, profile)

        assert strategy.search_queries
        assert strategy.suggested_artists == []

    @pytest.mark.asyncio
    async def test_network_error_falls_back(self, mock_gemini_client, seed_tracks, profile):
        mock_gemini_client.generate_content_async.side_effect = ConnectionError("reset")
        advisor = StrategyAdvisor(mock_gemini_client)

        strategy = await advisor.advise(seed_tracks, profile)

        assert strategy.primary_genres == ["indie folk", "acoustic"]

    @pytest.mark.asyncio
    async def test_hung_model_call_falls_back(self, mock_gemini_client, seed_tracks, profile):
        async def hang(*args, **kwargs):
            await asyncio.sleep(1)

        mock_gemini_client.generate_content_async.side_effect = hang
        advisor = StrategyAdvisor(mock_gemini_client, timeout=0.01)

        strategy = await advisor.advise(seed_tracks, profile)

        assert strategy == StrategyAdvisor.fallback_strategy(profile)
        assert advisor.fallback_count == 1

    @pytest.mark.asyncio
    async def test_empty_queries_are_backfilled(self, mock_gemini_client, seed_tracks, profile):
        mock_gemini_client.generate_content_async.return_value = _response({
            "suggestedArtists": ["X"],
            "searchQueries": []
        })
        advisor = StrategyAdvisor(mock_gemini_client)

        strategy = await advisor.advise(seed_tracks, profile)

        assert strategy.suggested_artists == ["X"]
        assert strategy.search_queries == StrategyAdvisor.fallback_strategy(profile).search_queries

    @pytest.mark.asyncio
    async def test_without_client_uses_fallback(self, seed_tracks, profile):
        advisor = StrategyAdvisor(None)

        strategy = await advisor.advise(seed_tracks, profile)

        assert strategy.search_queries
        assert advisor.is_available is False

    @pytest.mark.parametrize("profile,genre", [
        (AudioProfile(energy=0.2, acousticness=0.8), "indie folk"),
        (AudioProfile(energy=0.9, danceability=0.8), "dance"),
        (AudioProfile(energy=0.9, danceability=0.3), "rock"),
        (AudioProfile(energy=0.5, valence=0.2), "indie"),
        (AudioProfile(energy=0.5, valence=0.5, danceability=0.5), "indie pop"),
    ])
    def test_fallback_thresholds(self, profile, genre):
        strategy = StrategyAdvisor.fallback_strategy(profile)

        assert strategy.primary_genres[0] == genre
        assert strategy.search_queries
