"""
Tests for the Spotify Web API client.

HTTP is never performed: `_make_spotify_request` is patched per test.
"""

from unittest.mock import AsyncMock, patch

import pytest

from seedmix.api.rate_limiter import UnifiedRateLimiter
from seedmix.api.spotify_client import SpotifyClient
from seedmix.models.errors import ProviderError


def _track_payload(track_id="t1", release_date="2019-05-01"):
    return {
        "id": track_id,
        "name": "Song",
        "uri": f"spotify:track:{track_id}",
        "duration_ms": 180000,
        "artists": [{"id": "a1", "name": "Artist One"}, {"id": "a2", "name": "Artist Two"}],
        "album": {
            "name": "Album",
            "release_date": release_date,
            "images": [{"url": "https://img/large"}, {"url": "https://img/small"}]
        }
    }


class TestSpotifyClient:
    """Test suite for SpotifyClient."""

    @pytest.fixture
    def client(self):
        return SpotifyClient("token", rate_limiter=UnifiedRateLimiter(service_name="test"))

    def test_requires_access_token(self):
        with pytest.raises(ValueError):
            SpotifyClient("")

    def test_parse_track(self):
        track = SpotifyClient.parse_track(_track_payload())

        assert track.artists == "Artist One, Artist Two"
        assert track.artist_ids == ["a1", "a2"]
        assert track.primary_artist == "Artist One"
        assert track.image == "https://img/large"
        assert track.release_year == 2019

    def test_parse_track_without_release_date(self):
        track = SpotifyClient.parse_track(_track_payload(release_date=""))
        assert track.release_year is None

    @pytest.mark.asyncio
    async def test_get_recommendations_sends_targets(self, client):
        with patch.object(
            client, "_make_spotify_request",
            AsyncMock(return_value={"tracks": [_track_payload("r1")]})
        ) as request:
            tracks = await client.get_recommendations(
                ["s1", "s2", "s3", "s4", "s5", "s6"],
                {"energy": 0.71234, "tempo": 120.0},
                limit=10
            )

        endpoint, params = request.call_args.args
        assert endpoint == "recommendations"
        assert params["seed_tracks"] == "s1,s2,s3,s4,s5"
        assert params["target_energy"] == 0.712
        assert params["target_tempo"] == 120.0
        assert params["limit"] == 10
        assert [t.id for t in tracks] == ["r1"]

    @pytest.mark.asyncio
    async def test_get_audio_features_keeps_missing_entries(self, client):
        payload = {
            "audio_features": [
                {"id": "t1", "danceability": 0.5, "energy": 0.6, "valence": 0.7, "acousticness": 0.1, "tempo": 120},
                None
            ]
        }
        with patch.object(client, "_make_spotify_request", AsyncMock(return_value=payload)):
            features = await client.get_audio_features(["t1", "t2"])

        assert features[0].energy == 0.6
        assert features[1] is None

    @pytest.mark.asyncio
    async def test_search_tracks(self, client):
        payload = {"tracks": {"items": [_track_payload("x1"), _track_payload("x2")]}}
        with patch.object(client, "_make_spotify_request", AsyncMock(return_value=payload)) as request:
            tracks = await client.search_tracks("indie chill", limit=20, offset=0)

        assert request.call_args.args[1]["type"] == "track"
        assert [t.id for t in tracks] == ["x1", "x2"]

    @pytest.mark.asyncio
    async def test_malformed_track_payload_raises_provider_error(self, client):
        with patch.object(client, "_make_spotify_request", AsyncMock(return_value={"tracks": [{"name": "no id"}]})):
            with pytest.raises(ProviderError):
                await client.get_artist_top_tracks("a1")

    @pytest.mark.asyncio
    async def test_malformed_artist_search_raises_provider_error(self, client):
        payload = {"artists": {"items": [{"name": "No Id"}]}}
        with patch.object(client, "_make_spotify_request", AsyncMock(return_value=payload)):
            with pytest.raises(ProviderError) as exc_info:
                await client.search_artists("No Id")

        assert exc_info.value.endpoint == "search"

    @pytest.mark.asyncio
    async def test_malformed_related_artist_raises_provider_error(self, client):
        payload = {"artists": [{"id": "a2", "name": "Fine"}, {"id": "a3"}]}
        with patch.object(client, "_make_spotify_request", AsyncMock(return_value=payload)):
            with pytest.raises(ProviderError):
                await client.get_related_artists("a1")

    @pytest.mark.asyncio
    async def test_get_related_artists_skips_null_entries(self, client):
        payload = {"artists": [None, {"id": "a2", "name": "Fine", "genres": ["indie"]}]}
        with patch.object(client, "_make_spotify_request", AsyncMock(return_value=payload)):
            artists = await client.get_related_artists("a1")

        assert [a.id for a in artists] == ["a2"]
        assert artists[0].genres == ["indie"]

    @pytest.mark.asyncio
    async def test_create_playlist_without_id_raises_provider_error(self, client):
        with patch.object(client, "_make_spotify_request", AsyncMock(return_value={"name": "Mix"})):
            with pytest.raises(ProviderError):
                await client.create_playlist("user-1", "Mix")

    @pytest.mark.asyncio
    async def test_create_playlist_returns_payload(self, client):
        created = {"id": "sp-1", "external_urls": {"spotify": "https://open.spotify.com/playlist/sp-1"}}
        with patch.object(client, "_make_spotify_request", AsyncMock(return_value=created)) as request:
            assert await client.create_playlist("user-1", "Mix", description="d") == created

        request.assert_awaited_once_with(
            "users/user-1/playlists",
            method="POST",
            json_body={"name": "Mix", "description": "d", "public": False}
        )

    @pytest.mark.asyncio
    async def test_add_tracks_rejects_oversized_batch(self, client):
        with pytest.raises(ValueError):
            await client.add_tracks_to_playlist("p1", [f"uri{i}" for i in range(101)])

    @pytest.mark.asyncio
    async def test_request_without_session_fails(self, client):
        with pytest.raises(ProviderError):
            await client.get_current_user()

    def test_extract_api_error(self, client):
        assert client._extract_api_error({"error": {"status": 401, "message": "expired"}}) == "expired"
        assert client._extract_api_error({"tracks": []}) is None
