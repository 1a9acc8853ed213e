"""
Tests for PlaylistExportService.
"""

from unittest.mock import Mock

import pytest

from seedmix.models.errors import PlaylistAccessError, ProviderError
from seedmix.models.playlist_models import AudioProfile, GeneratedPlaylistResult, StoredPlaylist
from seedmix.services.playlist_export_service import PlaylistExportService


def _stored(tracks, user_id="user-1"):
    return StoredPlaylist(
        id="pl-1",
        user_id=user_id,
        name="Golden Hour",
        description="Warm",
        result=GeneratedPlaylistResult(
            seed_tracks=[],
            generated_tracks=tracks,
            audio_profile=AudioProfile()
        )
    )


class TestPlaylistExportService:
    """Test suite for PlaylistExportService."""

    @pytest.fixture
    def store(self):
        return Mock()

    @pytest.mark.asyncio
    async def test_exports_in_batches(self, store, mock_provider, make_track):
        store.get_owned.return_value = _stored([make_track(f"t{i}") for i in range(150)])
        mock_provider.create_playlist.return_value = {
            "id": "sp-1",
            "external_urls": {"spotify": "https://open.spotify.com/playlist/sp-1"}
        }
        service = PlaylistExportService(store)

        result = await service.export_playlist(mock_provider, "pl-1", "user-1")

        assert result == {
            "provider_playlist_id": "sp-1",
            "url": "https://open.spotify.com/playlist/sp-1",
            "tracks_added": 150,
        }
        mock_provider.create_playlist.assert_awaited_once_with(
            "user-1", "Golden Hour", description="Warm", public=False
        )
        batches = [c.args[1] for c in mock_provider.add_tracks_to_playlist.await_args_list]
        assert [len(b) for b in batches] == [100, 50]
        store.mark_exported.assert_called_once_with("pl-1", "sp-1")

    @pytest.mark.asyncio
    async def test_empty_playlist_rejected(self, store, mock_provider):
        store.get_owned.return_value = _stored([])

        with pytest.raises(ValueError):
            await PlaylistExportService(store).export_playlist(mock_provider, "pl-1", "user-1")

        mock_provider.create_playlist.assert_not_called()

    @pytest.mark.asyncio
    async def test_foreign_playlist_rejected(self, store, mock_provider):
        store.get_owned.side_effect = PlaylistAccessError("not yours")

        with pytest.raises(PlaylistAccessError):
            await PlaylistExportService(store).export_playlist(mock_provider, "pl-1", "user-2")

    @pytest.mark.asyncio
    async def test_create_failure_leaves_playlist_unexported(self, store, mock_provider, make_track):
        store.get_owned.return_value = _stored([make_track("t1")])
        mock_provider.create_playlist.side_effect = ProviderError("Created playlist missing id", endpoint="users/playlists")

        with pytest.raises(ProviderError):
            await PlaylistExportService(store).export_playlist(mock_provider, "pl-1", "user-1")

        mock_provider.add_tracks_to_playlist.assert_not_called()
        store.mark_exported.assert_not_called()
