"""
Playlist Export Service

Pushes a stored playlist to the caller's streaming-provider account as a new
private playlist.
"""

from typing import Any, Dict

import structlog

from .playlist_store import PlaylistStore

logger = structlog.get_logger(__name__)


class PlaylistExportService:
    """Exports stored playlists through a per-request SpotifyClient."""

    BATCH_SIZE = 100

    def __init__(self, store: PlaylistStore):
        self.store = store
        self.logger = logger.bind(service="PlaylistExportService")

    async def export_playlist(self, provider, playlist_id: str, user_id: str) -> Dict[str, Any]:
        """
        Create a provider playlist with the stored tracks.

        Args:
            provider: SpotifyClient bound to the caller's token
            playlist_id: Stored playlist id
            user_id: Caller's provider user id, must own the playlist

        Returns:
            Provider playlist id, its URL and the number of tracks added

        Raises:
            PlaylistNotFoundError: If the playlist is unknown
            PlaylistAccessError: If the caller does not own it
            ValueError: If the playlist has no exportable tracks
            ProviderError: If a provider call fails
        """
        playlist = self.store.get_owned(playlist_id, user_id)
        uris = [track.uri for track in playlist.result.generated_tracks if track.uri]
        if not uris:
            raise ValueError(f"Playlist {playlist_id} has no tracks to export")

        created = await provider.create_playlist(
            user_id,
            playlist.name,
            description=playlist.description or "",
            public=False
        )
        provider_playlist_id = created["id"]

        for start in range(0, len(uris), self.BATCH_SIZE):
            await provider.add_tracks_to_playlist(provider_playlist_id, uris[start:start + self.BATCH_SIZE])

        self.store.mark_exported(playlist_id, provider_playlist_id)

        self.logger.info(
            "Playlist exported",
            playlist_id=playlist_id,
            provider_playlist_id=provider_playlist_id,
            tracks=len(uris)
        )
        return {
            "provider_playlist_id": provider_playlist_id,
            "url": (created.get("external_urls") or {}).get("spotify"),
            "tracks_added": len(uris),
        }
