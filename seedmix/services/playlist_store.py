"""
Playlist Store

File-backed persistence for generated playlists using diskcache. Records are
stored as JSON-compatible dicts of StoredPlaylist; a per-user index keeps the
history lookup cheap.
"""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from diskcache import Cache

from ..models.errors import PlaylistAccessError, PlaylistNotFoundError
from ..models.playlist_models import GeneratedPlaylistResult, StoredPlaylist

logger = structlog.get_logger(__name__)


class PlaylistStore:
    """
    Persistence collaborator for generated playlists.

    Identifiers are opaque uuid4 hex strings. Nothing is written until a
    complete result is handed to `save`.
    """

    PLAYLIST_PREFIX = "playlist:"
    USER_PREFIX = "user:"

    def __init__(self, store_dir: str = "data/playlists"):
        """
        Initialize the playlist store.

        Args:
            store_dir: Directory for the diskcache database
        """
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)
        self.cache = Cache(str(self.store_dir))
        self.logger = logger.bind(service="PlaylistStore")

        self.logger.info("Playlist store initialized", store_dir=str(self.store_dir))

    def save(
        self,
        result: GeneratedPlaylistResult,
        user_id: str,
        name: str,
        description: Optional[str] = None
    ) -> str:
        """
        Persist a generated playlist.

        Returns:
            The new playlist id
        """
        playlist_id = uuid.uuid4().hex
        record = StoredPlaylist(
            id=playlist_id,
            user_id=user_id,
            name=name,
            description=description,
            result=result,
            created_at=datetime.now(timezone.utc)
        )

        user_key = f"{self.USER_PREFIX}{user_id}"
        with self.cache.transact():
            self.cache.set(f"{self.PLAYLIST_PREFIX}{playlist_id}", record.model_dump(mode="json"))
            self.cache.set(user_key, self.cache.get(user_key, []) + [playlist_id])

        self.logger.info(
            "Playlist saved",
            playlist_id=playlist_id,
            user_id=user_id,
            tracks=len(result.generated_tracks),
            algorithm=result.algorithm.value
        )
        return playlist_id

    def get(self, playlist_id: str) -> StoredPlaylist:
        """
        Load a stored playlist.

        Raises:
            PlaylistNotFoundError: If the id is unknown
        """
        data = self.cache.get(f"{self.PLAYLIST_PREFIX}{playlist_id}")
        if data is None:
            raise PlaylistNotFoundError(f"Playlist {playlist_id} not found")
        return StoredPlaylist.model_validate(data)

    def get_owned(self, playlist_id: str, user_id: str) -> StoredPlaylist:
        """
        Load a stored playlist owned by `user_id`.

        Raises:
            PlaylistNotFoundError: If the id is unknown
            PlaylistAccessError: If another user owns it
        """
        playlist = self.get(playlist_id)
        if playlist.user_id != user_id:
            raise PlaylistAccessError(f"Playlist {playlist_id} belongs to another user")
        return playlist

    def list_for_user(self, user_id: str) -> List[StoredPlaylist]:
        """List a user's playlists, newest first."""
        playlists = []
        for playlist_id in reversed(self.cache.get(f"{self.USER_PREFIX}{user_id}", [])):
            data = self.cache.get(f"{self.PLAYLIST_PREFIX}{playlist_id}")
            if data is not None:
                playlists.append(StoredPlaylist.model_validate(data))
        playlists.sort(key=lambda p: p.created_at, reverse=True)
        return playlists

    def delete(self, playlist_id: str, user_id: str) -> None:
        """
        Delete a playlist owned by `user_id`.

        Raises:
            PlaylistNotFoundError: If the id is unknown
            PlaylistAccessError: If another user owns it
        """
        self.get_owned(playlist_id, user_id)

        user_key = f"{self.USER_PREFIX}{user_id}"
        with self.cache.transact():
            self.cache.delete(f"{self.PLAYLIST_PREFIX}{playlist_id}")
            self.cache.set(user_key, [pid for pid in self.cache.get(user_key, []) if pid != playlist_id])

        self.logger.info("Playlist deleted", playlist_id=playlist_id, user_id=user_id)

    def mark_exported(self, playlist_id: str, provider_playlist_id: str) -> StoredPlaylist:
        """Record the provider playlist a stored playlist was exported to."""
        # A playlist deleted meanwhile stays deleted
        with self.cache.transact():
            playlist = self.get(playlist_id)
            updated = playlist.model_copy(update={"provider_playlist_id": provider_playlist_id})
            self.cache.set(f"{self.PLAYLIST_PREFIX}{playlist_id}", updated.model_dump(mode="json"))

        self.logger.info(
            "Playlist marked as exported",
            playlist_id=playlist_id,
            provider_playlist_id=provider_playlist_id
        )
        return updated

    def get_stats(self) -> Dict[str, Any]:
        return {
            "store_dir": str(self.store_dir),
            "entries": len(self.cache),
            "size_bytes": self.cache.volume(),
        }

    def close(self) -> None:
        self.cache.close()
