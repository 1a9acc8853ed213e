"""
Artist-focused Discovery Strategies

Strategies that discover candidates through artists: the artists suggested
by the language model, artists related to the seeds, and, as a last resort,
the seed artists themselves.
"""

from typing import List

from ....models.playlist_models import DiscoveryStrategy, Track
from ...discovery.diversity_collector import DiversityCollector
from .base_strategy import BaseGenerationStrategy


class SuggestedArtistStrategy(BaseGenerationStrategy):
    """
    Looks up each suggested artist by name and takes from their top tracks.

    Lookups run concurrently; results are fed to the collector in suggestion
    order so the accepted set does not depend on response timing.
    """

    name = "suggested_artists"

    async def collect(
        self,
        provider,
        seed_tracks: List[Track],
        discovery: DiscoveryStrategy,
        collector: DiversityCollector
    ) -> int:
        seed_artists = self._seed_artist_keys(seed_tracks)
        names = [
            name for name in discovery.suggested_artists
            if name.strip() and name.strip().casefold() not in seed_artists
        ][:self.config.max_suggested_artists]

        if not names:
            self.logger.info("No suggested artists to look up")
            return 0

        async def fetch(name: str) -> List[Track]:
            artists = await self._call(provider.search_artists(name, 1), "search_artists")
            if not artists:
                return []
            return await self._top_tracks(provider, artists[0].id)

        results = await self._gather_tolerant(names, fetch, "suggested_artist_lookup")

        accepted = 0
        for tracks in results:
            if collector.is_full:
                break
            accepted += collector.add_many(tracks or [], max_accept=self.config.tracks_per_artist)

        self._log_result(accepted, collector, artists_looked_up=len(names))
        return accepted


class RelatedArtistStrategy(BaseGenerationStrategy):
    """
    Expands a few seed artists into their related artists' top tracks.
    """

    name = "related_artists"

    async def collect(
        self,
        provider,
        seed_tracks: List[Track],
        discovery: DiscoveryStrategy,
        collector: DiversityCollector
    ) -> int:
        seed_artist_ids = self._seed_artist_ids(seed_tracks)
        expanded = seed_artist_ids[:self.config.related_seed_artists]
        if not expanded:
            return 0

        related_lists = await self._gather_tolerant(
            expanded,
            lambda artist_id: self._call(provider.get_related_artists(artist_id), "get_related_artists"),
            "get_related_artists"
        )

        seed_ids = set(seed_artist_ids)
        seed_names = self._seed_artist_keys(seed_tracks)
        related_ids: List[str] = []
        for related in related_lists:
            picked = 0
            for artist in related or []:
                if picked >= self.config.related_artists_per_seed:
                    break
                if artist.id in seed_ids or artist.name.casefold() in seed_names or artist.id in related_ids:
                    continue
                related_ids.append(artist.id)
                picked += 1

        if not related_ids:
            self.logger.info("No related artists found")
            return 0

        results = await self._gather_tolerant(
            related_ids,
            lambda artist_id: self._top_tracks(provider, artist_id),
            "get_artist_top_tracks"
        )

        accepted = 0
        for tracks in results:
            if collector.is_full:
                break
            candidates = [t for t in tracks or [] if t.primary_artist.casefold() not in seed_names]
            accepted += collector.add_many(candidates, max_accept=self.config.tracks_per_artist)

        self._log_result(accepted, collector, related_artists=len(related_ids))
        return accepted


class SeedArtistBackstopStrategy(BaseGenerationStrategy):
    """
    Last resort: deeper cuts from the seed artists themselves.

    The most popular tracks are skipped since they are the likeliest to be
    the seeds or already familiar to the listener.
    """

    name = "seed_artist_backstop"
    is_backstop = True

    async def collect(
        self,
        provider,
        seed_tracks: List[Track],
        discovery: DiscoveryStrategy,
        collector: DiversityCollector
    ) -> int:
        artist_ids = self._seed_artist_ids(seed_tracks)[:self.config.backstop_seed_artists]
        if not artist_ids:
            return 0

        start, stop = self.config.backstop_slice
        results = await self._gather_tolerant(
            artist_ids,
            lambda artist_id: self._top_tracks(provider, artist_id),
            "get_artist_top_tracks"
        )

        accepted = 0
        for tracks in results:
            if collector.is_full:
                break
            accepted += collector.add_many((tracks or [])[start:stop])

        self._log_result(accepted, collector, seed_artists=len(artist_ids))
        return accepted
