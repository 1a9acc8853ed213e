"""
Search-based Discovery Strategies

Runs the language model's free-text search queries against the provider's
track search, skipping the top hits to bias towards deeper cuts.
"""

from typing import List

from ....models.playlist_models import DiscoveryStrategy, Track
from ...discovery.diversity_collector import DiversityCollector
from .base_strategy import BaseGenerationStrategy


class SearchQueryStrategy(BaseGenerationStrategy):
    """Free-text search over the suggested queries."""

    name = "search_queries"

    async def collect(
        self,
        provider,
        seed_tracks: List[Track],
        discovery: DiscoveryStrategy,
        collector: DiversityCollector
    ) -> int:
        queries = [q.strip() for q in discovery.search_queries if q.strip()]
        if not queries:
            self.logger.info("No search queries to run")
            return 0

        results = await self._gather_tolerant(
            queries,
            lambda query: self._call(
                provider.search_tracks(query, self.config.search_page_size, 0),
                "search_tracks"
            ),
            "search_tracks"
        )

        start = self.config.search_skip_top
        stop = start + self.config.search_take
        seed_artists = self._seed_artist_keys(seed_tracks)

        accepted = 0
        for tracks in results:
            if collector.is_full:
                break
            candidates = [
                track for track in (tracks or [])[start:stop]
                if track.primary_artist.casefold() not in seed_artists
            ]
            accepted += collector.add_many(candidates)

        self._log_result(accepted, collector, queries=len(queries))
        return accepted
