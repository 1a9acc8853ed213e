"""
Base Strategy Class for Candidate Discovery

Defines the common interface and shared provider-call helpers for the
discovery strategies run when provider recommendations are unavailable.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, TypeVar

import structlog

from ....models.config_models import GenerationConfig
from ....models.errors import ProviderError
from ....models.playlist_models import DiscoveryStrategy, Track
from ....utils.async_utils import call_with_timeout
from ...discovery.diversity_collector import DiversityCollector

T = TypeVar("T")


class BaseGenerationStrategy(ABC):
    """
    Abstract base class for all discovery strategies.

    A strategy issues bounded provider calls and feeds what it finds through
    the DiversityCollector. Failures of single items (one artist, one query)
    are logged and skipped; only the caller decides what an empty strategy
    means.
    """

    name = "base"
    # Set on strategies that draw on the seed artists themselves
    is_backstop = False

    def __init__(
        self,
        config: Optional[GenerationConfig] = None,
        timeout: Optional[float] = None,
        market: str = "US"
    ):
        """
        Initialize the discovery strategy.

        Args:
            config: Pipeline parameters (slices, per-artist limits, concurrency)
            timeout: Per-call provider timeout in seconds
            market: Market used for artist top tracks
        """
        self.config = config or GenerationConfig()
        self.timeout = timeout
        self.market = market
        self.logger = structlog.get_logger(__name__).bind(strategy=self.name)

    @abstractmethod
    async def collect(
        self,
        provider,
        seed_tracks: List[Track],
        discovery: DiscoveryStrategy,
        collector: DiversityCollector
    ) -> int:
        """
        Discover candidates and feed them to the collector.

        Args:
            provider: SpotifyClient for the current request
            seed_tracks: The seed tracks
            discovery: Strategy produced by the StrategyAdvisor
            collector: Request-scoped diversity accumulator

        Returns:
            Number of tracks this strategy got accepted
        """
        pass

    async def _call(self, awaitable: Awaitable[T], operation: str) -> T:
        return await call_with_timeout(awaitable, self.timeout, operation)

    async def _gather_tolerant(
        self,
        items: Sequence[str],
        fetch: Callable[[str], Awaitable[T]],
        operation: str
    ) -> List[Optional[T]]:
        """
        Run `fetch` for every item concurrently, bounded by a semaphore.

        Results keep the input order; an item whose call fails yields None.
        """
        semaphore = asyncio.Semaphore(self.config.max_concurrent_provider_calls)

        async def run(item: str) -> Optional[T]:
            async with semaphore:
                try:
                    return await fetch(item)
                except ProviderError as e:
                    self.logger.warning(
                        "Discovery item failed - skipping",
                        external_call=operation,
                        item=item,
                        error=str(e)
                    )
                    return None

        return list(await asyncio.gather(*(run(item) for item in items)))

    async def _top_tracks(self, provider, artist_id: str) -> List[Track]:
        return await self._call(
            provider.get_artist_top_tracks(artist_id, market=self.market),
            "get_artist_top_tracks"
        )

    @staticmethod
    def _seed_artist_keys(seed_tracks: Iterable[Track]) -> set:
        keys = set()
        for track in seed_tracks:
            keys.add(track.primary_artist.strip().casefold())
            keys.update(name.strip().casefold() for name in track.artist_names)
        return keys

    @staticmethod
    def _seed_artist_ids(seed_tracks: Iterable[Track]) -> List[str]:
        """Primary artist ids of the seeds, first-seen order, no duplicates."""
        return list(dict.fromkeys(
            track.primary_artist_id for track in seed_tracks if track.primary_artist_id
        ))

    def _log_result(self, accepted: int, collector: DiversityCollector, **extra) -> None:
        self.logger.info(
            "Discovery strategy finished",
            accepted=accepted,
            collected=len(collector.accepted),
            remaining=collector.remaining,
            **extra
        )
