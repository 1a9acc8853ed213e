"""
Strategy Factory for Candidate Discovery

Builds the discovery strategies in their fixed priority order. Later
strategies only run while the collector is still short of its target.
"""

from typing import List, Optional

import structlog

from ....models.config_models import GenerationConfig
from .artist_strategies import RelatedArtistStrategy, SeedArtistBackstopStrategy, SuggestedArtistStrategy
from .base_strategy import BaseGenerationStrategy
from .search_strategies import SearchQueryStrategy


class StrategyFactory:
    """
    Factory for creating the ordered discovery strategy chain.
    """

    def __init__(
        self,
        config: Optional[GenerationConfig] = None,
        timeout: Optional[float] = None,
        market: str = "US"
    ):
        """
        Initialize the strategy factory.

        Args:
            config: Pipeline parameters shared by every strategy
            timeout: Per-call provider timeout in seconds
            market: Market used for artist top tracks
        """
        self.config = config or GenerationConfig()
        self.timeout = timeout
        self.market = market
        self.logger = structlog.get_logger(__name__)

    def create_strategies(self) -> List[BaseGenerationStrategy]:
        """
        Create strategies in priority order.

        Returns:
            Suggested-artist lookup, free-text search, related-artist
            expansion, then the seed-artist backstop
        """
        kwargs = {"config": self.config, "timeout": self.timeout, "market": self.market}
        strategies = [
            SuggestedArtistStrategy(**kwargs),
            SearchQueryStrategy(**kwargs),
            RelatedArtistStrategy(**kwargs),
            SeedArtistBackstopStrategy(**kwargs),
        ]
        self.logger.debug("Discovery strategies created", order=[s.name for s in strategies])
        return strategies
