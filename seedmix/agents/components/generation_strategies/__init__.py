"""
Discovery Strategies Package

Strategy Pattern components that discover candidate tracks when provider
recommendations are unavailable.
"""

from .base_strategy import BaseGenerationStrategy
from .factory import StrategyFactory

from .artist_strategies import RelatedArtistStrategy, SeedArtistBackstopStrategy, SuggestedArtistStrategy
from .search_strategies import SearchQueryStrategy

__all__ = [
    # Base and factory
    'BaseGenerationStrategy',
    'StrategyFactory',

    # Artist strategies
    'SuggestedArtistStrategy',
    'RelatedArtistStrategy',
    'SeedArtistBackstopStrategy',

    # Search strategies
    'SearchQueryStrategy',
]
