"""
Agents Package for SeedMix

Contains the components of the recommendation pipeline that analyze seeds
or talk to the language model.
"""

from .base_agent import BaseLLMAgent
from .audio_profile import AudioProfileEstimator, estimate_tempo_from_genres
from .strategy_advisor import StrategyAdvisor
from .playlist_narrator import PlaylistNarrator

__all__ = [
    "BaseLLMAgent",
    "AudioProfileEstimator",
    "estimate_tempo_from_genres",
    "StrategyAdvisor",
    "PlaylistNarrator",
]
