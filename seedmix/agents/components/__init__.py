"""
Shared Agent Components

Reusable pieces for the LLM-backed agents and the discovery pipeline:
- JSON completion utilities
- Qualitative audio descriptors for prompts
- Discovery strategies (see generation_strategies)
"""

from .llm_utils import LLMUtils
from .audio_descriptors import describe_profile

__all__ = [
    "LLMUtils",
    "describe_profile",
]
