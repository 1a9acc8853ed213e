"""
Services Module

Generation pipeline coordination, persistence and export.
"""

from .recommendation_orchestrator import (
    RecommendationOrchestrator,
    GenerationState,
    GenerationRun
)
from .playlist_store import PlaylistStore
from .playlist_generation_service import PlaylistGenerationService
from .playlist_export_service import PlaylistExportService

__all__ = [
    "RecommendationOrchestrator",
    "GenerationState",
    "GenerationRun",
    "PlaylistStore",
    "PlaylistGenerationService",
    "PlaylistExportService",
]
