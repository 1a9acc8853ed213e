"""
Discovery components: diversity bookkeeping for collected candidates.
"""

from .diversity_collector import DiversityCollector, normalize_title

__all__ = [
    "DiversityCollector",
    "normalize_title",
]
