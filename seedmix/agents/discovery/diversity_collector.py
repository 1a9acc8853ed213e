"""
Diversity Collector for SeedMix

Request-scoped accumulator that every discovery strategy feeds. It keeps the
generated playlist from being dominated by one artist or by several versions
of the same song:
- Duplicate and seed track identifiers are rejected
- Each primary artist is capped (default 2 accepted tracks)
- Near-duplicate titles ("Song (Remix)", "Song - Radio Edit") are rejected
- Known release years outside the caller's bounds are rejected
"""

import re
import threading
from collections import Counter
from typing import Iterable, List, Optional, Set

import structlog

from ...models.playlist_models import PlaylistFilters, Track

logger = structlog.get_logger(__name__)


_PARENTHETICAL = re.compile(r"\s*[\(\[][^\)\]]*[\)\]]")
_DASH_SUFFIX = re.compile(r"\s+-\s+.*$")
_WHITESPACE = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    """
    Title key used for near-duplicate detection.

    Strips parenthetical or bracketed suffixes and a trailing " - ..." part,
    collapses whitespace and case-folds.
    """
    key = _PARENTHETICAL.sub("", title)
    key = _DASH_SUFFIX.sub("", key)
    key = _WHITESPACE.sub(" ", key).strip().casefold()
    # A title that is nothing but a suffix keeps its own text as the key
    return key or title.strip().casefold()


class DiversityCollector:
    """
    Mutable, single-writer accumulator of accepted candidate tracks.

    `try_add` is the only mutating operation. Its check-then-act body is
    synchronous and runs under a lock, so concurrent strategy tasks cannot
    break the artist cap or the dedup rules.
    """

    def __init__(
        self,
        seed_ids: Iterable[str],
        artist_cap: int = 2,
        target: int = 20,
        filters: Optional[PlaylistFilters] = None
    ):
        """
        Args:
            seed_ids: Identifiers of the seed tracks, never accepted
            artist_cap: Max accepted tracks per primary artist
            target: Accepted count at which collection stops
            filters: Caller filters; only the release-year bounds apply here
        """
        if artist_cap < 1:
            raise ValueError("artist_cap must be at least 1")
        if target < 1:
            raise ValueError("target must be at least 1")

        self.seed_ids: Set[str] = set(seed_ids)
        self.artist_cap = artist_cap
        self.target = target
        self.filters = filters or PlaylistFilters()

        self.accepted: List[Track] = []
        self.accepted_ids: Set[str] = set()
        self.artist_counts: Counter = Counter()
        self.title_keys: Set[str] = set()

        self._lock = threading.Lock()
        self.logger = logger.bind(component="DiversityCollector")

    @property
    def is_full(self) -> bool:
        return len(self.accepted) >= self.target

    @property
    def remaining(self) -> int:
        return max(0, self.target - len(self.accepted))

    def try_add(self, candidate: Track) -> bool:
        """
        Accept the candidate if it passes every diversity rule.

        Rejection leaves the collector unchanged.

        Returns:
            True if the candidate was accepted
        """
        artist_key = candidate.primary_artist.strip().casefold()
        title_key = normalize_title(candidate.name)

        with self._lock:
            if self.is_full:
                return False
            if candidate.id in self.accepted_ids or candidate.id in self.seed_ids:
                return False
            if self.artist_counts[artist_key] >= self.artist_cap:
                return False
            if title_key in self.title_keys:
                return False
            if not self.filters.year_in_bounds(candidate.release_year):
                return False

            self.accepted_ids.add(candidate.id)
            self.artist_counts[artist_key] += 1
            self.title_keys.add(title_key)
            self.accepted.append(candidate)
            return True

    def add_many(self, candidates: Iterable[Track], max_accept: Optional[int] = None) -> int:
        """
        Feed candidates in order until full or `max_accept` are accepted.

        Returns:
            Number of candidates accepted
        """
        added = 0
        for candidate in candidates:
            if self.is_full or (max_accept is not None and added >= max_accept):
                break
            if self.try_add(candidate):
                added += 1
        return added
