"""
Tests for DiversityCollector and title normalization.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from seedmix.agents.discovery.diversity_collector import DiversityCollector, normalize_title
from seedmix.models.playlist_models import PlaylistFilters


class TestNormalizeTitle:
    """Test near-duplicate title keys."""

    @pytest.mark.parametrize("title", [
        "Song Name",
        "Song Name (Remix)",
        "Song Name - Radio Edit",
        "song  name [Live]",
        "SONG NAME (feat. Someone) - 2011 Remaster",
    ])
    def test_variants_share_a_key(self, title):
        assert normalize_title(title) == "song name"

    def test_suffix_only_title_keeps_text(self):
        assert normalize_title("(Interlude)") == "(interlude)"

    def test_hyphen_inside_word_is_kept(self):
        assert normalize_title("Self-Control") == "self-control"


class TestDiversityCollector:
    """Test suite for DiversityCollector."""

    @pytest.fixture
    def collector(self):
        return DiversityCollector(seed_ids=["seed1", "seed2"], artist_cap=2, target=20)

    def test_accepts_distinct_track(self, collector, make_track):
        assert collector.try_add(make_track("t1")) is True
        assert [t.id for t in collector.accepted] == ["t1"]

    def test_rejects_duplicate_id(self, collector, make_track):
        collector.try_add(make_track("t1"))
        assert collector.try_add(make_track("t1", name="Other Name")) is False

    def test_rejects_seed_track(self, collector, make_track):
        assert collector.try_add(make_track("seed1")) is False
        assert collector.accepted == []

    def test_artist_cap(self, collector, make_track):
        results = [collector.try_add(make_track(f"t{i}", artist="Same Artist")) for i in range(4)]

        assert results == [True, True, False, False]
        assert collector.artist_counts["same artist"] == 2

    def test_artist_cap_ignores_case(self, collector, make_track):
        collector.try_add(make_track("t1", artist="The Band"))
        collector.try_add(make_track("t2", artist="THE BAND"))
        assert collector.try_add(make_track("t3", artist="the band ")) is False

    def test_near_duplicate_title_rejected(self, collector, make_track):
        assert collector.try_add(make_track("t1", name="Song Name (Remix)", artist="A")) is True
        assert collector.try_add(make_track("t2", name="Song Name - Radio Edit", artist="B")) is False

    def test_rejection_leaves_state_unchanged(self, collector, make_track):
        collector.try_add(make_track("t1", name="Song Name", artist="A"))
        before = (list(collector.accepted), set(collector.accepted_ids), dict(collector.artist_counts))

        collector.try_add(make_track("t2", name="Song Name (Live)", artist="B"))

        after = (list(collector.accepted), set(collector.accepted_ids), dict(collector.artist_counts))
        assert before == after

    def test_year_bounds(self, make_track):
        collector = DiversityCollector([], filters=PlaylistFilters(min_year=2000, max_year=2010))

        assert collector.try_add(make_track("old", year=1995)) is False
        assert collector.try_add(make_track("new", year=2015)) is False
        assert collector.try_add(make_track("in", year=2005)) is True
        assert collector.try_add(make_track("unknown", year=None)) is True

    def test_stops_at_target(self, make_track):
        collector = DiversityCollector([], target=2)
        added = collector.add_many(make_track(f"t{i}", artist=f"Artist {i}") for i in range(5))

        assert added == 2
        assert collector.is_full
        assert collector.remaining == 0
        assert collector.try_add(make_track("late", artist="Late")) is False

    def test_add_many_max_accept(self, collector, make_track):
        tracks = [make_track(f"t{i}", artist=f"Artist {i}") for i in range(5)]
        assert collector.add_many(tracks, max_accept=2) == 2
        assert len(collector.accepted) == 2

    @pytest.mark.parametrize("kwargs", [{"artist_cap": 0}, {"target": 0}])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            DiversityCollector([], **kwargs)

    def test_concurrent_adds_respect_invariants(self, make_track):
        collector = DiversityCollector(["seed"], artist_cap=2, target=50)
        candidates = [
            make_track(f"t{i % 60}", name=f"Title {i % 45}", artist=f"Artist {i % 7}")
            for i in range(300)
        ] + [make_track("seed")]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(collector.try_add, candidates))

        ids = [t.id for t in collector.accepted]
        assert len(ids) == len(set(ids))
        assert "seed" not in ids
        assert max(collector.artist_counts.values()) <= 2
        assert len(collector.accepted) <= 14
        assert len({normalize_title(t.name) for t in collector.accepted}) == len(ids)
