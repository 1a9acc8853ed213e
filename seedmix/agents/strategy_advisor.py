"""
Strategy Advisor for SeedMix

Asks the language model to turn the seed tracks and their audio profile into
a DiscoveryStrategy (genres, artists to look up, search queries) used when
provider recommendations are unavailable.
"""

import json
from typing import Any, Dict, List

from ..models.playlist_models import AudioProfile, DiscoveryStrategy, Track
from .base_agent import BaseLLMAgent
from .components.audio_descriptors import describe_profile


SYSTEM_PROMPT = (
    "You are a music discovery expert who finds new artists and deep cuts that "
    "sit in the same sonic world as a listener's favourite tracks. You never "
    "mix in genres the seed material does not belong to and you never recommend "
    "the seed artists themselves."
)

STRATEGY_SCHEMA: Dict[str, Any] = {
    "primaryGenres": ["2-3 genres the seed tracks belong to"],
    "relatedGenres": ["2-3 adjacent genres with the same feel"],
    "suggestedArtists": ["6-8 artist names, none of them seed artists"],
    "searchQueries": ["3-5 short search strings for deeper cuts"],
    "timeContext": "when this music is best listened to",
    "diversityStrategy": "how the suggestions keep variety without leaving the style",
    "excludedGenres": ["genres to avoid"],
    "musicalCharacteristics": {"tempo": "...", "instrumentation": "...", "production": "..."}
}


# (predicate, primary genres, related genres, search queries, time context)
FALLBACK_RULES = (
    (
        lambda p: p.energy < 0.4 and p.acousticness > 0.6,
        ["indie folk", "acoustic"],
        ["singer-songwriter", "chamber pop"],
        ["indie folk acoustic", "acoustic singer songwriter", "mellow folk"],
        "Quiet evenings and slow mornings",
    ),
    (
        lambda p: p.energy > 0.7 and p.danceability > 0.6,
        ["dance", "electronic"],
        ["house", "nu disco"],
        ["upbeat electronic dance", "nu disco", "indie dance"],
        "Parties and workouts",
    ),
    (
        lambda p: p.energy > 0.7,
        ["rock", "alternative"],
        ["indie rock", "post-punk"],
        ["energetic indie rock", "alternative rock anthems", "post punk revival"],
        "Commutes and high-energy sessions",
    ),
    (
        lambda p: p.valence < 0.35,
        ["indie", "alternative"],
        ["dream pop", "slowcore"],
        ["melancholic indie", "dream pop", "late night indie"],
        "Late night contemplation",
    ),
    (
        lambda p: p.danceability > 0.65,
        ["r&b", "funk"],
        ["neo soul", "disco"],
        ["groovy neo soul", "modern funk", "smooth r&b"],
        "Relaxed get-togethers",
    ),
)

DEFAULT_FALLBACK = (
    ["indie pop", "alternative"],
    ["bedroom pop", "soft rock"],
    ["indie pop", "chill alternative", "feel good indie"],
    "Anytime listening",
)


def _clean_list(values: List[str]) -> List[str]:
    seen = set()
    cleaned = []
    for value in values:
        value = value.strip()
        if value and value.lower() not in seen:
            seen.add(value.lower())
            cleaned.append(value)
    return cleaned


class StrategyAdvisor(BaseLLMAgent):
    """
    Produces the discovery strategy for one generation run.

    `advise` never raises: any model, parsing or validation failure yields
    the rule-based fallback strategy, which always has search queries.
    """

    agent_name = "StrategyAdvisor"

    async def advise(self, seed_tracks: List[Track], profile: AudioProfile) -> DiscoveryStrategy:
        """
        Get a discovery strategy for the seed tracks.

        Args:
            seed_tracks: The seed tracks
            profile: Measured or estimated audio profile of the seeds

        Returns:
            Validated model strategy, or the deterministic fallback
        """
        try:
            data = await self._request_json(self.build_prompt(seed_tracks, profile), SYSTEM_PROMPT)
            strategy = self._validate_strategy(data, seed_tracks, profile)
        except Exception as e:
            self._record_fallback(e)
            return self.fallback_strategy(profile)

        self.success_count += 1
        self.logger.info(
            "Discovery strategy generated",
            suggested_artists=len(strategy.suggested_artists),
            search_queries=len(strategy.search_queries),
            primary_genres=strategy.primary_genres
        )
        return strategy

    def build_prompt(self, seed_tracks: List[Track], profile: AudioProfile) -> str:
        seed_lines = [
            f'{i}. "{track.name}" by {track.artists}' for i, track in enumerate(seed_tracks, 1)
        ]
        seed_artists = sorted({track.primary_artist for track in seed_tracks})

        return "\n".join([
            "SEED TRACKS:",
            *seed_lines,
            "",
            "AUDIO PROFILE:",
            *describe_profile(profile),
            "",
            "TASK:",
            "Design a discovery strategy for a playlist that continues these seed tracks.",
            "- Stay inside the genres the seeds belong to; do not mix in unrelated genres.",
            f"- Suggest artists distinct from the seed artists ({', '.join(seed_artists)}).",
            "- Prefer lesser-known artists and deep cuts over the most obvious hits.",
            "- Search queries must be short strings that work in a track search box.",
            "",
            "Respond ONLY with a JSON object of this shape:",
            json.dumps(STRATEGY_SCHEMA, indent=2),
        ])

    def _validate_strategy(
        self,
        data: Dict[str, Any],
        seed_tracks: List[Track],
        profile: AudioProfile
    ) -> DiscoveryStrategy:
        """
        Validate model output and normalize it.

        Raises:
            ValueError: If the shape is invalid (pydantic ValidationError included)
        """
        strategy = DiscoveryStrategy.model_validate(data)

        seed_artists = {track.primary_artist.lower() for track in seed_tracks}
        for track in seed_tracks:
            seed_artists.update(name.lower() for name in track.artist_names)

        suggested = [
            artist for artist in _clean_list(strategy.suggested_artists)
            if artist.lower() not in seed_artists
        ]
        queries = _clean_list(strategy.search_queries)
        if not queries:
            queries = list(self.fallback_strategy(profile).search_queries)

        return strategy.model_copy(update={
            "primary_genres": _clean_list(strategy.primary_genres),
            "related_genres": _clean_list(strategy.related_genres),
            "suggested_artists": suggested,
            "search_queries": queries,
            "excluded_genres": _clean_list(strategy.excluded_genres),
        })

    @staticmethod
    def fallback_strategy(profile: AudioProfile) -> DiscoveryStrategy:
        """
        Rule-based strategy derived only from audio-profile thresholds.

        Always returns a non-empty `search_queries` list.
        """
        primary, related, queries, time_context = DEFAULT_FALLBACK
        for predicate, rule_primary, rule_related, rule_queries, rule_time in FALLBACK_RULES:
            if predicate(profile):
                primary, related, queries, time_context = rule_primary, rule_related, rule_queries, rule_time
                break

        return DiscoveryStrategy(
            primary_genres=list(primary),
            related_genres=list(related),
            suggested_artists=[],
            search_queries=list(queries),
            time_context=time_context,
            diversity_strategy="Rule-based genre searches derived from the seed audio profile"
        )
