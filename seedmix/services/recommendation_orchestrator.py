"""
Recommendation Orchestrator

Top-level coordinator of one playlist generation run, written as an explicit
state machine:

    PRIMARY -> DONE                      provider recommendations succeeded
    PRIMARY -> STRATEGY_FETCH            any provider failure or empty result
    STRATEGY_FETCH -> COLLECTING         discovery strategy obtained
    STRATEGY_FETCH -> FAILED             no strategy at all
    COLLECTING -> PADDING                strategies ran in priority order
    PADDING -> DONE | FAILED             pad with seeds or report exhaustion

Every transition is logged so a run can be diagnosed after the fact.
"""

import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Type

import structlog

from ..agents.audio_profile import AudioProfileEstimator
from ..agents.components.generation_strategies import BaseGenerationStrategy, StrategyFactory
from ..agents.discovery.diversity_collector import DiversityCollector
from ..agents.strategy_advisor import StrategyAdvisor
from ..models.config_models import GenerationConfig
from ..models.errors import GenerationError, PipelineExhaustedError, ProviderError
from ..models.playlist_models import (
    AudioProfile,
    DiscoveryStrategy,
    GeneratedPlaylistResult,
    GenerationAlgorithm,
    PlaylistFilters,
    Track,
)
from ..utils.async_utils import call_with_timeout

logger = structlog.get_logger(__name__)


class GenerationState(str, Enum):
    """States of a generation run."""
    PRIMARY = "primary"
    STRATEGY_FETCH = "strategy_fetch"
    COLLECTING = "collecting"
    PADDING = "padding"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = (GenerationState.DONE, GenerationState.FAILED)


@dataclass
class GenerationRun:
    """Request-scoped bookkeeping for one run; discarded after assembly."""
    provider: object
    seed_tracks: List[Track]
    filters: PlaylistFilters
    limit: int
    profile: AudioProfile
    state: GenerationState = GenerationState.PRIMARY
    primary_tracks: List[Track] = field(default_factory=list)
    discovery: Optional[DiscoveryStrategy] = None
    collector: Optional[DiversityCollector] = None
    accepted_by_strategy: Dict[str, int] = field(default_factory=dict)
    backstop_accepted: int = 0
    padded: List[Track] = field(default_factory=list)
    failure_reason: Optional[str] = None
    failure_cls: Type[GenerationError] = GenerationError
    transitions: List[GenerationState] = field(default_factory=list)

    @property
    def used_fallback(self) -> bool:
        return not self.primary_tracks

    @property
    def discovered(self) -> List[Track]:
        return self.collector.accepted if self.collector else []


class RecommendationOrchestrator:
    """
    Generates the track list for a playlist from 3-5 seed tracks.

    All collaborators are injectable; the shuffle uses an injectable
    `random.Random` so tests can seed it.
    """

    def __init__(
        self,
        config: Optional[GenerationConfig] = None,
        estimator: Optional[AudioProfileEstimator] = None,
        advisor: Optional[StrategyAdvisor] = None,
        strategies: Optional[List[BaseGenerationStrategy]] = None,
        rng: Optional[random.Random] = None,
        provider_timeout: Optional[float] = None,
        market: str = "US"
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Pipeline parameters
            estimator: Audio profile estimator
            advisor: Strategy advisor; without an LLM client it always falls back
            strategies: Discovery strategies in priority order
            rng: Randomness source for the final shuffle
            provider_timeout: Per-call provider timeout in seconds
            market: Market used for artist top tracks
        """
        self.config = config or GenerationConfig()
        self.provider_timeout = provider_timeout
        self.estimator = estimator or AudioProfileEstimator(timeout=provider_timeout)
        self.advisor = advisor or StrategyAdvisor()
        self.strategies = strategies if strategies is not None else StrategyFactory(
            self.config, timeout=provider_timeout, market=market
        ).create_strategies()
        self.rng = rng or random.Random()
        self.logger = logger.bind(service="RecommendationOrchestrator")

        self._handlers = {
            GenerationState.PRIMARY: self._run_primary,
            GenerationState.STRATEGY_FETCH: self._run_strategy_fetch,
            GenerationState.COLLECTING: self._run_collecting,
            GenerationState.PADDING: self._run_padding,
        }

    async def generate(
        self,
        provider,
        seed_tracks: List[Track],
        filters: Optional[PlaylistFilters] = None
    ) -> GeneratedPlaylistResult:
        """
        Run the full pipeline for one request.

        Args:
            provider: SpotifyClient bound to the caller's token
            seed_tracks: 3-5 seed tracks
            filters: Optional caller overrides

        Returns:
            The assembled result, without a narrative

        Raises:
            ValueError: If the seed count is out of range
            GenerationError: If no strategy could be obtained
            PipelineExhaustedError: If discovery and padding both came up short
        """
        self._validate_seeds(seed_tracks)
        filters = filters or PlaylistFilters()
        limit = filters.limit or self.config.collection_target
        start_time = time.time()

        seeds = await self._hydrate_seeds(provider, seed_tracks)
        profile = await self.estimator.estimate(provider, seeds, filters)

        run = GenerationRun(
            provider=provider,
            seed_tracks=seeds,
            filters=filters,
            limit=limit,
            profile=profile
        )

        while run.state not in TERMINAL_STATES:
            previous = run.state
            run.state = await self._handlers[previous](run)
            run.transitions.append(run.state)
            self.logger.debug("Generation state transition", from_state=previous.value, to_state=run.state.value)

        if run.state == GenerationState.FAILED:
            self.logger.error(
                "Playlist generation failed",
                reason=run.failure_reason,
                transitions=[s.value for s in run.transitions]
            )
            raise run.failure_cls(run.failure_reason or "Playlist generation failed")

        result = self._assemble(run)
        self.logger.info(
            "Playlist generation completed",
            algorithm=result.algorithm.value,
            used_fallback=result.used_fallback,
            track_count=len(result.generated_tracks),
            estimated_profile=profile.is_estimated,
            duration_seconds=round(time.time() - start_time, 3)
        )
        return result

    def _validate_seeds(self, seed_tracks: List[Track]) -> None:
        count = len(seed_tracks)
        if count < self.config.min_seed_tracks or count > self.config.max_seed_tracks:
            raise ValueError(
                f"Between {self.config.min_seed_tracks} and {self.config.max_seed_tracks} "
                f"seed tracks are required, got {count}"
            )
        if len({track.id for track in seed_tracks}) != count:
            raise ValueError("Seed tracks must be distinct")

    async def _hydrate_seeds(self, provider, seed_tracks: List[Track]) -> List[Track]:
        """
        Fill in artist ids, artist names and release years for seeds that lack them.

        Seeds picked in a client often carry only display fields; artist ids
        are needed for genre estimation and artist-based discovery.
        """
        if all(track.artist_ids for track in seed_tracks):
            return list(seed_tracks)

        try:
            fetched = await call_with_timeout(
                provider.get_tracks([track.id for track in seed_tracks]),
                self.provider_timeout,
                "get_tracks"
            )
        except ProviderError as e:
            self.logger.warning("Seed lookup failed - using seeds as given", external_call="get_tracks", error=str(e))
            return list(seed_tracks)

        by_id = {track.id: track for track in fetched}
        return [by_id.get(track.id, track) for track in seed_tracks]

    def _primary_targets(self, run: GenerationRun) -> Dict[str, float]:
        """Audio-profile targets, caller filters taking precedence."""
        profile, filters = run.profile, run.filters
        targets = {
            "danceability": profile.danceability,
            "energy": profile.energy,
            "valence": profile.valence,
            "tempo": profile.tempo,
            "acousticness": profile.acousticness,
        }
        for feature in targets:
            override = getattr(filters, f"target_{feature}")
            if override is not None:
                targets[feature] = override
        return targets

    async def _run_primary(self, run: GenerationRun) -> GenerationState:
        seed_ids = [track.id for track in run.seed_tracks]
        try:
            tracks = await call_with_timeout(
                run.provider.get_recommendations(
                    seed_ids[:5],
                    self._primary_targets(run),
                    limit=run.limit
                ),
                self.provider_timeout,
                "get_recommendations"
            )
        except ProviderError as e:
            self.logger.warning(
                "Primary recommendations failed - switching to discovery",
                state=GenerationState.PRIMARY.value,
                external_call="get_recommendations",
                error=str(e)
            )
            return GenerationState.STRATEGY_FETCH

        seen = set(seed_ids)
        accepted = []
        for track in tracks:
            if track.id in seen or not run.filters.year_in_bounds(track.release_year):
                continue
            seen.add(track.id)
            accepted.append(track)

        if not accepted:
            self.logger.warning(
                "Primary recommendations empty after filtering - switching to discovery",
                state=GenerationState.PRIMARY.value,
                returned=len(tracks)
            )
            return GenerationState.STRATEGY_FETCH

        run.primary_tracks = accepted
        return GenerationState.DONE

    async def _run_strategy_fetch(self, run: GenerationRun) -> GenerationState:
        try:
            run.discovery = await self.advisor.advise(run.seed_tracks, run.profile)
        except Exception as e:
            self.logger.error(
                "Strategy advisor failed without a fallback",
                state=GenerationState.STRATEGY_FETCH.value,
                error=str(e),
                error_type=type(e).__name__
            )
            run.failure_reason = f"Could not determine a discovery strategy: {e}"
            return GenerationState.FAILED

        run.collector = DiversityCollector(
            seed_ids=[track.id for track in run.seed_tracks],
            artist_cap=self.config.artist_cap,
            target=run.limit,
            filters=run.filters
        )
        return GenerationState.COLLECTING

    async def _run_collecting(self, run: GenerationRun) -> GenerationState:
        collector = run.collector
        for strategy in self.strategies:
            if collector.is_full:
                self.logger.info("Collection target reached", target=collector.target)
                break
            try:
                accepted = await strategy.collect(run.provider, run.seed_tracks, run.discovery, collector)
            except ProviderError as e:
                self.logger.warning(
                    "Discovery strategy failed - continuing",
                    state=GenerationState.COLLECTING.value,
                    strategy=strategy.name,
                    error=str(e)
                )
                accepted = 0

            run.accepted_by_strategy[strategy.name] = run.accepted_by_strategy.get(strategy.name, 0) + accepted
            if strategy.is_backstop:
                run.backstop_accepted += accepted

        return GenerationState.PADDING

    async def _run_padding(self, run: GenerationRun) -> GenerationState:
        discovered = len(run.discovered)
        minimum = min(self.config.min_viable_tracks, run.limit)
        if discovered >= minimum:
            return GenerationState.DONE

        available = len(run.seed_tracks)
        if discovered == 0 and available < minimum:
            self.logger.warning(
                "Discovery exhausted and seed padding cannot reach minimum",
                state=GenerationState.PADDING.value,
                minimum=minimum,
                seeds=available,
                strategies=run.accepted_by_strategy
            )
            run.failure_reason = (
                f"No tracks could be discovered for these seeds; "
                f"{available} seed tracks cannot fill the minimum of {minimum}"
            )
            run.failure_cls = PipelineExhaustedError
            return GenerationState.FAILED

        for seed in run.seed_tracks:
            if discovered + len(run.padded) >= minimum:
                break
            run.padded.append(seed)

        self.logger.warning(
            "Padded playlist with seed tracks",
            state=GenerationState.PADDING.value,
            discovered=discovered,
            padded=len(run.padded),
            minimum=minimum
        )
        return GenerationState.DONE

    def _algorithm(self, run: GenerationRun) -> GenerationAlgorithm:
        if not run.used_fallback:
            return GenerationAlgorithm.PROVIDER_RECOMMENDATIONS
        discovery_total = sum(run.accepted_by_strategy.values())
        if discovery_total > run.backstop_accepted:
            return GenerationAlgorithm.AI_ENHANCED_DIVERSITY
        if run.backstop_accepted:
            return GenerationAlgorithm.SEED_ARTIST_BACKSTOP
        return GenerationAlgorithm.SEED_PADDING

    def _assemble(self, run: GenerationRun) -> GeneratedPlaylistResult:
        if run.used_fallback:
            tracks = list(run.discovered) + list(run.padded)
        else:
            tracks = list(run.primary_tracks)

        # Hides the strategy order from the final track order
        self.rng.shuffle(tracks)

        return GeneratedPlaylistResult(
            seed_tracks=run.seed_tracks,
            generated_tracks=tracks[:run.limit],
            audio_profile=run.profile,
            discovery_strategy=run.discovery,
            used_fallback=run.used_fallback,
            algorithm=self._algorithm(run)
        )
