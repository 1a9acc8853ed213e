"""
Playlist Narrator for SeedMix

Second language-model step of a generation run: names and describes the final
playlist and annotates it with an energy flow, an emotional arc and
track-indexed insights. Model output is untrusted; positions outside the
playlist are dropped and any failure yields a deterministic narrative.
"""

import json
from typing import Any, Dict, List

from ..models.errors import NarrativeValidationError
from ..models.playlist_models import (
    AudioProfile,
    EmotionalArc,
    EnergyFlow,
    PlaylistNarrative,
    Track,
    TrackInsight,
)
from .base_agent import BaseLLMAgent
from .components.audio_descriptors import describe_profile


MAX_NAME_LENGTH = 60
MAX_DESCRIPTION_LENGTH = 150

SYSTEM_PROMPT = (
    "You are a world-class music curator who understands the psychology of "
    "music and writes compelling playlist narratives. You never use generic "
    "playlist names and you only refer to track positions that exist."
)

NARRATIVE_SCHEMA: Dict[str, Any] = {
    "playlistName": f"creative name, max {MAX_NAME_LENGTH} chars, avoid generic words like 'Mix' or 'Playlist'",
    "description": f"compelling description, max {MAX_DESCRIPTION_LENGTH} chars",
    "mood": "one-word mood, e.g. Euphoric",
    "vibe": "2-3 word vibe, e.g. Late Night Drive",
    "recommendedGenres": ["genre1", "genre2", "genre3"],
    "listeningContext": "when or where to listen",
    "emotionalJourney": "brief description of the emotional arc",
    "reasoning": "why these tracks work together, 2-3 sentences",
    "energyFlow": {"description": "...", "pattern": "...", "peaks": [1], "valleys": [1]},
    "emotionalArc": {"description": "...", "pattern": "...", "progression": "..."},
    "insights": [{"trackNumber": 1, "insight": "...", "icon": "single emoji"}]
}


def _anchor_positions(track_count: int) -> List[int]:
    """Track 3, the midpoint and N-2, deduplicated and kept within [1, N]."""
    candidates = [3, (track_count + 1) // 2, track_count - 2]
    positions = []
    for position in candidates:
        if 1 <= position <= track_count and position not in positions:
            positions.append(position)
    return positions


def _in_range(positions: List[int], track_count: int) -> List[int]:
    return [p for p in dict.fromkeys(positions) if 1 <= p <= track_count]


class PlaylistNarrator(BaseLLMAgent):
    """
    Produces the PlaylistNarrative for the final, ordered track list.

    `narrate` never raises; the narrative it returns always satisfies
    `positions_valid(len(tracks))`.
    """

    agent_name = "PlaylistNarrator"

    async def narrate(
        self,
        seed_tracks: List[Track],
        profile: AudioProfile,
        tracks: List[Track]
    ) -> PlaylistNarrative:
        """
        Narrate a generated playlist.

        Args:
            seed_tracks: The seed tracks of the run
            profile: Seed audio profile, possibly estimated
            tracks: Final ordered playlist; positions refer to this list

        Returns:
            Validated model narrative, or the deterministic fallback
        """
        track_count = len(tracks)
        try:
            data = await self._request_json(
                self.build_prompt(seed_tracks, profile, tracks),
                SYSTEM_PROMPT
            )
            narrative = self._validate_narrative(data, profile, track_count)
        except Exception as e:
            self._record_fallback(e)
            return self.fallback_narrative(seed_tracks, profile, track_count)

        self.success_count += 1
        self.logger.info(
            "Playlist narrative generated",
            playlist_name=narrative.playlist_name,
            insights=len(narrative.insights),
            track_count=track_count
        )
        return narrative

    def build_prompt(
        self,
        seed_tracks: List[Track],
        profile: AudioProfile,
        tracks: List[Track]
    ) -> str:
        # Name and artist only, keeps the prompt small for long playlists
        seed_lines = [f'- "{t.name}" by {t.artists}' for t in seed_tracks]
        track_lines = [f'{i}. "{t.name}" by {t.artists}' for i, t in enumerate(tracks, 1)]

        return "\n".join([
            "SEED TRACKS:",
            *seed_lines,
            "",
            "AUDIO PROFILE:",
            *describe_profile(profile),
            "",
            f"FINAL PLAYLIST ({len(tracks)} tracks):",
            *track_lines,
            "",
            "TASK:",
            "Create a cohesive concept for this playlist: its emotional journey, the musical",
            "characteristics the tracks share and the perfect listening context.",
            "Every number in energyFlow.peaks, energyFlow.valleys and insights[].trackNumber",
            f"must be a track position from the list above (1 to {len(tracks)}).",
            "",
            "Respond ONLY with a JSON object of this shape:",
            json.dumps(NARRATIVE_SCHEMA, indent=2, ensure_ascii=False),
        ])

    def _validate_narrative(
        self,
        data: Dict[str, Any],
        profile: AudioProfile,
        track_count: int
    ) -> PlaylistNarrative:
        """
        Validate model output against the playlist length.

        Out-of-range positions are dropped. When that leaves no insights for a
        playlist of three or more tracks, the fallback insights are used.

        Raises:
            ValueError: If the shape is invalid (pydantic ValidationError included)
            NarrativeValidationError: If a required text field is blank
        """
        narrative = PlaylistNarrative.model_validate(data)

        for field in ("playlist_name", "description", "mood"):
            if not getattr(narrative, field).strip():
                raise NarrativeValidationError(f"Narrative field '{field}' is empty")

        insights = [i for i in narrative.insights if 1 <= i.track_number <= track_count]
        dropped = len(narrative.insights) - len(insights)
        if not insights and track_count >= 3:
            insights = self._fallback_insights(profile, track_count)

        energy_flow = narrative.energy_flow.model_copy(update={
            "peaks": _in_range(narrative.energy_flow.peaks, track_count),
            "valleys": _in_range(narrative.energy_flow.valleys, track_count),
        })

        if dropped:
            self.logger.warning("Dropped out-of-range insights", dropped=dropped, track_count=track_count)

        return narrative.model_copy(update={
            "playlist_name": narrative.playlist_name.strip()[:MAX_NAME_LENGTH],
            "description": narrative.description.strip()[:MAX_DESCRIPTION_LENGTH],
            "energy_flow": energy_flow,
            "insights": insights,
            "is_fallback": False,
        })

    @classmethod
    def fallback_narrative(
        cls,
        seed_tracks: List[Track],
        profile: AudioProfile,
        track_count: int
    ) -> PlaylistNarrative:
        """
        Deterministic narrative from valence x energy quadrants.

        Acousticness and danceability refine the vibe. Insights are anchored at
        track 3, the midpoint and N-2 and are never empty for N >= 3.
        """
        energy, valence = profile.energy, profile.valence

        mood, vibe, context, name = "Balanced", "Chill Vibes", "Anytime listening", "Curated Mix"
        if valence > 0.6 and energy > 0.6:
            mood, vibe, context, name = "Euphoric", "High Energy", "Perfect for workouts or parties", "Energy Boost"
        elif valence > 0.6 and energy < 0.4:
            mood, vibe, context, name = "Content", "Sunny Day", "Great for relaxed afternoons", "Sunshine Mix"
        elif valence < 0.4 and energy > 0.6:
            mood, vibe, context, name = "Intense", "Raw Emotion", "When you need to feel something deep", "Emotional Release"
        elif valence < 0.4 and energy < 0.4:
            mood, vibe, context, name = "Melancholic", "Introspective", "Late night contemplation", "Midnight Thoughts"

        genres: List[str] = []
        if profile.acousticness > 0.6:
            vibe = "Acoustic Intimacy"
            genres = ["acoustic", "folk", "singer-songwriter"]
        if profile.danceability > 0.7:
            vibe = "Dance Floor Ready"
            context = "Get moving to these beats"
            genres = ["dance", "electronic", "pop"]

        first_seed = seed_tracks[0].name if seed_tracks else "your selections"

        return PlaylistNarrative(
            playlist_name=name,
            description=f"A {mood.lower()} collection based on your selections",
            mood=mood,
            vibe=vibe,
            recommended_genres=genres,
            listening_context=context,
            emotional_journey=f"From {first_seed} to new discoveries",
            reasoning="Selected to match the energy and mood of your seed tracks",
            energy_flow=cls._fallback_energy_flow(profile, track_count),
            emotional_arc=EmotionalArc(
                description=f"A {mood.lower()} arc that stays close to the seed tracks",
                pattern="steady" if 0.4 <= valence <= 0.6 else ("uplifting" if valence > 0.6 else "reflective"),
                progression="Familiar territory first, new discoveries as it unfolds"
            ),
            insights=cls._fallback_insights(profile, track_count),
            is_fallback=True
        )

    @staticmethod
    def _fallback_energy_flow(profile: AudioProfile, track_count: int) -> EnergyFlow:
        midpoint = (track_count + 1) // 2
        if profile.energy > 0.6:
            return EnergyFlow(
                description="High energy from start to finish",
                pattern="sustained-high",
                peaks=_in_range([midpoint, track_count - 1], track_count),
                valleys=[]
            )
        if profile.energy < 0.4:
            return EnergyFlow(
                description="A calm, even flow with a gentle lift in the middle",
                pattern="gentle-wave",
                peaks=_in_range([midpoint], track_count),
                valleys=_in_range([1, track_count], track_count)
            )
        return EnergyFlow(
            description="Builds towards the middle and eases out at the end",
            pattern="build-and-release",
            peaks=_in_range([midpoint], track_count),
            valleys=_in_range([1, track_count], track_count)
        )

    @staticmethod
    def _fallback_insights(profile: AudioProfile, track_count: int) -> List[TrackInsight]:
        texts = [
            ("🎧", "Settles into the core sound of your seed tracks"),
            ("⚡" if profile.energy > 0.5 else "🌙", "The centre of the playlist's energy"),
            ("✨", "A discovery picked to carry the mood to the end"),
        ]
        insights = []
        for (icon, text), position in zip(texts, _anchor_positions(track_count)):
            insights.append(TrackInsight(track_number=position, insight=text, icon=icon))
        return insights
