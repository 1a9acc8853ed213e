"""
Qualitative descriptors for audio-profile scalars, used in LLM prompts.
"""

from typing import List

from ...models.playlist_models import AudioProfile


def describe_energy(energy: float) -> str:
    if energy > 0.8:
        return "very high energy - intense and powerful"
    if energy > 0.6:
        return "high energy - energetic and lively"
    if energy > 0.4:
        return "medium energy - balanced"
    if energy > 0.2:
        return "low energy - calm and relaxed"
    return "very low energy - ambient and peaceful"


def describe_danceability(danceability: float) -> str:
    if danceability > 0.8:
        return "very danceable - club ready"
    if danceability > 0.6:
        return "danceable - groovy"
    if danceability > 0.4:
        return "moderate groove"
    if danceability > 0.2:
        return "not dance-focused"
    return "ambient or experimental rhythm"


def describe_valence(valence: float) -> str:
    if valence > 0.8:
        return "very positive - euphoric and upbeat"
    if valence > 0.6:
        return "positive - happy and cheerful"
    if valence > 0.4:
        return "neutral mood"
    if valence > 0.2:
        return "melancholic"
    return "dark and somber"


def describe_tempo(tempo: float) -> str:
    if tempo > 140:
        return "very fast"
    if tempo > 120:
        return "fast - upbeat"
    if tempo > 100:
        return "medium tempo"
    if tempo > 80:
        return "slow - relaxed"
    return "very slow - downtempo"


def describe_acousticness(acousticness: float) -> str:
    if acousticness > 0.7:
        return "highly acoustic - organic"
    if acousticness > 0.4:
        return "partly acoustic"
    return "electronic - produced"


def describe_profile(profile: AudioProfile) -> List[str]:
    """Render each scalar with its value and qualitative descriptor."""
    lines = [
        f"- Energy: {profile.energy * 100:.0f}% ({describe_energy(profile.energy)})",
        f"- Danceability: {profile.danceability * 100:.0f}% ({describe_danceability(profile.danceability)})",
        f"- Mood (valence): {profile.valence * 100:.0f}% ({describe_valence(profile.valence)})",
        f"- Tempo: {profile.tempo:.0f} BPM ({describe_tempo(profile.tempo)})",
        f"- Acousticness: {profile.acousticness * 100:.0f}% ({describe_acousticness(profile.acousticness)})",
    ]
    if profile.is_estimated:
        lines.append("- Note: these values are estimates, not measured features")
    return lines
