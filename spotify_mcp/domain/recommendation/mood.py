"""Mood vocabulary and threshold matching over valence/energy."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from spotify_mcp.models import AudioFeatures


class Bound(str, enum.Enum):
    MIN = "min"
    MAX = "max"


@dataclass(frozen=True)
class Threshold:
    feature: str
    bound: Bound
    value: float

    def holds(self, features: AudioFeatures) -> bool:
        observed = getattr(features, self.feature, None)
        if observed is None:
            return False
        if self.bound is Bound.MIN:
            return observed >= self.value
        return observed <= self.value

    def __str__(self) -> str:
        op = ">=" if self.bound is Bound.MIN else "<="
        return f"{self.feature}{op}{self.value}"


@dataclass(frozen=True)
class MoodThresholds:
    """Conjunction of thresholds; an empty set accepts every feature vector."""

    mood: str
    thresholds: Tuple[Threshold, ...] = ()

    def __iter__(self) -> Iterator[Threshold]:
        return iter(self.thresholds)

    def __len__(self) -> int:
        return len(self.thresholds)

    @property
    def is_open(self) -> bool:
        return not self.thresholds


MOOD_VOCABULARY: Dict[str, Tuple[Threshold, ...]] = {
    "happy": (
        Threshold("valence", Bound.MIN, 0.7),
        Threshold("energy", Bound.MIN, 0.7),
    ),
    "sad": (
        Threshold("valence", Bound.MAX, 0.3),
        Threshold("energy", Bound.MAX, 0.3),
    ),
    "energetic": (Threshold("energy", Bound.MIN, 0.8),),
    "calm": (Threshold("energy", Bound.MAX, 0.4),),
}


def thresholds_for_mood(mood: str) -> MoodThresholds:
    """Thresholds for a mood name, ignoring case; unknown moods get an empty (match-all) set."""
    key = (mood or "").lower()
    return MoodThresholds(mood=key, thresholds=MOOD_VOCABULARY.get(key, ()))


def matches(features: Optional[AudioFeatures], thresholds: MoodThresholds) -> bool:
    if features is None:
        return False
    return all(threshold.holds(features) for threshold in thresholds)


__all__ = [
    "Bound",
    "MOOD_VOCABULARY",
    "MoodThresholds",
    "Threshold",
    "matches",
    "thresholds_for_mood",
]
