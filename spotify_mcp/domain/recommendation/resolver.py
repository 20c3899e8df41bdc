"""First-match track recommendation over the user's genre playlists."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from spotify_mcp.errors import InvalidInput, NotFound, UpstreamUnavailable
from spotify_mcp.models import TrackRef
from spotify_mcp.observability.metrics import record_recommendation
from spotify_mcp.settings import SPOTIFY_MAX_FEATURE_BATCH

from .features import FeatureResolver
from .mood import matches, thresholds_for_mood
from .playlists import PlaylistAggregator, filter_by_genre

logger = logging.getLogger(__name__)


class NotFoundReason(str, enum.Enum):
    NO_PLAYLISTS = "no_playlists"
    NO_GENRE_MATCH = "no_genre_match"
    NO_TRACKS = "no_tracks"
    NO_MOOD_MATCH = "no_mood_match"


_REASON_MESSAGES = {
    NotFoundReason.NO_PLAYLISTS: "No playlists found for this account.",
    NotFoundReason.NO_GENRE_MATCH: "No playlist name matches genre '{genre}'.",
    NotFoundReason.NO_TRACKS: "Playlists matching genre '{genre}' contain no tracks.",
    NotFoundReason.NO_MOOD_MATCH: "No track found for genre '{genre}' and mood '{mood}'.",
}


@dataclass(frozen=True)
class Recommendation:
    """Either a track or the reason none was found, never both."""

    genre: str
    mood: str
    track: Optional[TrackRef] = None
    reason: Optional[NotFoundReason] = None

    def __post_init__(self):
        if (self.track is None) == (self.reason is None):
            raise ValueError("Recommendation needs exactly one of track or reason")

    @property
    def found(self) -> bool:
        return self.track is not None

    @property
    def message(self) -> str:
        if self.reason is None:
            return f"Found '{self.track.name}' for genre '{self.genre}' and mood '{self.mood}'."
        return _REASON_MESSAGES[self.reason].format(genre=self.genre, mood=self.mood)

    def to_not_found(self) -> NotFound:
        return NotFound(self.message, reason=self.reason.value if self.reason else None)


def _require(value: Optional[str], name: str) -> str:
    if not value or not value.strip():
        raise InvalidInput(f"{name} is required")
    return value


class RecommendationResolver:
    def __init__(self, provider, aggregator: Optional[PlaylistAggregator] = None,
                 feature_resolver: Optional[FeatureResolver] = None,
                 batch_size: int = SPOTIFY_MAX_FEATURE_BATCH, max_workers: int = 1):
        self.provider = provider
        self.aggregator = aggregator or PlaylistAggregator(provider)
        self.feature_resolver = feature_resolver or FeatureResolver(
            provider, batch_size=batch_size, max_workers=max_workers
        )

    def _finish(self, recommendation: Recommendation) -> Recommendation:
        outcome = recommendation.reason.value if recommendation.reason else "match"
        record_recommendation(outcome)
        extra = {"outcome": outcome, "genre": recommendation.genre, "mood": recommendation.mood}
        if recommendation.found:
            extra["track_id"] = recommendation.track.id
            logger.info("Recommended track %s", recommendation.track.id, extra=extra)
        else:
            logger.info("No recommendation: %s", outcome, extra=extra)
        return recommendation

    def recommend(self, genre: Optional[str], mood: Optional[str]) -> Recommendation:
        genre = _require(genre, "genre")
        mood = _require(mood, "mood")

        def miss(reason: NotFoundReason) -> Recommendation:
            return self._finish(Recommendation(genre=genre, mood=mood, reason=reason))

        playlists = self.aggregator.list_playlists()
        if not playlists:
            return miss(NotFoundReason.NO_PLAYLISTS)

        genre_playlists = filter_by_genre(playlists, genre)
        if not genre_playlists:
            return miss(NotFoundReason.NO_GENRE_MATCH)

        # Encounter order across playlists, duplicates kept
        track_ids: List[str] = []
        listed: Dict[str, TrackRef] = {}
        for playlist in genre_playlists:
            for track in self.aggregator.list_all_tracks(playlist.id):
                track_ids.append(track.id)
                listed.setdefault(track.id, track)
        if not track_ids:
            return miss(NotFoundReason.NO_TRACKS)

        thresholds = thresholds_for_mood(mood)
        resolution = self.feature_resolver.resolve(track_ids)

        for track_id in track_ids:
            features = resolution.get(track_id)
            if features is None:
                continue
            if matches(features, thresholds):
                return self._finish(Recommendation(
                    genre=genre, mood=mood, track=self._full_track(track_id, listed[track_id]),
                ))
            logger.debug(
                "Track '%s' did not meet mood criteria %s. Audio features: valence=%.2f energy=%.2f",
                listed[track_id].name, [str(t) for t in thresholds], features.valence, features.energy,
            )

        return miss(NotFoundReason.NO_MOOD_MATCH)

    def _full_track(self, track_id: str, fallback: TrackRef) -> TrackRef:
        try:
            return self.provider.track(track_id)
        except (UpstreamUnavailable, NotFound) as exc:
            logger.warning("Track lookup for %s failed (%s); using playlist listing data", track_id, exc)
            return fallback
