"""Recommendation pipeline: playlists -> tracks -> audio features -> mood match."""

from .features import FailedBatch, FeatureResolution, FeatureResolver, chunked
from .mood import Bound, MoodThresholds, Threshold, matches, thresholds_for_mood
from .playlists import PlaylistAggregator, filter_by_genre
from .resolver import NotFoundReason, Recommendation, RecommendationResolver

__all__ = [
    "Bound",
    "FailedBatch",
    "FeatureResolution",
    "FeatureResolver",
    "MoodThresholds",
    "NotFoundReason",
    "PlaylistAggregator",
    "Recommendation",
    "RecommendationResolver",
    "Threshold",
    "chunked",
    "filter_by_genre",
    "matches",
    "thresholds_for_mood",
]
