"""Batched audio-feature resolution with per-batch failure isolation."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from spotify_mcp.errors import UpstreamUnavailable
from spotify_mcp.models import AudioFeatures
from spotify_mcp.observability.metrics import record_feature_batch
from spotify_mcp.settings import SPOTIFY_MAX_FEATURE_BATCH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FailedBatch:
    index: int
    track_ids: Tuple[str, ...]
    error: str


@dataclass
class FeatureResolution:
    """Merged features plus a record of the batches that yielded nothing."""

    features: Dict[str, AudioFeatures] = field(default_factory=dict)
    failed_batches: List[FailedBatch] = field(default_factory=list)
    batches: int = 0

    @property
    def complete(self) -> bool:
        return not self.failed_batches

    def get(self, track_id: str) -> Optional[AudioFeatures]:
        return self.features.get(track_id)


def chunked(track_ids: Sequence[str], size: int) -> List[List[str]]:
    """Consecutive slices of at most ``size`` ids, order preserved."""
    if size < 1:
        raise ValueError("batch size must be positive")
    return [list(track_ids[i:i + size]) for i in range(0, len(track_ids), size)]


class FeatureResolver:
    def __init__(self, provider, batch_size: int = SPOTIFY_MAX_FEATURE_BATCH, max_workers: int = 1):
        if not 1 <= batch_size <= SPOTIFY_MAX_FEATURE_BATCH:
            raise ValueError(f"batch_size must be between 1 and {SPOTIFY_MAX_FEATURE_BATCH}")
        self.provider = provider
        self.batch_size = batch_size
        self.max_workers = max(1, max_workers)

    def _lookup(self, index: int, batch: List[str]):
        try:
            features = self.provider.audio_features(batch)
        except UpstreamUnavailable as exc:
            logger.warning("audio_features failed (%s) on batch %d of %d ids; skipping", exc, index, len(batch))
            record_feature_batch(ok=False)
            return FailedBatch(index=index, track_ids=tuple(batch), error=str(exc))
        record_feature_batch(ok=True)
        return features

    def resolve(self, track_ids: Sequence[str]) -> FeatureResolution:
        batches = chunked(list(track_ids), self.batch_size)
        resolution = FeatureResolution(batches=len(batches))
        if not batches:
            return resolution

        if self.max_workers > 1 and len(batches) > 1:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(batches))) as pool:
                outcomes = list(pool.map(self._lookup, range(len(batches)), batches))
        else:
            outcomes = [self._lookup(index, batch) for index, batch in enumerate(batches)]

        # Merge in batch order whatever the completion order was; later duplicates win.
        for outcome in outcomes:
            if isinstance(outcome, FailedBatch):
                resolution.failed_batches.append(outcome)
            else:
                resolution.features.update(outcome)

        logger.info(
            "Resolved audio features for %d/%d ids in %d batches (%d failed)",
            len(resolution.features), len(track_ids), len(batches), len(resolution.failed_batches),
        )
        return resolution

    resolve_features = resolve
