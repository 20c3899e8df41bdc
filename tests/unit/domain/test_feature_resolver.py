import math

import pytest
from hypothesis import given, settings, strategies as st

from spotify_mcp.domain.recommendation import FeatureResolver, chunked
from spotify_mcp.models import AudioFeatures


class _RecordingProvider:
    """Answers every id with neutral features; optionally fails chosen call numbers."""

    def __init__(self, failing_calls=()):
        self.batches = []
        self.failing_calls = set(failing_calls)

    def audio_features(self, ids):
        from spotify_mcp.errors import UpstreamUnavailable

        self.batches.append(list(ids))
        if len(self.batches) in self.failing_calls:
            raise UpstreamUnavailable("audio_features", 503)
        return {i: AudioFeatures(track_id=i, valence=0.5, energy=0.5) for i in ids}


@pytest.mark.unit
def test_chunked_preserves_order_and_sizes():
    assert chunked(["a", "b", "c", "d", "e"], 2) == [["a", "b"], ["c", "d"], ["e"]]
    assert chunked([], 3) == []
    with pytest.raises(ValueError):
        chunked(["a"], 0)


@pytest.mark.unit
@pytest.mark.parametrize("size", [0, 101])
def test_batch_size_out_of_range_is_rejected(size):
    with pytest.raises(ValueError):
        FeatureResolver(_RecordingProvider(), batch_size=size)


@pytest.mark.unit
@settings(max_examples=40, deadline=None)
@given(count=st.integers(min_value=0, max_value=450), size=st.integers(min_value=1, max_value=100))
def test_lookup_count_is_ceiling_of_ids_over_batch_size(count, size):
    provider = _RecordingProvider()
    ids = [f"t{i}" for i in range(count)]

    resolution = FeatureResolver(provider, batch_size=size).resolve(ids)

    assert len(provider.batches) == math.ceil(count / size)
    assert resolution.batches == len(provider.batches)
    assert all(len(batch) <= size for batch in provider.batches)
    assert set(resolution.features) == set(ids)


@pytest.mark.unit
def test_failed_batch_is_recorded_and_others_still_merge():
    provider = _RecordingProvider(failing_calls={2})
    ids = [f"t{i}" for i in range(250)]

    resolution = FeatureResolver(provider, batch_size=100).resolve(ids)

    assert not resolution.complete
    assert [failed.index for failed in resolution.failed_batches] == [1]
    assert resolution.failed_batches[0].track_ids == tuple(ids[100:200])
    assert set(resolution.features) == set(ids[:100] + ids[200:])
    assert resolution.get("t150") is None


@pytest.mark.unit
def test_parallel_resolution_matches_sequential():
    ids = [f"t{i}" for i in range(95)]
    sequential = FeatureResolver(_RecordingProvider(), batch_size=10).resolve(ids)
    parallel = FeatureResolver(_RecordingProvider(), batch_size=10, max_workers=4).resolve(ids)

    assert parallel.features == sequential.features
    assert parallel.batches == sequential.batches == 10


@pytest.mark.unit
def test_duplicate_ids_are_sent_as_given():
    provider = _RecordingProvider()
    FeatureResolver(provider, batch_size=2).resolve(["a", "a", "b"])
    assert provider.batches == [["a", "a"], ["b"]]


@pytest.mark.unit
def test_resolve_features_alias():
    assert FeatureResolver.resolve_features is FeatureResolver.resolve


class _BatchSizedProvider(_RecordingProvider):
    """Energy is the batch length over ten, so each batch's answer is distinguishable."""

    def audio_features(self, ids):
        from spotify_mcp.errors import UpstreamUnavailable

        self.batches.append(list(ids))
        if len(self.batches) in self.failing_calls:
            raise UpstreamUnavailable("audio_features", 503)
        return {i: AudioFeatures(track_id=i, valence=0.5, energy=len(ids) / 10) for i in ids}


@pytest.mark.unit
@pytest.mark.parametrize("max_workers", [1, 2])
def test_duplicate_across_batches_takes_later_response(max_workers):
    provider = _BatchSizedProvider()

    resolution = FeatureResolver(provider, batch_size=2, max_workers=max_workers).resolve(["a", "b", "a"])

    assert sorted(provider.batches) == [["a"], ["a", "b"]]
    assert resolution.get("a").energy == 0.1
    assert resolution.get("b").energy == 0.2


@pytest.mark.unit
def test_duplicate_survives_when_its_first_batch_fails():
    provider = _BatchSizedProvider(failing_calls={1})

    resolution = FeatureResolver(provider, batch_size=2).resolve(["a", "b", "a"])

    assert [failed.track_ids for failed in resolution.failed_batches] == [("a", "b")]
    assert resolution.get("a").energy == 0.1
    assert resolution.get("b") is None
