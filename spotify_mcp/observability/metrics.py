from __future__ import annotations

from flask import Blueprint, Response
from prometheus_client import Counter, generate_latest

metrics_blueprint = Blueprint("metrics_bp", __name__)

CONTENT_TYPE_LATEST = "text/plain; version=0.0.4; charset=utf-8"

RECOMMENDATION_OUTCOMES = Counter(
    "spotifymcp_recommendation_outcomes_total",
    "Track recommendation results, by outcome (match or not-found reason).",
    ["outcome"],
)
FEATURE_BATCHES = Counter(
    "spotifymcp_audio_feature_batches_total",
    "Bulk audio-feature lookups issued, by status.",
    ["status"],
)
PROVIDER_ERRORS = Counter(
    "spotifymcp_provider_errors_total",
    "Spotify API calls that failed at the transport level or returned non-2xx.",
    ["endpoint"],
)


def record_recommendation(outcome: str) -> None:
    RECOMMENDATION_OUTCOMES.labels(outcome=outcome).inc()


def record_feature_batch(ok: bool) -> None:
    FEATURE_BATCHES.labels(status="ok" if ok else "failed").inc()


def record_provider_error(endpoint: str) -> None:
    PROVIDER_ERRORS.labels(endpoint=endpoint).inc()


@metrics_blueprint.route("/metrics")
def metrics_endpoint() -> Response:
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
