"""Versioned JSON API: library views and the track recommendation."""

from __future__ import annotations

import hmac
import logging

from flask import Blueprint, current_app, jsonify, request

from spotify_mcp.auth import StaticTokenProvider
from spotify_mcp.errors import InvalidInput, MissingCredentials, NotFound, UpstreamUnavailable
from spotify_mcp.interfaces.tools import (
    Services,
    audio_features_payload,
    build_services,
    playlist_payload,
    track_payload,
)

logger = logging.getLogger(__name__)

api_bp = Blueprint("api_bp", __name__, url_prefix="/api/v1")

_BEARER_PREFIX = "Bearer "


def _settings():
    return current_app.extensions["service_settings"]


def _token_provider():
    """Caller-supplied bearer token first, then the shared refresh-token cache."""
    header = request.headers.get("Authorization", "")
    if header.startswith(_BEARER_PREFIX):
        return StaticTokenProvider(header[len(_BEARER_PREFIX):].strip())
    cache = current_app.extensions.get("token_cache")
    if cache is None:
        raise MissingCredentials("Access token not found")
    return cache


def _services() -> Services:
    factory = current_app.extensions.get("services_factory", build_services)
    return factory(_token_provider(), _settings())


@api_bp.before_request
def _require_api_key():
    if request.method == "OPTIONS":
        return None
    expected = _settings().api_key
    if not expected:
        return None
    supplied = request.headers.get("X-API-Key", "")
    if hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
        return None
    logger.warning("Rejected request with missing or invalid API key")
    return jsonify({"error": "invalid_api_key", "message": "A valid X-API-Key header is required."}), 401


@api_bp.errorhandler(InvalidInput)
def _invalid_input(exc):
    return jsonify({"error": str(exc)}), 400


@api_bp.errorhandler(MissingCredentials)
def _missing_credentials(exc):
    return jsonify({"error": str(exc)}), 401


@api_bp.errorhandler(NotFound)
def _not_found(exc):
    payload = {"error": str(exc)}
    if exc.reason:
        payload["reason"] = exc.reason
    return jsonify(payload), 404


@api_bp.errorhandler(UpstreamUnavailable)
def _upstream_unavailable(exc):
    return jsonify({"error": str(exc)}), 502


@api_bp.route("/playlists", methods=["GET"])
def get_playlists():
    services = _services()
    return jsonify({"playlists": [playlist_payload(p) for p in services.library.playlists()]})


@api_bp.route("/playlist/tracks", methods=["GET"])
def get_playlist_tracks():
    services = _services()
    name = request.args.get("name")
    if not name:
        raise InvalidInput("Playlist name parameter is required")
    page = request.args.get("page", 1)
    return jsonify({"tracks": services.library.playlist_tracks(name, page=page)})


@api_bp.route("/tracks/<track_id>/audio-features", methods=["GET"])
def get_track_audio_features(track_id: str):
    services = _services()
    features = services.library.track_audio_features(track_id)
    return jsonify({"audio_features": audio_features_payload(features)})


@api_bp.route("/track-recommendation", methods=["GET"])
def get_track_recommendation():
    services = _services()
    genre = request.args.get("genre")
    mood = request.args.get("mood")
    if not genre or not mood:
        raise InvalidInput("Genre and mood parameters are required")

    recommendation = services.recommender.recommend(genre, mood)
    if not recommendation.found:
        raise recommendation.to_not_found()
    return jsonify({"track": track_payload(recommendation.track)})


@api_bp.route("/random-fact", methods=["GET"])
def get_random_fact():
    services = _services()
    return jsonify({"fact": services.library.random_fact()})


__all__ = ["api_bp"]
