from __future__ import annotations

from flask import Blueprint, current_app, jsonify

health_bp = Blueprint("health_bp", __name__)


@health_bp.route("/")
def index():
    return jsonify({"status": "running"})


@health_bp.route("/healthz")
def healthz():
    settings = current_app.extensions["service_settings"]
    checks = {
        "app_credentials": "configured" if settings.has_app_credentials else "missing",
        "refresh_token": "configured" if settings.spotify_refresh_token else "missing",
        "api_key": "enabled" if settings.api_key else "disabled",
    }
    return jsonify({"status": "ok", "checks": checks}), 200
