#!/usr/bin/env python
"""One-time Spotify authorization-code flow that yields the long-lived refresh token."""

from __future__ import annotations

import logging

import requests
from flask import Blueprint, current_app, jsonify, redirect, request
from spotipy.oauth2 import SpotifyOauthError

from spotify_mcp.auth import AccessTokenCache, RefreshTokenGrant, build_oauth
from spotify_mcp.errors import MissingCredentials

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


def _settings():
    return current_app.extensions["service_settings"]


@auth_bp.route("/login")
def login():
    try:
        oauth = build_oauth(_settings())
    except MissingCredentials as exc:
        return jsonify({"error": str(exc)}), 500
    return redirect(oauth.get_authorize_url())


@auth_bp.route("/callback")
def callback():
    code = request.args.get("code")
    if not code:
        return jsonify({"error": "Authorization code not found"}), 400

    settings = _settings()
    try:
        oauth = build_oauth(settings)
        token_info = oauth.get_access_token(code, check_cache=False)
    except MissingCredentials as exc:
        return jsonify({"error": str(exc)}), 500
    except (SpotifyOauthError, requests.RequestException) as exc:
        logger.error("Error exchanging code for token: %s", exc, exc_info=True)
        return jsonify({"error": "Failed to get token from Spotify."}), 502

    refresh_token = token_info.get("refresh_token")
    if refresh_token and current_app.extensions.get("token_cache") is None:
        # Serve API calls for the rest of this process without a restart
        current_app.extensions["token_cache"] = AccessTokenCache(
            RefreshTokenGrant(oauth, refresh_token, margin_seconds=settings.token_expiry_margin)
        )
    logger.info("Spotify authentication successful; store the refresh token as SPOTIFY_REFRESH_TOKEN")

    return jsonify(
        {
            "access_token": token_info.get("access_token"),
            "token_type": token_info.get("token_type"),
            "expires_in": token_info.get("expires_in"),
            "refresh_token": refresh_token,
            "scope": token_info.get("scope"),
        }
    )


__all__ = ["auth_bp"]
