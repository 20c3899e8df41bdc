#!/usr/bin/env python
# config.py
import os
from typing import List

# This assumes config.py is at the root of your project
basedir = os.path.abspath(os.path.dirname(__file__))


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _get_csv_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name)
    source = raw if raw is not None else default
    return [token.strip() for token in source.split(",") if token and token.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-me'

    # Spotify API (app credentials + the long-lived refresh token from /login)
    SPOTIFY_CLIENT_ID = os.environ.get('SPOTIFY_CLIENT_ID')
    SPOTIFY_CLIENT_SECRET = os.environ.get('SPOTIFY_CLIENT_SECRET')
    SPOTIFY_REFRESH_TOKEN = os.environ.get('SPOTIFY_REFRESH_TOKEN')
    PORT = _get_int('PORT', 4567)
    SPOTIFY_REDIRECT_URI = os.environ.get('SPOTIFY_REDIRECT_URI') or f'http://localhost:{PORT}/callback'
    SPOTIFY_SCOPES = os.environ.get('SPOTIFY_SCOPES') or 'user-read-private user-read-email playlist-read-private'

    # Seconds before a provider call is abandoned by the HTTP client
    SPOTIFY_REQUESTS_TIMEOUT = _get_int('SPOTIFY_REQUESTS_TIMEOUT', 10)
    # Refreshed tokens are treated as stale this many seconds before Spotify expires them
    TOKEN_EXPIRY_MARGIN_SECONDS = _get_int('TOKEN_EXPIRY_MARGIN_SECONDS', 300)

    # Audio-feature lookups (Spotify accepts at most 100 ids per call)
    AUDIO_FEATURES_BATCH_SIZE = _get_int('AUDIO_FEATURES_BATCH_SIZE', 100)
    AUDIO_FEATURES_MAX_WORKERS = _get_int('AUDIO_FEATURES_MAX_WORKERS', 1)

    # Page size of the "tracks in playlist by name" endpoint/tool
    PLAYLIST_TRACKS_PAGE_SIZE = _get_int('PLAYLIST_TRACKS_PAGE_SIZE', 15)

    # Gatekeeping for /api/v1/*; empty disables the X-API-Key check
    MCP_API_KEY = os.environ.get('MCP_API_KEY') or None
    CORS_ALLOWED_ORIGINS = _get_csv_list(
        'CORS_ALLOWED_ORIGINS', 'http://localhost:8080,http://127.0.0.1:8080'
    )

    # Runtime behavior
    # Turn Flask debug on/off from env; default off to avoid noisy console
    DEBUG = _get_bool('DEBUG', False)
    # Control console logging; when disabled, logs go only to file
    ENABLE_CONSOLE_LOGS = _get_bool('ENABLE_CONSOLE_LOGS', False)
    LOG_DIR = os.getenv('LOG_DIR', os.path.join(basedir, 'log'))
