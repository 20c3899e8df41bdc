#!/usr/bin/env python
"""
Validated service settings.

Merges defaults from config.Config with runtime overrides and clamps the
values the recommendation pipeline depends on (batch size, worker count).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import Config

# Hard ceiling imposed by the audio-features endpoint
SPOTIFY_MAX_FEATURE_BATCH = 100


def _parse_origins(value: Optional[object]) -> List[str]:
    """Normalize CORS origins into a unique ordered list without wildcards."""
    if value is None:
        tokens: List[str] = []
    elif isinstance(value, str):
        tokens = [token.strip() for token in value.split(",")]
    elif isinstance(value, (list, tuple, set)):
        tokens = [str(token).strip() for token in value]
    else:
        tokens = [str(value).strip()]

    normalized: List[str] = []
    for token in tokens:
        token = token.rstrip("/")
        if not token or token == "*":
            continue
        if token not in normalized:
            normalized.append(token)
    return normalized


class ServiceSettings(BaseModel):
    """Settings consumed by the provider adapter, resolvers and HTTP layer."""

    model_config = ConfigDict(extra="ignore")

    # Spotify credentials
    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = None
    spotify_redirect_uri: str = "http://localhost:4567/callback"
    spotify_refresh_token: Optional[str] = None
    spotify_scopes: str = "user-read-private user-read-email playlist-read-private"

    requests_timeout: int = Field(default=10, ge=1)
    token_expiry_margin: int = Field(default=300, ge=0)

    feature_batch_size: int = SPOTIFY_MAX_FEATURE_BATCH
    feature_max_workers: int = 1
    playlist_tracks_page_size: int = 15

    api_key: Optional[str] = None
    cors_allowed_origins: List[str] = Field(default_factory=list)

    @field_validator("feature_batch_size", mode="before")
    @classmethod
    def _clamp_batch_size(cls, value: object) -> int:
        try:
            size = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return SPOTIFY_MAX_FEATURE_BATCH
        return max(1, min(size, SPOTIFY_MAX_FEATURE_BATCH))

    @field_validator("feature_max_workers", mode="before")
    @classmethod
    def _coerce_workers(cls, value: object) -> int:
        try:
            workers = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 1
        return max(1, min(workers, 16))

    @field_validator("playlist_tracks_page_size", mode="before")
    @classmethod
    def _clamp_page_size(cls, value: object) -> int:
        try:
            size = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 15
        return max(1, min(size, 100))

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def _normalize_origins(cls, value: Optional[object]) -> List[str]:
        return _parse_origins(value)

    @field_validator("api_key", "spotify_refresh_token", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @property
    def has_app_credentials(self) -> bool:
        return bool(self.spotify_client_id and self.spotify_client_secret)


def load_service_settings(overrides: Optional[Dict[str, Any]] = None) -> ServiceSettings:
    """Load settings merging config defaults with optional runtime overrides."""
    data: Dict[str, Any] = {
        "spotify_client_id": Config.SPOTIFY_CLIENT_ID,
        "spotify_client_secret": Config.SPOTIFY_CLIENT_SECRET,
        "spotify_redirect_uri": Config.SPOTIFY_REDIRECT_URI,
        "spotify_refresh_token": Config.SPOTIFY_REFRESH_TOKEN,
        "spotify_scopes": Config.SPOTIFY_SCOPES,
        "requests_timeout": Config.SPOTIFY_REQUESTS_TIMEOUT,
        "token_expiry_margin": Config.TOKEN_EXPIRY_MARGIN_SECONDS,
        "feature_batch_size": Config.AUDIO_FEATURES_BATCH_SIZE,
        "feature_max_workers": Config.AUDIO_FEATURES_MAX_WORKERS,
        "playlist_tracks_page_size": Config.PLAYLIST_TRACKS_PAGE_SIZE,
        "api_key": Config.MCP_API_KEY,
        "cors_allowed_origins": Config.CORS_ALLOWED_ORIGINS,
    }
    if overrides:
        data.update(overrides)
    return ServiceSettings.model_validate(data)


__all__ = [
    "ServiceSettings",
    "SPOTIFY_MAX_FEATURE_BATCH",
    "load_service_settings",
]
