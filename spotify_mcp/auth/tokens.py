"""Bearer credentials for the Spotify Web API.

``AccessTokenCache`` is the one process-wide mutable resource. It is owned by
the Flask app (or the MCP server) and handed to providers explicitly.
Refreshes are at-least-once: two callers that both see a stale token may both
refresh, and whichever stores last wins.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from threading import RLock
from typing import Callable, Optional

import requests
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from spotify_mcp.errors import MissingCredentials
from spotify_mcp.settings import ServiceSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessToken:
    value: str
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


class StaticTokenProvider:
    """Wraps a caller-supplied bearer token; it cannot be refreshed."""

    def __init__(self, token: str) -> None:
        if not token:
            raise MissingCredentials("Access token not found")
        self._token = token

    def get_token(self) -> str:
        return self._token

    def invalidate(self, token: str) -> bool:
        return False


class AccessTokenCache:
    """Thread-safe access-token holder with expiry and compare-and-refresh."""

    def __init__(self, refresher: Callable[[], AccessToken], clock: Callable[[], float] = time.time) -> None:
        self._refresher = refresher
        self._clock = clock
        self._token: Optional[AccessToken] = None
        self._lock = RLock()

    def peek(self) -> Optional[AccessToken]:
        with self._lock:
            return self._token

    def get_token(self) -> str:
        current = self.peek()
        if current is not None and current.is_fresh(self._clock()):
            return current.value
        return self.refresh(stale=current.value if current else None).value

    def refresh(self, stale: Optional[str] = None) -> AccessToken:
        """Refresh unless another caller already replaced ``stale`` with a fresh token."""
        with self._lock:
            current = self._token
            if (
                current is not None
                and current.value != stale
                and current.is_fresh(self._clock())
            ):
                return current
        # The refresher performs a network round trip; never hold the lock across it.
        token = self._refresher()
        with self._lock:
            self._token = token
        logger.info("Spotify access token refreshed; valid for %.0fs", token.expires_at - self._clock())
        return token

    def invalidate(self, token: str) -> bool:
        """Drop the cached token if it is still ``token``. Returns True (a retry can refresh)."""
        with self._lock:
            if self._token is not None and self._token.value == token:
                self._token = None
        return True


def build_oauth(settings: ServiceSettings) -> SpotifyOAuth:
    """SpotifyOAuth bound to an in-memory cache so no token ever touches disk."""
    if not settings.has_app_credentials:
        raise MissingCredentials("SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET are not configured.")
    return SpotifyOAuth(
        client_id=settings.spotify_client_id,
        client_secret=settings.spotify_client_secret,
        redirect_uri=settings.spotify_redirect_uri,
        scope=settings.spotify_scopes,
        open_browser=False,
        cache_handler=MemoryCacheHandler(),
        requests_timeout=settings.requests_timeout,
    )


class RefreshTokenGrant:
    """Exchanges the configured refresh token for a short-lived access token."""

    def __init__(
        self,
        oauth: SpotifyOAuth,
        refresh_token: str,
        margin_seconds: int = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._oauth = oauth
        self._refresh_token = refresh_token
        self._margin = margin_seconds
        self._clock = clock

    def __call__(self) -> AccessToken:
        if not self._refresh_token:
            raise MissingCredentials(
                "SPOTIFY_REFRESH_TOKEN is not set. Please complete the one-time login."
            )
        try:
            token_info = self._oauth.refresh_access_token(self._refresh_token)
        except (SpotifyOauthError, requests.RequestException) as exc:
            logger.error("Error refreshing Spotify token: %s", exc, exc_info=True)
            raise MissingCredentials(f"Could not refresh Spotify access token: {exc}") from exc
        expires_in = int(token_info.get("expires_in") or 3600)
        return AccessToken(
            value=token_info["access_token"],
            expires_at=self._clock() + max(0, expires_in - self._margin),
        )


def build_token_cache(settings: ServiceSettings) -> Optional[AccessTokenCache]:
    """Token cache backed by the refresh-token grant, or None when not configured."""
    if not settings.spotify_refresh_token or not settings.has_app_credentials:
        return None
    grant = RefreshTokenGrant(
        build_oauth(settings),
        settings.spotify_refresh_token,
        margin_seconds=settings.token_expiry_margin,
    )
    return AccessTokenCache(grant)


__all__ = [
    "AccessToken",
    "AccessTokenCache",
    "RefreshTokenGrant",
    "StaticTokenProvider",
    "build_oauth",
    "build_token_cache",
]
