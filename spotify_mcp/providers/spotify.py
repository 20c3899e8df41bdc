# spotify_mcp/providers/spotify.py
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar
from urllib.parse import urlparse

import requests
import spotipy
from pydantic import ValidationError
from spotipy.exceptions import SpotifyException

from spotify_mcp.errors import NotFound, UpstreamUnavailable
from spotify_mcp.models import AudioFeatures, TrackRef, track_from_api
from spotify_mcp.observability.metrics import record_provider_error
from spotify_mcp.utils.pagination import Page, PageStream

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Web API limits
PLAYLISTS_PAGE_LIMIT = 50
PLAYLIST_ITEMS_PAGE_LIMIT = 100
AUDIO_FEATURES_MAX_IDS = 100


def extract_id_from_link(link: Optional[str]) -> str:
    """Return the trailing path segment of a resource link.

    Handles ``https://api.spotify.com/v1/tracks/<id>`` (with trailing slash or
    query string) as well as ``spotify:track:<id>`` URIs.
    """
    if not link:
        return ""
    if link.startswith("spotify:"):
        return link.rsplit(":", 1)[-1]
    path = urlparse(link).path
    segments = [segment for segment in path.split('/') if segment]
    if segments:
        return segments[-1]
    return ""


def extract_track_id(record: Dict[str, Any]) -> str:
    """Audio-feature records carry their track id inside the ``track_href`` link."""
    return (
        extract_id_from_link(record.get("track_href"))
        or extract_id_from_link(record.get("uri"))
        or (record.get("id") or "")
    )


def parse_audio_features(record: Optional[Dict[str, Any]]) -> Optional[AudioFeatures]:
    """Convert one raw audio-features record; None when it carries no usable data."""
    if not record:
        return None
    track_id = extract_track_id(record)
    valence = record.get("valence")
    energy = record.get("energy")
    if not track_id or valence is None or energy is None:
        return None
    try:
        return AudioFeatures(
            track_id=track_id,
            valence=valence,
            energy=energy,
            danceability=record.get("danceability"),
            tempo=record.get("tempo"),
            acousticness=record.get("acousticness"),
        )
    except ValidationError as exc:
        logger.debug("Discarding malformed audio features for %s: %s", track_id, exc)
        return None


def _default_client_factory(requests_timeout: int) -> Callable[[str], spotipy.Spotify]:
    def factory(token: str) -> spotipy.Spotify:
        # No retry policy beyond the single 401 refresh handled by SpotifyProvider
        return spotipy.Spotify(
            auth=token,
            requests_timeout=requests_timeout,
            retries=0,
            status_retries=0,
        )
    return factory


class SpotifyProvider:
    """Adapter over the Spotify Web API for one logical request.

    Every failure (transport error or non-2xx answer) surfaces as
    ``UpstreamUnavailable``; callers decide how to degrade. A 401 invalidates
    the bearer token and the call is retried once when the token source can
    refresh.
    """

    def __init__(self, token_provider, requests_timeout: int = 10,
                 client_factory: Optional[Callable[[str], Any]] = None):
        self._tokens = token_provider
        self._client_factory = client_factory or _default_client_factory(requests_timeout)
        self._client = None
        self._client_token: Optional[str] = None
        # Feature batches may call in from pool threads
        self._client_lock = threading.Lock()

    def _client_for(self, token: str):
        with self._client_lock:
            if self._client is None or token != self._client_token:
                self._client = self._client_factory(token)
                self._client_token = token
            return self._client

    def _call(self, endpoint: str, call: Callable[[Any], T], detail: str = "") -> T:
        action = f"{endpoint} {detail}".strip()
        for attempt in (1, 2):
            token = self._tokens.get_token()
            try:
                return call(self._client_for(token))
            except SpotifyException as exc:
                if exc.http_status == 401 and attempt == 1 and self._tokens.invalidate(token):
                    logger.warning('Spotify token expired during %s. Attempting to refresh credentials.', action)
                    continue
                error = UpstreamUnavailable(action, exc.http_status, getattr(exc, "msg", None) or str(exc))
                cause: Exception = exc
            except requests.RequestException as exc:
                error = UpstreamUnavailable(action, detail=str(exc))
                cause = exc
            logger.error('Spotify API call failed during %s: %s', action, cause, extra={"endpoint": endpoint})
            record_provider_error(endpoint)
            raise error from cause
        raise AssertionError("unreachable")  # pragma: no cover

    # ---------- Playlists ----------
    def playlist_pages(self) -> PageStream:
        """Every page of the current user's playlists."""
        return PageStream(
            first=lambda: Page.from_api(self._call(
                "playlists", lambda sp: sp.current_user_playlists(limit=PLAYLISTS_PAGE_LIMIT)
            )),
            follow=lambda page: self._follow("playlists", page),
        )

    def playlist_track_pages(self, playlist_id: str, limit: int = PLAYLIST_ITEMS_PAGE_LIMIT) -> PageStream:
        """Every page of a playlist's items, starting at offset 0."""
        return PageStream(
            first=lambda: self.playlist_tracks_page(playlist_id, limit=limit, offset=0),
            follow=lambda page: self._follow("playlist_tracks", page, playlist_id),
        )

    def playlist_tracks_page(self, playlist_id: str, limit: int, offset: int = 0) -> Page:
        limit = max(1, min(int(limit), PLAYLIST_ITEMS_PAGE_LIMIT))
        return Page.from_api(self._call(
            "playlist_tracks",
            lambda sp: sp.playlist_items(
                playlist_id, limit=limit, offset=max(0, int(offset)), additional_types=("track",)
            ),
            playlist_id,
        ))

    def _follow(self, endpoint: str, page: Page, detail: str = "") -> Page:
        return Page.from_api(self._call(endpoint, lambda sp: sp.next({"next": page.next}), detail))

    # ---------- Tracks ----------
    def track(self, track_id: str) -> TrackRef:
        payload = self._call("track", lambda sp: sp.track(track_id), track_id)
        track = track_from_api(payload)
        if track is None:
            raise NotFound(f"Track '{track_id}' not found.", reason="track_not_found")
        return track

    def audio_features(self, track_ids: Sequence[str]) -> Dict[str, AudioFeatures]:
        """One bulk lookup; returns only the records that carry usable data."""
        ids: List[str] = list(track_ids)
        if not ids:
            return {}
        if len(ids) > AUDIO_FEATURES_MAX_IDS:
            raise ValueError(f"audio_features accepts at most {AUDIO_FEATURES_MAX_IDS} ids, got {len(ids)}")
        records = self._call(
            "audio_features", lambda sp: sp.audio_features(tracks=ids), f"batch={len(ids)}"
        ) or []
        features: Dict[str, AudioFeatures] = {}
        for record in records:
            parsed = parse_audio_features(record)
            if parsed is not None:
                features[parsed.track_id] = parsed
        return features


__all__ = [
    "AUDIO_FEATURES_MAX_IDS",
    "PLAYLISTS_PAGE_LIMIT",
    "PLAYLIST_ITEMS_PAGE_LIMIT",
    "SpotifyProvider",
    "extract_id_from_link",
    "extract_track_id",
    "parse_audio_features",
]
