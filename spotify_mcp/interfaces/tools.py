#!/usr/bin/env python
"""
Tool surface for LLM clients.

``TOOLS`` carries the JSON-Schema definitions in the "function" tool format
used by OpenAI/Mistral chat APIs; ``ToolDispatcher`` executes one tool call
against the domain services and returns the tool-result message.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from spotify_mcp.domain import LibraryService, RecommendationResolver
from spotify_mcp.errors import InvalidInput, NotFound, UnknownToolError, UpstreamUnavailable
from spotify_mcp.models import AudioFeatures, Playlist, TrackRef
from spotify_mcp.providers import SpotifyProvider
from spotify_mcp.settings import ServiceSettings

logger = logging.getLogger(__name__)


TOOLS = [
    {
        "type": "function",
        "function": {
            "name": "get_user_playlists",
            "description": "Gets a list of the user's playlists.",
            "parameters": {"type": "object", "properties": {}},
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_tracks_in_playlist",
            "description": "Gets a paginated list of tracks from a user's specific playlist by name.",
            "parameters": {
                "type": "object",
                "properties": {
                    "playlist_name": {
                        "type": "string",
                        "description": "The name of the playlist to fetch tracks from.",
                    },
                    "page": {
                        "type": "integer",
                        "description": "The page number of tracks to retrieve.",
                        "default": 1,
                    },
                },
                "required": ["playlist_name"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_track_audio_features",
            "description": "Gets the audio features for a single track, given a specific and unique track ID.",
            "parameters": {
                "type": "object",
                "properties": {
                    "track_id": {
                        "type": "string",
                        "description": "The unique Spotify ID of the track.",
                    },
                },
                "required": ["track_id"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "track_recommendation",
            "description": (
                "Recommends one track from the user's playlists whose name contains the genre, "
                "picking the first track that fits the mood (happy, sad, energetic or calm)."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "genre": {
                        "type": "string",
                        "description": "Substring matched against playlist names, e.g. 'rock'.",
                    },
                    "mood": {
                        "type": "string",
                        "description": "One of happy, sad, energetic, calm. Other values match any track.",
                    },
                },
                "required": ["genre", "mood"],
            },
        },
    },
]


# ---------- Payloads shared with the HTTP routes ----------
def playlist_payload(playlist: Playlist) -> Dict[str, Any]:
    return playlist.model_dump()


def track_payload(track: TrackRef) -> Dict[str, Any]:
    payload = track.model_dump()
    payload["artist"] = track.artist_names
    return payload


def audio_features_payload(features: AudioFeatures) -> Dict[str, Any]:
    return features.model_dump()


@dataclass
class Services:
    library: LibraryService
    recommender: RecommendationResolver


def build_services(token_provider, settings: ServiceSettings, client_factory=None) -> Services:
    """Wire one provider (and the services over it) for a single logical request."""
    provider = SpotifyProvider(
        token_provider, requests_timeout=settings.requests_timeout, client_factory=client_factory
    )
    return Services(
        library=LibraryService(provider, page_size=settings.playlist_tracks_page_size),
        recommender=RecommendationResolver(
            provider,
            batch_size=settings.feature_batch_size,
            max_workers=settings.feature_max_workers,
        ),
    )


def _parse_arguments(raw: Any) -> Dict[str, Any]:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"Tool arguments are not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise InvalidInput("Tool arguments must be a JSON object")
    return parsed


class ToolDispatcher:
    def __init__(self, services: Services):
        self.services = services
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
            "get_user_playlists": self._get_user_playlists,
            "get_tracks_in_playlist": self._get_tracks_in_playlist,
            "get_track_audio_features": self._get_track_audio_features,
            "track_recommendation": self._track_recommendation,
        }

    @property
    def tool_names(self):
        return list(self._handlers)

    def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a tool by name and return its result object (raises domain errors)."""
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownToolError(name)
        return handler(arguments or {})

    def execute(self, tool_call: Mapping[str, Any]) -> Dict[str, Any]:
        """Execute a chat-API tool call and build the ``tool`` role message for it."""
        function = tool_call.get("function") or {}
        name = function.get("name") or ""
        if name not in self._handlers:
            raise UnknownToolError(name)
        arguments = _parse_arguments(function.get("arguments"))

        try:
            result = self.call(name, arguments)
        except (InvalidInput, NotFound, UpstreamUnavailable) as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            result = {"error": str(exc)}
        return {
            "name": name,
            "id": tool_call.get("id"),
            "content": json.dumps(result),
        }

    execute_tool_call = execute

    # ---------- Handlers ----------
    def _get_user_playlists(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        return {"playlists": [playlist_payload(p) for p in self.services.library.playlists()]}

    def _get_tracks_in_playlist(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        tracks = self.services.library.playlist_tracks(
            arguments.get("playlist_name"), page=arguments.get("page", 1)
        )
        return {"tracks": tracks}

    def _get_track_audio_features(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        features = self.services.library.track_audio_features(arguments.get("track_id"))
        return {"audio_features": audio_features_payload(features)}

    def _track_recommendation(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        recommendation = self.services.recommender.recommend(arguments.get("genre"), arguments.get("mood"))
        if not recommendation.found:
            raise recommendation.to_not_found()
        return {"track": track_payload(recommendation.track)}


__all__ = [
    "TOOLS",
    "Services",
    "ToolDispatcher",
    "audio_features_payload",
    "build_services",
    "playlist_payload",
    "track_payload",
]
