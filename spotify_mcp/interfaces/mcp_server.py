"""
MCP server exposing the library and recommendation tools over stdio.

Credentials come from SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET and the
SPOTIFY_REFRESH_TOKEN obtained once through the HTTP ``/login`` flow.
stdout carries the protocol, so logs go to stderr.
"""

import logging
import sys
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

from spotify_mcp.auth import AccessTokenCache, build_token_cache
from spotify_mcp.errors import InvalidInput, MissingCredentials, NotFound, UpstreamUnavailable
from spotify_mcp.settings import ServiceSettings, load_service_settings

from .tools import ToolDispatcher, build_services

logger = logging.getLogger(__name__)

mcp = FastMCP("spotify-mcp")

_settings: Optional[ServiceSettings] = None
_token_cache: Optional[AccessTokenCache] = None


def _dispatcher() -> ToolDispatcher:
    """Lazily build the shared token cache; a fresh provider is wired per call."""
    global _settings, _token_cache
    if _settings is None:
        _settings = load_service_settings()
    if _token_cache is None:
        _token_cache = build_token_cache(_settings)
        if _token_cache is None:
            raise MissingCredentials(
                "SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET and SPOTIFY_REFRESH_TOKEN must be set."
            )
    return ToolDispatcher(build_services(_token_cache, _settings))


def _run(name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    try:
        return _dispatcher().call(name, arguments)
    except (InvalidInput, NotFound, UpstreamUnavailable, MissingCredentials) as exc:
        logger.warning("Tool %s failed: %s", name, exc)
        return {"error": str(exc)}


@mcp.tool()
def get_user_playlists() -> Dict[str, Any]:
    """Gets a list of the user's playlists."""
    return _run("get_user_playlists", {})


@mcp.tool()
def get_tracks_in_playlist(playlist_name: str, page: int = 1) -> Dict[str, Any]:
    """Gets a paginated list of tracks from a user's specific playlist by name."""
    return _run("get_tracks_in_playlist", {"playlist_name": playlist_name, "page": page})


@mcp.tool()
def get_track_audio_features(track_id: str) -> Dict[str, Any]:
    """Gets the audio features for a single track, given a specific and unique track ID."""
    return _run("get_track_audio_features", {"track_id": track_id})


@mcp.tool()
def track_recommendation(genre: str, mood: str) -> Dict[str, Any]:
    """
    Recommends one track from playlists whose name contains ``genre`` that fits ``mood``.

    Moods: happy, sad, energetic, calm. Any other mood accepts every track.
    """
    return _run("track_recommendation", {"genre": genre, "mood": mood})


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    logger.info("Starting Spotify MCP server (stdio)")
    mcp.run()


if __name__ == "__main__":
    main()
