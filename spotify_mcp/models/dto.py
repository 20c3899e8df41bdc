#!/usr/bin/env python
"""
Pydantic DTOs for the Spotify entities the recommendation pipeline reads.

Instances are per-request snapshots built by the provider adapter from raw
Web API payloads; nothing here is cached across requests.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Artist(BaseModel):
    name: str


class Playlist(BaseModel):
    """A playlist owned or followed by the authenticated user."""

    id: str
    name: str


class TrackRef(BaseModel):
    """Track metadata as returned by playlist listings and track lookups."""

    id: str
    name: str
    artists: List[Artist] = Field(default_factory=list)
    duration_ms: int = Field(default=0, ge=0)
    album_name: str = ""
    uri: Optional[str] = None
    spotify_url: Optional[str] = None

    @property
    def artist_names(self) -> str:
        return ", ".join(artist.name for artist in self.artists)


class AudioFeatures(BaseModel):
    """Per-track feature vector; valence and energy drive mood matching."""

    track_id: str
    valence: float = Field(ge=0.0, le=1.0)
    energy: float = Field(ge=0.0, le=1.0)
    danceability: Optional[float] = None
    tempo: Optional[float] = None
    acousticness: Optional[float] = None


def playlist_from_api(payload: Dict[str, Any]) -> Optional[Playlist]:
    if not payload or not payload.get("id"):
        return None
    return Playlist(id=payload["id"], name=payload.get("name") or "")


def track_from_api(payload: Optional[Dict[str, Any]]) -> Optional[TrackRef]:
    """Build a TrackRef from a Web API track object; None for local/removed items."""
    if not payload or not payload.get("id"):
        return None
    album = payload.get("album") or {}
    return TrackRef(
        id=payload["id"],
        name=payload.get("name") or "",
        artists=[
            Artist(name=artist.get("name") or "")
            for artist in payload.get("artists") or []
            if artist
        ],
        duration_ms=payload.get("duration_ms") or 0,
        album_name=album.get("name") or "",
        uri=payload.get("uri"),
        spotify_url=(payload.get("external_urls") or {}).get("spotify"),
    )


__all__ = [
    "Artist",
    "Playlist",
    "TrackRef",
    "AudioFeatures",
    "playlist_from_api",
    "track_from_api",
]
