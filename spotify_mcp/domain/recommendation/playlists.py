"""Playlist aggregation: genre filtering and exhaustive track listing."""

from __future__ import annotations

import logging
from typing import List, Sequence

from spotify_mcp.errors import UpstreamUnavailable
from spotify_mcp.models import Playlist, TrackRef, playlist_from_api, track_from_api

logger = logging.getLogger(__name__)


def filter_by_genre(playlists: Sequence[Playlist], genre: str) -> List[Playlist]:
    """Playlists whose name contains ``genre``, ignoring case, in input order."""
    needle = genre.lower()
    return [playlist for playlist in playlists if needle in playlist.name.lower()]


class PlaylistAggregator:
    """Walks the provider's paginated playlist and playlist-item listings.

    A failing page ends the walk; whatever was collected before it is kept.
    """

    def __init__(self, provider):
        self.provider = provider

    def list_playlists(self) -> List[Playlist]:
        playlists: List[Playlist] = []
        try:
            for item in self.provider.playlist_pages().items():
                playlist = playlist_from_api(item)
                if playlist is not None:
                    playlists.append(playlist)
        except UpstreamUnavailable as exc:
            logger.warning("Playlist listing interrupted after %d playlists: %s", len(playlists), exc)
        return playlists

    def find_genre_playlists(self, genre: str) -> List[Playlist]:
        return filter_by_genre(self.list_playlists(), genre)

    def list_all_tracks(self, playlist_id: str) -> List[TrackRef]:
        tracks: List[TrackRef] = []
        skipped = 0
        try:
            for item in self.provider.playlist_track_pages(playlist_id).items():
                track = track_from_api((item or {}).get("track"))
                if track is None:
                    skipped += 1
                    continue
                tracks.append(track)
        except UpstreamUnavailable as exc:
            logger.warning(
                "Track listing for playlist %s interrupted after %d tracks: %s",
                playlist_id, len(tracks), exc,
            )
        if skipped:
            logger.debug("Skipped %d playlist items without a track id in %s", skipped, playlist_id)
        return tracks
