#!/usr/bin/env python
"""
Read-only views over the user's library backing the non-recommendation
endpoints and tools: playlist listing, paged tracks-by-playlist-name,
single-track audio features and the random fact generator.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

from spotify_mcp.errors import InvalidInput, NotFound
from spotify_mcp.models import AudioFeatures, Playlist, TrackRef, track_from_api

from .recommendation.playlists import PlaylistAggregator

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 15

FACT_TEMPLATES = (
    "Did you know that the track '{track}' by {artist} is {seconds} seconds long?",
    "Fun fact: The artist '{artist}' is on the track '{track}'.",
    "Here's a tidbit: The album '{album}' features the track '{track}'.",
)

GENERIC_TRIVIA = (
    "The first music video ever played on MTV was 'Video Killed the Radio Star' by The Buggles.",
    "The Beatles have had the most number-one hits on the Billboard Hot 100 chart.",
    "The best-selling album of all time is 'Thriller' by Michael Jackson.",
)


def track_summary(track: TrackRef) -> Dict[str, Any]:
    return {"id": track.id, "name": track.name, "artist": track.artist_names}


class LibraryService:
    def __init__(self, provider, page_size: int = DEFAULT_PAGE_SIZE,
                 aggregator: Optional[PlaylistAggregator] = None):
        self.provider = provider
        self.page_size = page_size
        self.aggregator = aggregator or PlaylistAggregator(provider)

    def playlists(self) -> List[Playlist]:
        return self.aggregator.list_playlists()

    def _playlist_named(self, name: str) -> Playlist:
        wanted = name.strip().lower()
        for playlist in self.playlists():
            if playlist.name.lower() == wanted:
                return playlist
        raise NotFound(f"Playlist '{name}' not found.", reason="playlist_not_found")

    def playlist_tracks(self, playlist_name: Optional[str], page: int = 1) -> List[Dict[str, Any]]:
        """One page of a playlist's tracks, looked up by exact (case-insensitive) name."""
        if not playlist_name or not playlist_name.strip():
            raise InvalidInput("playlist_name is required")
        try:
            page = int(page)
        except (TypeError, ValueError):
            raise InvalidInput("page must be an integer") from None
        if page < 1:
            raise InvalidInput("page must be 1 or greater")

        playlist = self._playlist_named(playlist_name)
        result = self.provider.playlist_tracks_page(
            playlist.id, limit=self.page_size, offset=(page - 1) * self.page_size
        )
        tracks = []
        for item in result.items:
            track = track_from_api((item or {}).get("track"))
            if track is not None:
                tracks.append(track_summary(track))
        return tracks

    def track_audio_features(self, track_id: Optional[str]) -> AudioFeatures:
        if not track_id or not track_id.strip():
            raise InvalidInput("track_id is required")
        track_id = track_id.strip()
        features = self.provider.audio_features([track_id]).get(track_id)
        if features is None:
            raise NotFound(f"No audio features found for track '{track_id}'.", reason="no_audio_features")
        return features

    def random_fact(self, rng: Optional[random.Random] = None) -> str:
        rng = rng or random.Random()
        track = self._random_track(rng)
        if track is None:
            return rng.choice(GENERIC_TRIVIA)
        return fact_from_track(track, rng)

    def _random_track(self, rng: random.Random) -> Optional[TrackRef]:
        playlists = self.playlists()
        if not playlists:
            return None
        playlist = rng.choice(playlists)
        tracks = self.aggregator.list_all_tracks(playlist.id)
        if not tracks:
            logger.debug("Playlist %s has no tracks; falling back to generic trivia", playlist.id)
            return None
        return rng.choice(tracks)


def fact_from_track(track: TrackRef, rng: random.Random) -> str:
    artist = track.artists[0].name if track.artists else "an unknown artist"
    template = rng.choice(FACT_TEMPLATES)
    return template.format(
        track=track.name,
        artist=artist,
        seconds=track.duration_ms // 1000,
        album=track.album_name or "an unknown album",
    )


__all__ = [
    "FACT_TEMPLATES",
    "GENERIC_TRIVIA",
    "LibraryService",
    "fact_from_track",
    "track_summary",
]
