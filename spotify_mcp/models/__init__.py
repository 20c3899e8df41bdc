"""Domain models."""

from .dto import Artist, AudioFeatures, Playlist, TrackRef, playlist_from_api, track_from_api

__all__ = [
    "Artist",
    "AudioFeatures",
    "Playlist",
    "TrackRef",
    "playlist_from_api",
    "track_from_api",
]
