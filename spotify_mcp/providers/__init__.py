"""Adapters over external music providers."""

from .spotify import SpotifyProvider, extract_track_id, parse_audio_features

__all__ = ["SpotifyProvider", "extract_track_id", "parse_audio_features"]
