"""Spotify mood/genre recommendation server (HTTP + MCP tools)."""

__version__ = "0.1.0"
