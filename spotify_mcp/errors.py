"""Exception taxonomy shared by the provider adapter, domain services and interfaces."""

from __future__ import annotations

from typing import Optional


class SpotifyMCPError(Exception):
    """Base class for every error raised on purpose by this package."""


class UpstreamUnavailable(SpotifyMCPError):
    """A provider call failed at the transport level or answered non-2xx."""

    def __init__(self, action: str, status: Optional[int] = None, detail: Optional[str] = None):
        self.action = action
        self.status = status
        self.detail = detail
        message = f"Spotify API call failed during {action}"
        if status is not None:
            message += f" (HTTP {status})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class NotFound(SpotifyMCPError):
    """The requested playlist/track/feature data does not exist upstream."""

    def __init__(self, message: str, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(message)


class InvalidInput(SpotifyMCPError):
    """A required parameter is missing or malformed."""


class MissingCredentials(SpotifyMCPError):
    """No bearer credential could be obtained for the Spotify API."""


class UnknownToolError(SpotifyMCPError):
    """A tool call named a tool that is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


__all__ = [
    "SpotifyMCPError",
    "UpstreamUnavailable",
    "NotFound",
    "InvalidInput",
    "MissingCredentials",
    "UnknownToolError",
]
