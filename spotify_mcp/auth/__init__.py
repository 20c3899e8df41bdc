"""Spotify credential handling."""

from .tokens import (
    AccessToken,
    AccessTokenCache,
    RefreshTokenGrant,
    StaticTokenProvider,
    build_oauth,
    build_token_cache,
)

__all__ = [
    "AccessToken",
    "AccessTokenCache",
    "RefreshTokenGrant",
    "StaticTokenProvider",
    "build_oauth",
    "build_token_cache",
]
