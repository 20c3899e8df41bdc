import threading

import pytest
import requests
from spotipy.oauth2 import SpotifyOauthError

from spotify_mcp.auth import (
    AccessToken,
    AccessTokenCache,
    RefreshTokenGrant,
    StaticTokenProvider,
    build_token_cache,
)
from spotify_mcp.errors import MissingCredentials
from spotify_mcp.settings import load_service_settings


class _Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class _Refresher:
    def __init__(self, clock, lifetime=3600):
        self.clock = clock
        self.lifetime = lifetime
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return AccessToken(value=f"access-{self.calls}", expires_at=self.clock() + self.lifetime)


class _OAuthStub:
    def __init__(self, response=None, error=None):
        self.response = response or {"access_token": "fresh", "expires_in": 3600}
        self.error = error
        self.refreshed_with = []

    def refresh_access_token(self, refresh_token):
        self.refreshed_with.append(refresh_token)
        if self.error:
            raise self.error
        return self.response


@pytest.mark.unit
def test_static_provider_requires_a_token():
    with pytest.raises(MissingCredentials):
        StaticTokenProvider("")
    provider = StaticTokenProvider("abc")
    assert provider.get_token() == "abc"
    assert provider.invalidate("abc") is False


@pytest.mark.unit
def test_cache_reuses_fresh_token_and_refreshes_after_expiry():
    clock = _Clock()
    refresher = _Refresher(clock, lifetime=60)
    cache = AccessTokenCache(refresher, clock=clock)

    assert cache.get_token() == "access-1"
    clock.now += 30
    assert cache.get_token() == "access-1"
    clock.now += 31
    assert cache.get_token() == "access-2"
    assert refresher.calls == 2


@pytest.mark.unit
def test_invalidate_only_drops_the_rejected_token():
    clock = _Clock()
    refresher = _Refresher(clock)
    cache = AccessTokenCache(refresher, clock=clock)
    cache.get_token()

    assert cache.invalidate("some-older-token") is True
    assert cache.peek().value == "access-1"

    cache.invalidate("access-1")
    assert cache.peek() is None
    assert cache.get_token() == "access-2"


@pytest.mark.unit
def test_refresh_skips_when_another_caller_already_replaced_stale_token():
    clock = _Clock()
    refresher = _Refresher(clock)
    cache = AccessTokenCache(refresher, clock=clock)
    cache.get_token()
    cache.refresh(stale="access-1")
    assert refresher.calls == 2

    # A caller still holding access-1 must not trigger another refresh
    assert cache.refresh(stale="access-1").value == "access-2"
    assert refresher.calls == 2


@pytest.mark.unit
def test_concurrent_readers_always_get_a_token():
    clock = _Clock()
    cache = AccessTokenCache(_Refresher(clock), clock=clock)
    results = []

    def worker():
        results.append(cache.get_token())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == 8
    assert all(token.startswith("access-") for token in results)


@pytest.mark.unit
def test_refresh_grant_subtracts_expiry_margin():
    clock = _Clock(now=0.0)
    oauth = _OAuthStub({"access_token": "fresh", "expires_in": 3600})
    grant = RefreshTokenGrant(oauth, "refresh-me", margin_seconds=300, clock=clock)

    token = grant()

    assert token == AccessToken(value="fresh", expires_at=3300.0)
    assert oauth.refreshed_with == ["refresh-me"]


@pytest.mark.unit
@pytest.mark.parametrize("error", [SpotifyOauthError("invalid_grant"), requests.ConnectionError("down")])
def test_refresh_grant_failures_become_missing_credentials(error):
    grant = RefreshTokenGrant(_OAuthStub(error=error), "refresh-me")
    with pytest.raises(MissingCredentials):
        grant()


@pytest.mark.unit
def test_refresh_grant_without_refresh_token():
    with pytest.raises(MissingCredentials):
        RefreshTokenGrant(_OAuthStub(), "")()


@pytest.mark.unit
def test_build_token_cache_requires_refresh_token_and_app_credentials():
    assert build_token_cache(load_service_settings({"spotify_refresh_token": None})) is None
    assert build_token_cache(load_service_settings({
        "spotify_refresh_token": "rt", "spotify_client_id": None,
    })) is None
    cache = build_token_cache(load_service_settings({
        "spotify_refresh_token": "rt",
        "spotify_client_id": "cid",
        "spotify_client_secret": "csec",
    }))
    assert isinstance(cache, AccessTokenCache)
    assert cache.peek() is None
