import os
import sys
from functools import partial

import pytest
from hypothesis import HealthCheck, settings as hypothesis_settings

# Ensure project root is on sys.path so 'app', 'config', and 'spotify_mcp' import correctly
_TESTS_DIR = os.path.dirname(__file__)
_ROOT_DIR = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _ROOT_DIR not in sys.path:
    sys.path.insert(0, _ROOT_DIR)

from tests.support import stubs as test_stubs

# Generated examples share the autouse env fixture
hypothesis_settings.register_profile("spotify-mcp", suppress_health_check=[HealthCheck.function_scoped_fixture])
hypothesis_settings.load_profile("spotify-mcp")


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Ensure a clean env so no real Spotify credentials leak into tests."""
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "test-client-id")
    monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "test-client-secret")
    monkeypatch.delenv("SPOTIFY_REFRESH_TOKEN", raising=False)
    monkeypatch.delenv("MCP_API_KEY", raising=False)
    yield


@pytest.fixture
def spotipy_stub():
    return test_stubs.rock_library()


@pytest.fixture
def provider(spotipy_stub):
    from spotify_mcp.auth import StaticTokenProvider
    from spotify_mcp.providers import SpotifyProvider

    return SpotifyProvider(StaticTokenProvider("test-token"), client_factory=lambda token: spotipy_stub)


@pytest.fixture
def settings_overrides():
    return {
        "spotify_client_id": "test-client-id",
        "spotify_client_secret": "test-client-secret",
        "spotify_refresh_token": None,
        "api_key": None,
        "cors_allowed_origins": ["http://localhost:8080"],
    }


@pytest.fixture
def app(settings_overrides, spotipy_stub):
    import app as app_module
    from spotify_mcp.interfaces.tools import build_services

    application = app_module.create_app(settings_overrides)
    application.config["TESTING"] = True
    # Route every provider built by the API blueprint to the in-process library
    application.extensions["services_factory"] = partial(
        build_services, client_factory=lambda token: spotipy_stub
    )
    yield application


@pytest.fixture
def app_context(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer test-token"}
