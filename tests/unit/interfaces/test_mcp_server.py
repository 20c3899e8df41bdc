import pytest

from spotify_mcp.auth import StaticTokenProvider
from spotify_mcp.interfaces import mcp_server
from spotify_mcp.interfaces.tools import ToolDispatcher, build_services
from spotify_mcp.settings import load_service_settings


@pytest.fixture
def stubbed_dispatcher(monkeypatch, spotipy_stub):
    services = build_services(
        StaticTokenProvider("tok"), load_service_settings(), client_factory=lambda token: spotipy_stub
    )
    monkeypatch.setattr(mcp_server, "_dispatcher", lambda: ToolDispatcher(services))


@pytest.mark.unit
def test_mcp_tools_delegate_to_dispatcher(stubbed_dispatcher):
    assert mcp_server.track_recommendation("rock", "happy")["track"]["id"] == "t1"
    assert mcp_server.get_tracks_in_playlist("Rock Hits", page=1)["tracks"][1]["id"] == "t2"


@pytest.mark.unit
def test_mcp_tool_errors_are_returned_not_raised(stubbed_dispatcher):
    assert "error" in mcp_server.get_track_audio_features("missing")


@pytest.mark.unit
def test_mcp_without_refresh_token_reports_missing_credentials(monkeypatch):
    monkeypatch.setattr(mcp_server, "_settings", load_service_settings({"spotify_refresh_token": None}))
    monkeypatch.setattr(mcp_server, "_token_cache", None)
    result = mcp_server.get_user_playlists()
    assert "SPOTIFY_REFRESH_TOKEN" in result["error"]
