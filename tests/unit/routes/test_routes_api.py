import pytest

from tests.support.stubs import http_error


@pytest.mark.unit
def test_requests_without_credentials_get_401(client):
    r = client.get('/api/v1/playlists')
    assert r.status_code == 401
    assert r.get_json() == {"error": "Access token not found"}


@pytest.mark.unit
def test_empty_bearer_token_is_rejected(client):
    r = client.get('/api/v1/playlists', headers={"Authorization": "Bearer "})
    assert r.status_code == 401


@pytest.mark.unit
def test_playlists(client, auth_headers):
    r = client.get('/api/v1/playlists', headers=auth_headers)
    assert r.status_code == 200
    assert r.get_json()["playlists"][0] == {"id": "p1", "name": "Rock Hits"}


@pytest.mark.unit
def test_playlist_tracks_by_name(client, auth_headers):
    r = client.get('/api/v1/playlist/tracks?name=rock%20hits&page=1', headers=auth_headers)
    assert r.status_code == 200
    assert [t["id"] for t in r.get_json()["tracks"]] == ["t1", "t2"]


@pytest.mark.unit
def test_playlist_tracks_requires_name(client, auth_headers):
    assert client.get('/api/v1/playlist/tracks', headers=auth_headers).status_code == 400


@pytest.mark.unit
def test_playlist_tracks_unknown_playlist_is_404(client, auth_headers):
    r = client.get('/api/v1/playlist/tracks?name=Nope', headers=auth_headers)
    assert r.status_code == 404
    assert r.get_json()["reason"] == "playlist_not_found"


@pytest.mark.unit
def test_playlist_tracks_bad_page_is_400(client, auth_headers):
    assert client.get('/api/v1/playlist/tracks?name=Rock%20Hits&page=0', headers=auth_headers).status_code == 400


@pytest.mark.unit
def test_audio_features(client, auth_headers):
    r = client.get('/api/v1/tracks/t2/audio-features', headers=auth_headers)
    assert r.status_code == 200
    body = r.get_json()["audio_features"]
    assert (body["track_id"], body["valence"], body["energy"]) == ("t2", 0.2, 0.2)


@pytest.mark.unit
def test_audio_features_missing_is_404(client, auth_headers):
    assert client.get('/api/v1/tracks/zzz/audio-features', headers=auth_headers).status_code == 404


@pytest.mark.unit
def test_audio_features_upstream_failure_is_502(client, auth_headers, spotipy_stub):
    spotipy_stub.fail("audio_features", http_error(503))
    assert client.get('/api/v1/tracks/t1/audio-features', headers=auth_headers).status_code == 502


@pytest.mark.unit
@pytest.mark.parametrize("mood, expected", [("happy", "t1"), ("sad", "t2"), ("calm", "t2")])
def test_track_recommendation(client, auth_headers, mood, expected):
    r = client.get(f'/api/v1/track-recommendation?genre=rock&mood={mood}', headers=auth_headers)
    assert r.status_code == 200
    track = r.get_json()["track"]
    assert track["id"] == expected
    assert track["artist"] == "Artist"


@pytest.mark.unit
@pytest.mark.parametrize("query", ["genre=rock", "mood=happy", "genre=&mood=happy", ""])
def test_track_recommendation_requires_genre_and_mood(client, auth_headers, query):
    r = client.get(f'/api/v1/track-recommendation?{query}', headers=auth_headers)
    assert r.status_code == 400
    assert r.get_json()["error"] == "Genre and mood parameters are required"


@pytest.mark.unit
def test_track_recommendation_not_found_carries_reason(client, auth_headers):
    r = client.get('/api/v1/track-recommendation?genre=polka&mood=happy', headers=auth_headers)
    assert r.status_code == 404
    body = r.get_json()
    assert body["reason"] == "no_genre_match"
    assert "polka" in body["error"]


@pytest.mark.unit
def test_track_recommendation_empty_library(client, auth_headers, spotipy_stub):
    spotipy_stub.playlists = []
    r = client.get('/api/v1/track-recommendation?genre=rock&mood=happy', headers=auth_headers)
    assert r.status_code == 404
    assert r.get_json()["reason"] == "no_playlists"


@pytest.mark.unit
def test_random_fact(client, auth_headers):
    r = client.get('/api/v1/random-fact', headers=auth_headers)
    assert r.status_code == 200
    assert isinstance(r.get_json()["fact"], str)


@pytest.mark.unit
def test_shared_token_cache_is_used_without_bearer_header(app, client):
    class _Cache:
        def get_token(self):
            return "cached"

        def invalidate(self, token):
            return True

    app.extensions['token_cache'] = _Cache()
    assert client.get('/api/v1/playlists').status_code == 200


@pytest.mark.unit
def test_api_key_gate(settings_overrides, spotipy_stub, auth_headers):
    from functools import partial

    import app as app_module
    from spotify_mcp.interfaces.tools import build_services

    settings_overrides["api_key"] = "s3cret"
    application = app_module.create_app(settings_overrides)
    application.extensions["services_factory"] = partial(build_services, client_factory=lambda token: spotipy_stub)
    client = application.test_client()

    denied = client.get('/api/v1/playlists', headers=auth_headers)
    assert denied.status_code == 401
    assert denied.get_json()["error"] == "invalid_api_key"

    wrong = client.get('/api/v1/playlists', headers={**auth_headers, "X-API-Key": "nope"})
    assert wrong.status_code == 401

    allowed = client.get('/api/v1/playlists', headers={**auth_headers, "X-API-Key": "s3cret"})
    assert allowed.status_code == 200
