from __future__ import annotations

import asyncio
from typing import Any, Dict, Tuple

import pytest

pytest.importorskip("aiosqlite")
pytest.importorskip("httpx")


def _get(catalog_client, path: str, params: Dict[str, Any] | None = None, *, seed: bool = True) -> Tuple[int, Any]:
    async def scenario():
        async with catalog_client(seed=seed) as client:
            response = await client.get(path, params=params)
        return response.status_code, response.json()

    return asyncio.run(scenario())


def test_home_lists_endpoints(catalog_client) -> None:
    status, body = _get(catalog_client, "/")
    assert status == 200
    assert body["version"] == "0.1.0"
    assert body["endpoints"] == [
        "/v1/top_songs",
        "/v1/top_albums",
        "/v1/top_playlists",
        "/v1/search_songs",
        "/v1/search_albums",
        "/v1/search_playlists",
        "/v1/recommend_song_on_song",
        "/v1/recommend_song_on_artist",
        "/v1/recommend_song_on_playlist",
        "/v1/recommend_playlist_on_song",
        "/v1/recommend_artists_by_similarity",
        "/v1/recommend_playlists_by_mood",
        "/v1/underrated_tracks",
        "/v1/artist_stats",
        "/v1/trending_artists",
    ]


def test_health(catalog_client) -> None:
    assert _get(catalog_client, "/v1/health") == (200, {"ok": True})


def test_top_songs_for_year(catalog_client) -> None:
    status, body = _get(catalog_client, "/v1/top_songs", {"year": 2020})
    assert status == 200
    assert [row["track_name"] for row in body] == ["Blue Hour", "Neon Hearts", "Quiet Rooms", "Mosh Engine"]
    assert {row["year"] for row in body} == {2020}
    assert set(body[0]) == {"track_id", "track_name", "artist_name", "popularity", "year", "playlist_count"}


def test_top_songs_limit_caps_rows(catalog_client) -> None:
    status, body = _get(catalog_client, "/v1/top_songs", {"limit": 2, "page": 2})
    assert status == 200
    assert [row["track_id"] for row in body] == ["t3", "t4"]


@pytest.mark.parametrize(
    "path",
    ["/v1/top_songs", "/v1/top_albums", "/v1/top_playlists", "/v1/search_songs", "/v1/search_albums", "/v1/search_playlists"],
)
def test_unknown_sort_column_is_rejected(catalog_client, path) -> None:
    status, body = _get(catalog_client, path, {"sort_by": "1; DROP TABLE tracks"})
    assert status == 400
    assert body["detail"].startswith("sort_by must be one of:")


@pytest.mark.parametrize("params", [{"limit": 0}, {"limit": "ten"}, {"page": 0}])
def test_invalid_window_is_rejected(catalog_client, params) -> None:
    status, body = _get(catalog_client, "/v1/top_albums", params)
    assert status == 400
    assert "detail" in body


def test_search_albums_payload(catalog_client) -> None:
    status, body = _get(catalog_client, "/v1/search_albums", {"album_name": "MIDNIGHT"})
    assert status == 200
    assert body == [
        {
            "album_id": "alb1",
            "album_name": "Midnight City",
            "artist_name": "Aurora Lane",
            "avg_popularity": 55.0,
            "track_count": 2,
            "songs": ["Neon Hearts", "Sunrise Drive"],
        }
    ]


def test_search_songs_explicit_flag(catalog_client) -> None:
    status, body = _get(catalog_client, "/v1/search_songs", {"explicit": "true"})
    assert status == 200
    assert [row["track_id"] for row in body] == ["t8"]
    assert body[0]["explicit"] is True


@pytest.mark.parametrize(
    "path",
    [
        "/v1/recommend_song_on_song",
        "/v1/recommend_song_on_artist",
        "/v1/recommend_song_on_playlist",
        "/v1/recommend_playlist_on_song",
        "/v1/recommend_artists_by_similarity",
        "/v1/recommend_playlists_by_mood",
        "/v1/artist_stats",
        "/v1/trending_artists",
    ],
)
def test_missing_required_parameter(catalog_client, path) -> None:
    status, body = _get(catalog_client, path)
    assert status == 400
    assert "Field required" in body["detail"]


@pytest.mark.parametrize(
    ("path", "name"),
    [
        ("/v1/recommend_song_on_song", "track_id"),
        ("/v1/recommend_song_on_artist", "artist_id"),
        ("/v1/recommend_song_on_playlist", "playlist_id"),
        ("/v1/recommend_playlist_on_song", "track_id"),
        ("/v1/recommend_artists_by_similarity", "artist_id"),
        ("/v1/recommend_playlists_by_mood", "mood"),
        ("/v1/artist_stats", "artist_id"),
    ],
)
def test_empty_identifier_is_rejected(catalog_client, path, name) -> None:
    status, body = _get(catalog_client, path, {name: ""})
    assert status == 400
    assert body["detail"].startswith(f"{name}:")


def test_trending_requires_both_years(catalog_client) -> None:
    status, body = _get(catalog_client, "/v1/trending_artists", {"start_year": 2015})
    assert status == 400
    assert "end_year" in body["detail"]


def test_recommend_song_on_song_never_returns_seed(catalog_client) -> None:
    status, body = _get(catalog_client, "/v1/recommend_song_on_song", {"track_id": "t2", "limit": 4})
    assert status == 200
    assert len(body) == 4
    assert all(row["track_id"] != "t2" for row in body)
    assert body[0]["track_id"] == "t1"


def test_recommend_unknown_playlist_is_empty(catalog_client) -> None:
    assert _get(catalog_client, "/v1/recommend_song_on_playlist", {"playlist_id": "missing"}) == (200, [])


def test_recommend_artists(catalog_client) -> None:
    status, body = _get(catalog_client, "/v1/recommend_artists_by_similarity", {"artist_id": "a2", "limit": 2})
    assert status == 200
    assert len(body) == 2
    assert all(row["artist_id"] != "a2" for row in body)


def test_playlists_by_invalid_mood(catalog_client) -> None:
    status, body = _get(catalog_client, "/v1/recommend_playlists_by_mood", {"mood": "invalid"})
    assert status == 400
    for mood in ("happy", "sad", "chill", "hype"):
        assert mood in body["detail"]


def test_playlists_by_mood(catalog_client) -> None:
    status, body = _get(catalog_client, "/v1/recommend_playlists_by_mood", {"mood": "hype"})
    assert status == 200
    assert [row["playlist_name"] for row in body] == ["Gym Mix"]
    assert body[0]["song_count"] == 4


def test_underrated_tracks(catalog_client) -> None:
    status, body = _get(catalog_client, "/v1/underrated_tracks", {"min_energy": 0.8})
    assert status == 200
    assert [row["track_id"] for row in body] == ["t5", "t6"]


def test_artist_stats(catalog_client) -> None:
    status, body = _get(catalog_client, "/v1/artist_stats", {"artist_id": "a3"})
    assert status == 200
    assert body["artist_name"] == "Cold Harbor"
    assert body["top_song"]["track_name"] == "Low Battery"
    assert body["mood"] == "hype"
    assert [row["genre"] for row in body["genre_distribution"]] == ["rock"]


def test_artist_stats_unknown_artist(catalog_client) -> None:
    assert _get(catalog_client, "/v1/artist_stats", {"artist_id": "nobody"}) == (404, {"detail": "artist not found"})


def test_trending_artists(catalog_client) -> None:
    status, body = _get(
        catalog_client, "/v1/trending_artists", {"start_year": 2015, "end_year": 2020, "limit": 5}
    )
    assert status == 200
    assert len(body) <= 5
    assert [row["artist_name"] for row in body] == ["Aurora Lane", "Basement Echo", "Cold Harbor"]
    assert all(row["popularity_growth"] == row["end_avg"] - row["start_avg"] for row in body)


def test_database_failure_is_500(catalog_client) -> None:
    # no tables in the unseeded database
    assert _get(catalog_client, "/v1/top_songs", seed=False) == (500, {"detail": "database query failed"})
