from __future__ import annotations

import math
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from catalog_api.core.config import Settings  # noqa: E402
from catalog_api.db import models  # noqa: E402
from catalog_api.db.base import Base  # noqa: E402

FEATURES = ("danceability", "energy", "liveness", "key", "loudness", "speechiness", "acousticness", "valence", "tempo")


def _features(*values):
    return dict(zip(FEATURES, values))


NO_FEATURES = _features(*([None] * len(FEATURES)))

ARTISTS = [
    ("a1", "Aurora Lane"),
    ("a2", "Basement Echo"),
    ("a3", "Cold Harbor"),
    ("a4", "Delta Static"),
    ("a5", "Ghost Artist"),
]

ALBUMS = [
    ("alb1", "Midnight City", "a1"),
    ("alb2", "Paper Walls", "a2"),
    ("alb3", "Iron Lungs", "a3"),
    ("alb4", "Demos", "a3"),
]

# track_id, name, artist, album, year, popularity, explicit, genre, features
TRACKS = [
    ("t1", "Sunrise Drive", "a1", "alb1", 2015, 40, False, "pop", _features(0.80, 0.80, 0.10, 5, -5.0, 0.05, 0.10, 0.80, 120.0)),
    ("t2", "Neon Hearts", "a1", "alb1", 2020, 70, False, "pop", _features(0.82, 0.82, 0.12, 5, -5.0, 0.05, 0.12, 0.85, 122.0)),
    ("t3", "Slow Tide", "a2", "alb2", 2015, 50, False, "pop", _features(0.40, 0.30, 0.10, 2, -12.0, 0.04, 0.80, 0.50, 80.0)),
    ("t4", "Quiet Rooms", "a2", "alb2", 2020, 45, False, "pop", _features(0.35, 0.25, 0.10, 9, -14.0, 0.03, 0.60, 0.20, 70.0)),
    ("t5", "Mosh Engine", "a3", "alb3", 2020, 20, False, "rock", _features(0.80, 0.90, 0.30, 7, -4.0, 0.10, 0.05, 0.50, 150.0)),
    ("t6", "Low Battery", "a3", None, 2015, 25, False, "rock", _features(0.75, 0.85, 0.20, 7, -5.0, 0.08, 0.05, 0.60, 140.0)),
    ("t7", "Untuned", "a1", None, 2020, None, False, "pop", NO_FEATURES),
    ("t8", "Echo 100%", "a2", "alb2", 2018, 10, True, "pop", _features(0.72, 0.75, 0.15, 1, -6.0, 0.06, 0.20, 0.55, 128.0)),
    ("t9", "Demo Take", "a3", "alb4", 2016, None, False, "rock", _features(0.70, 0.80, 0.20, 7, -6.0, 0.08, 0.10, 0.55, 138.0)),
    ("t10", "Blue Hour", "a4", None, 2020, 90, False, "jazz", _features(0.50, 0.50, 0.10, 3, -9.0, 0.04, 0.50, 0.50, 100.0)),
]

PLAYLISTS = [
    ("p1", "Morning Mix", 500, ["t1", "t2", "t3"]),
    ("p2", "Gym Mix", 1000, ["t2", "t5", "t6", "t8"]),
    ("p3", "Empty Mix", 10, []),
]


def _sqrt(value):
    if value is None or value < 0:
        return None
    return math.sqrt(value)


def make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _register_functions(dbapi_connection, connection_record):  # pragma: no cover - sqlite shim
        dbapi_connection.create_function("sqrt", 1, _sqrt)

    return engine


async def seed_catalog(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    maker = async_sessionmaker(engine, expire_on_commit=False)
    async with maker() as session:
        session.add_all(models.Artist(artist_id=artist_id, name=name) for artist_id, name in ARTISTS)
        session.add_all(
            models.Album(album_id=album_id, name=name, artist_id=artist_id) for album_id, name, artist_id in ALBUMS
        )
        tracks = {}
        for track_id, name, artist_id, album_id, year, popularity, explicit, genre, features in TRACKS:
            tracks[track_id] = models.Track(
                track_id=track_id,
                name=name,
                artist_id=artist_id,
                album_id=album_id,
                year=year,
                release_date=f"{year}-01-01",
                popularity=popularity,
                explicit=explicit,
                genre=genre,
                **features,
            )
        session.add_all(tracks.values())
        for playlist_id, name, followers, members in PLAYLISTS:
            session.add(
                models.Playlist(
                    playlist_id=playlist_id,
                    name=name,
                    followers=followers,
                    tracks=[tracks[track_id] for track_id in members],
                )
            )
        await session.commit()


@asynccontextmanager
async def _catalog_client(*, seed: bool = True) -> AsyncIterator["httpx.AsyncClient"]:
    import httpx

    from catalog_api.main import create_app

    engine = make_engine()
    if seed:
        await seed_catalog(engine)
    app = create_app(Settings(log_level="WARNING"), engine=engine)
    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://catalog.test") as client:
            yield client
    finally:
        await engine.dispose()


@asynccontextmanager
async def _catalog_session() -> AsyncIterator:
    engine = make_engine()
    await seed_catalog(engine)
    maker = async_sessionmaker(engine, expire_on_commit=False)
    try:
        async with maker() as session:
            yield session
    finally:
        await engine.dispose()


@pytest.fixture
def catalog_client() -> Callable:
    pytest.importorskip("aiosqlite")
    pytest.importorskip("httpx")
    return _catalog_client


@pytest.fixture
def catalog_session() -> Callable:
    pytest.importorskip("aiosqlite")
    return _catalog_session
