from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, List, Mapping, Optional

import numpy as np
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement, Select

from ..core.errors import InvalidParameterError, NotFoundError
from ..db.models import Album, Artist, Playlist, Track, playlist_track
from .mood import MOOD_FEATURES, MOODS, classify_mood, get_rule
from .paging import Page, SortColumns, resolve_page
from .similarity import (
    FEATURE_KEYS,
    feature_columns,
    feature_vector,
    features_present,
    scaled_columns,
    similarity_expression,
)

logger = logging.getLogger("catalog")

Row = Dict[str, Any]

TRACK_FEATURES = feature_columns(Track)

track_playlist_count = (
    select(func.count())
    .select_from(playlist_track)
    .where(playlist_track.c.track_id == Track.track_id)
    .correlate(Track)
    .scalar_subquery()
    .label("playlist_count")
)
album_avg_popularity = func.round(func.avg(Track.popularity), 2).label("avg_popularity")
album_track_count = func.count(Track.track_id).label("track_count")
playlist_song_count = func.count(playlist_track.c.track_id).label("song_count")

TOP_SONG_SORT = SortColumns(
    {
        "popularity": Track.popularity,
        "playlist_count": track_playlist_count,
        "year": Track.year,
        "track_name": Track.name,
    },
    default="popularity",
    tie_break=(Track.track_id,),
)
SONG_SEARCH_SORT = SortColumns(
    {"popularity": Track.popularity, "year": Track.year, "track_name": Track.name},
    default="popularity",
    tie_break=(Track.track_id,),
)
ALBUM_SORT = SortColumns(
    {"avg_popularity": album_avg_popularity, "track_count": album_track_count, "album_name": Album.name},
    default="avg_popularity",
    tie_break=(Album.album_id,),
)
PLAYLIST_SORT = SortColumns(
    {"followers": Playlist.followers, "song_count": playlist_song_count, "playlist_name": Playlist.name},
    default="followers",
    tie_break=(Playlist.playlist_id,),
)


async def _fetch_all(session: AsyncSession, stmt: Select) -> List[Row]:
    result = await session.execute(stmt)
    return [dict(row) for row in result.mappings().all()]


async def _fetch_one(session: AsyncSession, stmt: Select) -> Optional[Row]:
    result = await session.execute(stmt)
    row = result.mappings().first()
    return dict(row) if row is not None else None


# -- browsing ---------------------------------------------------------------


async def top_songs(
    session: AsyncSession,
    *,
    limit: int = 20,
    page: Optional[int] = None,
    sort_by: Optional[str] = None,
    year: Optional[int] = None,
) -> List[Row]:
    window = resolve_page(limit, page=page)
    stmt = (
        select(
            Track.track_id,
            Track.name.label("track_name"),
            Artist.name.label("artist_name"),
            Track.popularity,
            Track.year,
            track_playlist_count,
        )
        .select_from(Track)
        .join(Artist, Track.artist_id == Artist.artist_id)
        .where(Track.popularity.is_not(None))
    )
    if year is not None:
        stmt = stmt.where(Track.year == year)
    return await _fetch_all(session, TOP_SONG_SORT.apply(stmt, sort_by, window))


def _album_statement() -> Select:
    return (
        select(
            Album.album_id,
            Album.name.label("album_name"),
            Artist.name.label("artist_name"),
            album_avg_popularity,
            album_track_count,
        )
        .select_from(Album)
        .join(Track, Track.album_id == Album.album_id)
        .join(Artist, Album.artist_id == Artist.artist_id)
        .group_by(Album.album_id, Album.name, Artist.name)
        .having(func.count(Track.popularity) > 0)
    )


async def top_albums(
    session: AsyncSession,
    *,
    limit: int = 20,
    page: Optional[int] = None,
    sort_by: Optional[str] = None,
) -> List[Row]:
    window = resolve_page(limit, page=page)
    return await _fetch_all(session, ALBUM_SORT.apply(_album_statement(), sort_by, window))


async def top_playlists(
    session: AsyncSession,
    *,
    limit: int = 20,
    page: Optional[int] = None,
    sort_by: Optional[str] = None,
) -> List[Row]:
    window = resolve_page(limit, page=page)
    stmt = (
        select(Playlist.playlist_id, Playlist.name.label("playlist_name"), Playlist.followers, playlist_song_count)
        .select_from(Playlist)
        .outerjoin(playlist_track, playlist_track.c.playlist_id == Playlist.playlist_id)
        .group_by(Playlist.playlist_id, Playlist.name, Playlist.followers)
    )
    return await _fetch_all(session, PLAYLIST_SORT.apply(stmt, sort_by, window))


# -- search -----------------------------------------------------------------


async def search_songs(
    session: AsyncSession,
    *,
    track_name: Optional[str] = None,
    explicit: Optional[bool] = None,
    year: Optional[int] = None,
    sort_by: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> List[Row]:
    window = resolve_page(limit, offset=offset)
    stmt = (
        select(
            Track.track_id,
            Track.name.label("track_name"),
            Artist.name.label("artist_name"),
            Track.year,
            Track.popularity,
            Track.explicit,
        )
        .select_from(Track)
        .join(Artist, Track.artist_id == Artist.artist_id)
    )
    if track_name:
        stmt = stmt.where(Track.name.icontains(track_name, autoescape=True))
    if explicit is not None:
        stmt = stmt.where(Track.explicit == explicit)
    if year is not None:
        stmt = stmt.where(Track.year == year)
    return await _fetch_all(session, SONG_SEARCH_SORT.apply(stmt, sort_by, window))


async def search_albums(
    session: AsyncSession,
    *,
    album_name: Optional[str] = None,
    sort_by: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> List[Row]:
    window = resolve_page(limit, offset=offset)
    stmt = _album_statement()
    if album_name:
        stmt = stmt.where(Album.name.icontains(album_name, autoescape=True))
    albums = await _fetch_all(session, ALBUM_SORT.apply(stmt, sort_by, window))
    if not albums:
        return albums

    songs: Dict[str, List[str]] = defaultdict(list)
    result = await session.execute(
        select(Track.album_id, Track.name)
        .where(Track.album_id.in_([album["album_id"] for album in albums]))
        .order_by(Track.album_id, Track.name)
    )
    for album_id, name in result.all():
        songs[album_id].append(name)
    for album in albums:
        album["songs"] = songs[album["album_id"]]
    return albums


async def search_playlists(
    session: AsyncSession,
    *,
    playlist_name: Optional[str] = None,
    sort_by: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> List[Row]:
    window = resolve_page(limit, offset=offset)
    stmt = (
        select(Playlist.playlist_id, Playlist.name.label("playlist_name"), Playlist.followers, playlist_song_count)
        .select_from(Playlist)
        .join(playlist_track, playlist_track.c.playlist_id == Playlist.playlist_id)
        .group_by(Playlist.playlist_id, Playlist.name, Playlist.followers)
    )
    if playlist_name:
        stmt = stmt.where(Playlist.name.icontains(playlist_name, autoescape=True))
    return await _fetch_all(session, PLAYLIST_SORT.apply(stmt, sort_by, window))


# -- recommendations --------------------------------------------------------


def _feature_means(*extra: ColumnElement[Any]) -> List[ColumnElement[Any]]:
    return [*extra, *(func.avg(TRACK_FEATURES[key]).label(key) for key in FEATURE_KEYS)]


async def _fetch_vector(session: AsyncSession, stmt: Select) -> Optional[np.ndarray]:
    row = await _fetch_one(session, stmt)
    if row is None:
        return None
    return feature_vector(row)


async def _track_vector(session: AsyncSession, track_id: str) -> Optional[np.ndarray]:
    return await _fetch_vector(session, select(*TRACK_FEATURES.values()).where(Track.track_id == track_id))


async def _dominant_genre(session: AsyncSession, stmt: Select) -> Optional[str]:
    stmt = (
        stmt.where(Track.genre.is_not(None))
        .group_by(Track.genre)
        .order_by(func.count().desc(), Track.genre)
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def _rank_tracks(
    session: AsyncSession,
    seed: np.ndarray,
    criteria: List[ColumnElement[bool]],
    window: Page,
) -> List[Row]:
    similarity = similarity_expression(scaled_columns(TRACK_FEATURES), seed).label("similarity")
    stmt = (
        select(
            Track.track_id,
            Track.name.label("track_name"),
            Artist.name.label("artist_name"),
            Track.popularity,
            Track.year,
            Track.genre,
            similarity,
        )
        .select_from(Track)
        .join(Artist, Track.artist_id == Artist.artist_id)
        .where(features_present(TRACK_FEATURES), *criteria)
        .order_by(similarity.desc().nulls_last(), Track.track_id)
        .limit(window.limit)
        .offset(window.offset)
    )
    return await _fetch_all(session, stmt)


async def recommend_song_on_song(
    session: AsyncSession,
    *,
    track_id: str,
    limit: int = 20,
    offset: int = 0,
) -> List[Row]:
    window = resolve_page(limit, offset=offset)
    seed = await _track_vector(session, track_id)
    if seed is None:
        logger.info("no feature vector for seed track", extra={"track_id": track_id})
        return []
    return await _rank_tracks(session, seed, [Track.track_id != track_id], window)


async def recommend_song_on_artist(
    session: AsyncSession,
    *,
    artist_id: str,
    limit: int = 20,
    offset: int = 0,
) -> List[Row]:
    window = resolve_page(limit, offset=offset)
    seed = await _fetch_vector(session, select(*_feature_means()).where(Track.artist_id == artist_id))
    genre = await _dominant_genre(session, select(Track.genre).where(Track.artist_id == artist_id))
    if seed is None or genre is None:
        logger.info("no feature profile for artist", extra={"artist_id": artist_id})
        return []
    return await _rank_tracks(session, seed, [Track.genre == genre, Track.artist_id != artist_id], window)


async def recommend_song_on_playlist(
    session: AsyncSession,
    *,
    playlist_id: str,
    limit: int = 20,
    offset: int = 0,
) -> List[Row]:
    window = resolve_page(limit, offset=offset)
    members = select(playlist_track.c.track_id).where(playlist_track.c.playlist_id == playlist_id)
    seed = await _fetch_vector(session, select(*_feature_means()).where(Track.track_id.in_(members)))
    genre = await _dominant_genre(session, select(Track.genre).where(Track.track_id.in_(members)))
    if seed is None or genre is None:
        logger.info("no feature profile for playlist", extra={"playlist_id": playlist_id})
        return []
    return await _rank_tracks(session, seed, [Track.genre == genre, Track.track_id.not_in(members)], window)


async def recommend_playlist_on_song(session: AsyncSession, *, track_id: str, limit: int = 10) -> List[Row]:
    window = resolve_page(limit)
    seed = await _track_vector(session, track_id)
    if seed is None:
        return []

    means = (
        select(*_feature_means(playlist_track.c.playlist_id))
        .select_from(playlist_track)
        .join(Track, Track.track_id == playlist_track.c.track_id)
        .group_by(playlist_track.c.playlist_id)
        .subquery("playlist_means")
    )
    mean_columns = feature_columns(means)
    similarity = similarity_expression(scaled_columns(mean_columns), seed).label("similarity")
    containing = select(playlist_track.c.playlist_id).where(playlist_track.c.track_id == track_id)
    stmt = (
        select(Playlist.playlist_id, Playlist.name.label("playlist_name"), Playlist.followers, similarity)
        .select_from(Playlist)
        .join(means, means.c.playlist_id == Playlist.playlist_id)
        .where(Playlist.playlist_id.not_in(containing), features_present(mean_columns))
        .order_by(similarity.desc().nulls_last(), Playlist.playlist_id)
        .limit(window.limit)
    )
    return await _fetch_all(session, stmt)


async def recommend_artists_by_similarity(session: AsyncSession, *, artist_id: str, limit: int = 10) -> List[Row]:
    window = resolve_page(limit)
    seed = await _fetch_vector(session, select(*_feature_means()).where(Track.artist_id == artist_id))
    if seed is None:
        return []

    means = (
        select(*_feature_means(Track.artist_id, func.count(Track.track_id).label("track_count")))
        .group_by(Track.artist_id)
        .subquery("artist_means")
    )
    mean_columns = feature_columns(means)
    similarity = similarity_expression(scaled_columns(mean_columns), seed).label("similarity")
    stmt = (
        select(Artist.artist_id, Artist.name.label("artist_name"), means.c.track_count, similarity)
        .select_from(Artist)
        .join(means, means.c.artist_id == Artist.artist_id)
        .where(Artist.artist_id != artist_id, features_present(mean_columns))
        .order_by(similarity.desc().nulls_last(), Artist.artist_id)
        .limit(window.limit)
    )
    return await _fetch_all(session, stmt)


async def recommend_playlists_by_mood(session: AsyncSession, *, mood: str, limit: int = 10) -> List[Row]:
    rule = get_rule(mood)
    if rule is None:
        raise InvalidParameterError(f"mood must be one of: {', '.join(MOODS)}")
    window = resolve_page(limit)

    means = (
        select(
            playlist_track.c.playlist_id,
            func.count(Track.track_id).label("song_count"),
            *(func.avg(TRACK_FEATURES[key]).label(key) for key in MOOD_FEATURES),
        )
        .select_from(playlist_track)
        .join(Track, Track.track_id == playlist_track.c.track_id)
        .group_by(playlist_track.c.playlist_id)
        .subquery("playlist_moods")
    )
    mood_columns = {key: means.c[key] for key in MOOD_FEATURES}
    stmt = (
        select(
            Playlist.playlist_id,
            Playlist.name.label("playlist_name"),
            Playlist.followers,
            means.c.song_count,
            *(column.label(f"avg_{key}") for key, column in mood_columns.items()),
        )
        .select_from(Playlist)
        .join(means, means.c.playlist_id == Playlist.playlist_id)
        .where(rule.clause(mood_columns))
        .order_by(Playlist.followers.desc().nulls_last(), Playlist.playlist_id)
        .limit(window.limit)
    )
    return await _fetch_all(session, stmt)


# -- insights ---------------------------------------------------------------


async def underrated_tracks(
    session: AsyncSession,
    *,
    popularity_threshold: int = 30,
    min_energy: float = 0.7,
    min_danceability: float = 0.7,
    limit: int = 20,
) -> List[Row]:
    window = resolve_page(limit)
    stmt = (
        select(
            Track.track_id,
            Track.name.label("track_name"),
            Artist.name.label("artist_name"),
            Track.popularity,
            Track.energy,
            Track.danceability,
        )
        .select_from(Track)
        .join(Artist, Track.artist_id == Artist.artist_id)
        .where(
            Track.popularity <= popularity_threshold,
            Track.energy >= min_energy,
            Track.danceability >= min_danceability,
        )
        .order_by(Track.popularity.asc(), Track.track_id)
        .limit(window.limit)
    )
    return await _fetch_all(session, stmt)


def _as_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def feature_profile(row: Mapping[str, Any]) -> Dict[str, Optional[float]]:
    return {key: _as_float(row.get(key)) for key in MOOD_FEATURES}


async def artist_stats(session: AsyncSession, *, artist_id: str) -> Row:
    """Aggregate profile of one artist.

    Runs a short fixed sequence of statements: name lookup, overall average
    popularity, top song by popularity, top song by playlist inclusion, per-year
    popularity and feature breakdowns, genre distribution and the career feature
    profile used for the mood label.
    """
    name = (await session.execute(select(Artist.name).where(Artist.artist_id == artist_id))).scalar_one_or_none()
    if name is None:
        raise NotFoundError(f"artist {artist_id} not found")

    by_artist = Track.artist_id == artist_id
    avg_popularity = (await session.execute(select(func.avg(Track.popularity)).where(by_artist))).scalar_one_or_none()

    top_song = await _fetch_one(
        session,
        select(Track.track_id, Track.name.label("track_name"), Track.popularity, Track.release_date)
        .where(by_artist)
        .order_by(Track.popularity.desc().nulls_last(), Track.track_id)
        .limit(1),
    )
    inclusion = func.count(playlist_track.c.playlist_id)
    most_playlisted = await _fetch_one(
        session,
        select(Track.track_id, Track.name.label("track_name"), inclusion.label("playlist_count"))
        .select_from(Track)
        .join(playlist_track, playlist_track.c.track_id == Track.track_id)
        .where(by_artist)
        .group_by(Track.track_id, Track.name)
        .order_by(inclusion.desc(), Track.track_id)
        .limit(1),
    )
    popularity_by_year = await _fetch_all(
        session,
        select(Track.year, func.count().label("num_tracks"), func.avg(Track.popularity).label("avg_popularity"))
        .where(by_artist)
        .group_by(Track.year)
        .order_by(Track.year),
    )
    mood_means = [func.avg(TRACK_FEATURES[key]).label(key) for key in MOOD_FEATURES]
    features_by_year = await _fetch_all(
        session,
        select(Track.year, *mood_means).where(by_artist).group_by(Track.year).order_by(Track.year),
    )
    genre_distribution = await _fetch_all(
        session,
        select(Track.genre, func.count().label("track_count"))
        .where(by_artist)
        .group_by(Track.genre)
        .order_by(func.count().desc(), Track.genre),
    )
    profile = feature_profile(await _fetch_one(session, select(*mood_means).where(by_artist)) or {})

    return {
        "artist_id": artist_id,
        "artist_name": name,
        "avg_popularity": _as_float(avg_popularity),
        "top_song": top_song,
        "most_playlisted_song": most_playlisted,
        "popularity_by_year": popularity_by_year,
        "features_by_year": features_by_year,
        "genre_distribution": genre_distribution,
        "feature_profile": profile,
        "mood": classify_mood(profile),
    }


async def trending_artists(
    session: AsyncSession,
    *,
    start_year: int,
    end_year: int,
    limit: int = 10,
) -> List[Row]:
    window = resolve_page(limit)
    start = (
        select(Track.artist_id, func.avg(Track.popularity).label("start_avg"))
        .where(Track.year == start_year, Track.popularity.is_not(None))
        .group_by(Track.artist_id)
        .cte("artist_start")
    )
    end = (
        select(Track.artist_id, func.avg(Track.popularity).label("end_avg"))
        .where(Track.year == end_year, Track.popularity.is_not(None))
        .group_by(Track.artist_id)
        .cte("artist_end")
    )
    growth = (end.c.end_avg - start.c.start_avg).label("popularity_growth")
    stmt = (
        select(Artist.artist_id, Artist.name.label("artist_name"), growth, start.c.start_avg, end.c.end_avg)
        .select_from(start)
        .join(end, end.c.artist_id == start.c.artist_id)
        .join(Artist, Artist.artist_id == start.c.artist_id)
        .order_by(growth.desc(), Artist.artist_id)
        .limit(window.limit)
    )
    return await _fetch_all(session, stmt)
