from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...schemas.catalog import ArtistRecommendation, MoodPlaylist, PlaylistRecommendation, SongRecommendation
from ...services import catalog
from ..deps import get_db_session

router = APIRouter(prefix="/v1", tags=["recommendations"])


@router.get("/recommend_song_on_song", response_model=List[SongRecommendation])
async def recommend_song_on_song(
    track_id: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.recommend_song_on_song(session, track_id=track_id, limit=limit, offset=offset)


@router.get("/recommend_song_on_artist", response_model=List[SongRecommendation])
async def recommend_song_on_artist(
    artist_id: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.recommend_song_on_artist(session, artist_id=artist_id, limit=limit, offset=offset)


@router.get("/recommend_song_on_playlist", response_model=List[SongRecommendation])
async def recommend_song_on_playlist(
    playlist_id: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.recommend_song_on_playlist(session, playlist_id=playlist_id, limit=limit, offset=offset)


@router.get("/recommend_playlist_on_song", response_model=List[PlaylistRecommendation])
async def recommend_playlist_on_song(
    track_id: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1),
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.recommend_playlist_on_song(session, track_id=track_id, limit=limit)


@router.get("/recommend_artists_by_similarity", response_model=List[ArtistRecommendation])
async def recommend_artists_by_similarity(
    artist_id: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1),
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.recommend_artists_by_similarity(session, artist_id=artist_id, limit=limit)


@router.get("/recommend_playlists_by_mood", response_model=List[MoodPlaylist])
async def recommend_playlists_by_mood(
    mood: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1),
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.recommend_playlists_by_mood(session, mood=mood, limit=limit)
