from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...schemas.catalog import AlbumRow, PlaylistRow, SongRow
from ...services import catalog
from ..deps import get_db_session

router = APIRouter(prefix="/v1", tags=["browse"])


@router.get("/top_songs", response_model=List[SongRow])
async def top_songs(
    limit: int = Query(20, ge=1),
    page: int = Query(1, ge=1),
    sort_by: Optional[str] = Query(None, description="popularity, playlist_count, year or track_name"),
    year: Optional[int] = None,
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.top_songs(session, limit=limit, page=page, sort_by=sort_by, year=year)


@router.get("/top_albums", response_model=List[AlbumRow])
async def top_albums(
    limit: int = Query(20, ge=1),
    page: int = Query(1, ge=1),
    sort_by: Optional[str] = Query(None, description="avg_popularity, track_count or album_name"),
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.top_albums(session, limit=limit, page=page, sort_by=sort_by)


@router.get("/top_playlists", response_model=List[PlaylistRow])
async def top_playlists(
    limit: int = Query(20, ge=1),
    page: int = Query(1, ge=1),
    sort_by: Optional[str] = Query(None, description="followers, song_count or playlist_name"),
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.top_playlists(session, limit=limit, page=page, sort_by=sort_by)
