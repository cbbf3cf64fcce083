from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...schemas.catalog import AlbumSearchRow, PlaylistRow, SongSearchRow
from ...services import catalog
from ..deps import get_db_session

router = APIRouter(prefix="/v1", tags=["search"])


@router.get("/search_songs", response_model=List[SongSearchRow])
async def search_songs(
    track_name: str = "",
    explicit: Optional[bool] = None,
    year: Optional[int] = None,
    sort_by: Optional[str] = Query(None, description="popularity, year or track_name"),
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.search_songs(
        session,
        track_name=track_name,
        explicit=explicit,
        year=year,
        sort_by=sort_by,
        limit=limit,
        offset=offset,
    )


@router.get("/search_albums", response_model=List[AlbumSearchRow])
async def search_albums(
    album_name: str = "",
    sort_by: Optional[str] = Query(None, description="avg_popularity, track_count or album_name"),
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.search_albums(session, album_name=album_name, sort_by=sort_by, limit=limit, offset=offset)


@router.get("/search_playlists", response_model=List[PlaylistRow])
async def search_playlists(
    playlist_name: str = "",
    sort_by: Optional[str] = Query(None, description="followers, song_count or playlist_name"),
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.search_playlists(
        session, playlist_name=playlist_name, sort_by=sort_by, limit=limit, offset=offset
    )
