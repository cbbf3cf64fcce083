from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.errors import NotFoundError
from ...schemas.catalog import ArtistStats, TrendingArtist, UnderratedTrack
from ...services import catalog
from ..deps import get_db_session

router = APIRouter(prefix="/v1", tags=["insights"])


@router.get("/underrated_tracks", response_model=List[UnderratedTrack])
async def underrated_tracks(
    popularity_threshold: int = 30,
    min_energy: float = 0.7,
    min_danceability: float = 0.7,
    limit: int = Query(20, ge=1),
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.underrated_tracks(
        session,
        popularity_threshold=popularity_threshold,
        min_energy=min_energy,
        min_danceability=min_danceability,
        limit=limit,
    )


@router.get("/artist_stats", response_model=ArtistStats)
async def artist_stats(
    artist_id: str = Query(..., min_length=1),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    try:
        return await catalog.artist_stats(session, artist_id=artist_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="artist not found") from exc


@router.get("/trending_artists", response_model=List[TrendingArtist])
async def trending_artists(
    start_year: int,
    end_year: int,
    limit: int = Query(10, ge=1),
    session: AsyncSession = Depends(get_db_session),
) -> List[dict]:
    return await catalog.trending_artists(session, start_year=start_year, end_year=end_year, limit=limit)
