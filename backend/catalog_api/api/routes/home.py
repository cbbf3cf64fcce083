from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ...core.config import Settings
from ...schemas.catalog import HomeResponse
from ..deps import get_settings_dep

router = APIRouter(tags=["home"])

ENDPOINTS = (
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
)


@router.get("/", response_model=HomeResponse)
async def home(request: Request, settings: Settings = Depends(get_settings_dep)) -> HomeResponse:
    return HomeResponse(
        name=settings.app_name,
        version=request.app.version,
        description="Read-only browsing, search and recommendation API over a music catalog.",
        endpoints=list(ENDPOINTS),
    )
