from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class HomeResponse(BaseModel):
    name: str
    version: str
    description: str
    endpoints: List[str]


class HealthResponse(BaseModel):
    ok: bool = True


class SongRow(BaseModel):
    track_id: str
    track_name: str
    artist_name: str
    popularity: Optional[int] = None
    year: Optional[int] = None
    playlist_count: int = 0


class AlbumRow(BaseModel):
    album_id: str
    album_name: str
    artist_name: str
    avg_popularity: Optional[float] = None
    track_count: int = 0


class PlaylistRow(BaseModel):
    playlist_id: str
    playlist_name: str
    followers: Optional[int] = None
    song_count: int = 0


class SongSearchRow(BaseModel):
    track_id: str
    track_name: str
    artist_name: str
    year: Optional[int] = None
    popularity: Optional[int] = None
    explicit: bool = False


class AlbumSearchRow(AlbumRow):
    songs: List[str] = []


class SongRecommendation(BaseModel):
    track_id: str
    track_name: str
    artist_name: str
    popularity: Optional[int] = None
    year: Optional[int] = None
    genre: Optional[str] = None
    similarity: Optional[float] = None


class PlaylistRecommendation(BaseModel):
    playlist_id: str
    playlist_name: str
    followers: Optional[int] = None
    similarity: Optional[float] = None


class ArtistRecommendation(BaseModel):
    artist_id: str
    artist_name: str
    track_count: int = 0
    similarity: Optional[float] = None


class UnderratedTrack(BaseModel):
    track_id: str
    track_name: str
    artist_name: str
    popularity: Optional[int] = None
    energy: Optional[float] = None
    danceability: Optional[float] = None


class TopSong(BaseModel):
    track_id: str
    track_name: str
    popularity: Optional[int] = None
    release_date: Optional[str] = None


class PlaylistedSong(BaseModel):
    track_id: str
    track_name: str
    playlist_count: int = 0


class YearPopularity(BaseModel):
    year: Optional[int] = None
    num_tracks: int
    avg_popularity: Optional[float] = None


class FeatureProfile(BaseModel):
    valence: Optional[float] = None
    energy: Optional[float] = None
    acousticness: Optional[float] = None
    danceability: Optional[float] = None


class YearFeatures(FeatureProfile):
    year: Optional[int] = None


class GenreCount(BaseModel):
    genre: Optional[str] = None
    track_count: int


class ArtistStats(BaseModel):
    artist_id: str
    artist_name: str
    avg_popularity: Optional[float] = None
    top_song: Optional[TopSong] = None
    most_playlisted_song: Optional[PlaylistedSong] = None
    popularity_by_year: List[YearPopularity] = []
    features_by_year: List[YearFeatures] = []
    genre_distribution: List[GenreCount] = []
    feature_profile: FeatureProfile
    mood: str


class TrendingArtist(BaseModel):
    artist_id: str
    artist_name: str
    popularity_growth: float
    start_avg: float
    end_avg: float


class MoodPlaylist(BaseModel):
    playlist_id: str
    playlist_name: str
    followers: Optional[int] = None
    song_count: int = 0
    avg_valence: Optional[float] = None
    avg_energy: Optional[float] = None
    avg_acousticness: Optional[float] = None
    avg_danceability: Optional[float] = None
