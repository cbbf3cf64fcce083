from __future__ import annotations

from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


playlist_track = Table(
    "playlist_track",
    Base.metadata,
    Column("playlist_id", String(64), ForeignKey("playlists.playlist_id", ondelete="CASCADE"), primary_key=True),
    Column("track_id", String(64), ForeignKey("tracks.track_id", ondelete="CASCADE"), primary_key=True),
)


class Artist(Base):
    __tablename__ = "artists"

    artist_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    tracks: Mapped[list["Track"]] = relationship(back_populates="artist")
    albums: Mapped[list["Album"]] = relationship(back_populates="artist")


class Album(Base):
    __tablename__ = "albums"

    album_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    artist_id: Mapped[str] = mapped_column(String(64), ForeignKey("artists.artist_id"), nullable=False)

    artist: Mapped[Artist] = relationship(back_populates="albums")
    tracks: Mapped[list["Track"]] = relationship(back_populates="album")


class Track(Base):
    __tablename__ = "tracks"

    track_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    artist_id: Mapped[str] = mapped_column(String(64), ForeignKey("artists.artist_id"), nullable=False, index=True)
    album_id: Mapped[str | None] = mapped_column(String(64), ForeignKey("albums.album_id"), index=True)
    year: Mapped[int | None] = mapped_column(Integer, index=True)
    release_date: Mapped[str | None] = mapped_column(String(32))
    popularity: Mapped[int | None] = mapped_column(Integer)
    explicit: Mapped[bool] = mapped_column(Boolean, default=False)
    genre: Mapped[str | None] = mapped_column(Text, index=True)

    danceability: Mapped[float | None] = mapped_column(Float)
    energy: Mapped[float | None] = mapped_column(Float)
    liveness: Mapped[float | None] = mapped_column(Float)
    key: Mapped[int | None] = mapped_column(Integer)
    loudness: Mapped[float | None] = mapped_column(Float)
    speechiness: Mapped[float | None] = mapped_column(Float)
    acousticness: Mapped[float | None] = mapped_column(Float)
    valence: Mapped[float | None] = mapped_column(Float)
    tempo: Mapped[float | None] = mapped_column(Float)

    artist: Mapped[Artist] = relationship(back_populates="tracks")
    album: Mapped[Album | None] = relationship(back_populates="tracks")
    playlists: Mapped[list["Playlist"]] = relationship(back_populates="tracks", secondary=playlist_track)


class Playlist(Base):
    __tablename__ = "playlists"

    playlist_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    followers: Mapped[int | None] = mapped_column(Integer)

    tracks: Mapped[list[Track]] = relationship(back_populates="playlists", secondary=playlist_track)
