# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pydantic schemas for API request/response."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# Users
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserLogin(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    profile_picture: str
    is_admin: bool
    liked_songs: list[int] = Field(default_factory=list, validation_alias="liked_song_ids")
    liked_albums: list[int] = Field(default_factory=list, validation_alias="liked_album_ids")
    followed_artists: list[int] = Field(default_factory=list, validation_alias="followed_artist_ids")
    followed_playlists: list[int] = Field(default_factory=list, validation_alias="followed_playlist_ids")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(Token):
    user: UserResponse


class ToggleResponse(BaseModel):
    """Result of a like/follow toggle: the user's resulting set and the target's counter."""

    status: Literal["added", "removed"]
    ids: list[int]
    count: int


# Catalog
class ArtistResponse(BaseModel):
    id: int
    name: str
    bio: str | None = None
    image: str
    genres: list[str] = Field(default_factory=list)
    followers: int
    albums: list[int] = Field(default_factory=list, validation_alias="album_ids")
    songs: list[int] = Field(default_factory=list, validation_alias="song_ids")
    is_verified: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AlbumResponse(BaseModel):
    id: int
    title: str
    artist_id: int
    release_date: date
    cover_image: str
    genre: str | None = None
    description: str | None = None
    is_explicit: bool
    likes: int
    songs: list[int] = Field(default_factory=list, validation_alias="song_ids")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SongResponse(BaseModel):
    id: int
    title: str
    artist_id: int
    album_id: int | None = None
    duration: float
    audio_url: str
    cover_image: str
    genres: list[str] = Field(default_factory=list)
    plays: int
    likes: int
    is_explicit: bool
    featured_artists: list[int] = Field(default_factory=list, validation_alias="featured_artist_ids")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AlbumSongsAdd(BaseModel):
    song_ids: list[int]


# Playlist
class PlaylistResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    creator_id: int
    cover_image: str | None = None
    is_public: bool
    followers: int
    songs: list[int] = Field(default_factory=list, validation_alias="song_ids")
    collaborators: list[int] = Field(default_factory=list, validation_alias="collaborator_ids")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PlaylistSongsAdd(BaseModel):
    song_ids: list[int]


class CollaboratorChange(BaseModel):
    user_id: int


# Pages
class ArtistPage(BaseModel):
    artists: list[ArtistResponse]
    page: int
    pages: int
    total: int


class AlbumPage(BaseModel):
    albums: list[AlbumResponse]
    page: int
    pages: int
    total: int


class SongPage(BaseModel):
    songs: list[SongResponse]
    page: int
    pages: int
    total: int


class PlaylistPage(BaseModel):
    playlists: list[PlaylistResponse]
    page: int
    pages: int
    total: int


class MessageResponse(BaseModel):
    message: str
