# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""User API routes: accounts, profile, likes and follows."""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from dotify_server.auth import create_access_token, get_current_user
from dotify_server.database import get_db
from dotify_server.models import User
from dotify_server.api.schemas import (
    LoginResponse,
    ToggleResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from dotify_server.services import accounts, catalog, integrity, media
from dotify_server.services.integrity import Relation
from dotify_server.services.media import MediaUploader, get_media_uploader

router = APIRouter(prefix="/users", tags=["users"])


def _login_response(user: User) -> LoginResponse:
    return LoginResponse(
        access_token=create_access_token({"sub": str(user.id)}),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """Create an account and sign it in."""
    user = await accounts.register_user(db, name=data.name, email=data.email, password=data.password)
    return _login_response(user)


@router.post("/login", response_model=LoginResponse)
async def login(
    data: UserLogin,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    user = await accounts.authenticate(db, data.email, data.password)
    return _login_response(await catalog.get_user(db, user.id))


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    return UserResponse.model_validate(await catalog.get_user(db, user.id))


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    name: str | None = Form(None, min_length=1, max_length=100),
    email: EmailStr | None = Form(None),
    password: str | None = Form(None, min_length=6),
    profile_picture: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    uploader: MediaUploader = Depends(get_media_uploader),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Update the caller's name, email, password or picture."""
    if email is not None:
        await accounts.ensure_email_free(db, email, exclude_id=user.id)
    picture_url = await uploader.ingest(profile_picture, media.USERS)
    updated = await accounts.update_profile(
        db,
        user.id,
        name=name,
        email=email,
        password=password,
        profile_picture=picture_url,
    )
    return UserResponse.model_validate(updated)


async def _toggle(db: AsyncSession, relation: Relation, user: User, member_id: int) -> ToggleResponse:
    result = await integrity.toggle_membership(db, relation, user.id, member_id)
    return ToggleResponse(status=result.status, ids=result.members, count=result.count)


@router.put("/like-song/{song_id}", response_model=ToggleResponse)
async def like_song(
    song_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ToggleResponse:
    """Like the song, or unlike it when already liked."""
    return await _toggle(db, integrity.LIKED_SONGS, user, song_id)


@router.put("/like-album/{album_id}", response_model=ToggleResponse)
async def like_album(
    album_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ToggleResponse:
    return await _toggle(db, integrity.LIKED_ALBUMS, user, album_id)


@router.put("/follow-artist/{artist_id}", response_model=ToggleResponse)
async def follow_artist(
    artist_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ToggleResponse:
    """Follow the artist, or unfollow when already following."""
    return await _toggle(db, integrity.FOLLOWED_ARTISTS, user, artist_id)


@router.put("/follow-playlist/{playlist_id}", response_model=ToggleResponse)
async def follow_playlist(
    playlist_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ToggleResponse:
    return await _toggle(db, integrity.FOLLOWED_PLAYLISTS, user, playlist_id)
