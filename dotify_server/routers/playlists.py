# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Playlist API routes."""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from dotify_server.auth import get_current_user, get_optional_user_id
from dotify_server.database import get_db
from dotify_server.models import User
from dotify_server.api.schemas import (
    CollaboratorChange,
    MessageResponse,
    PlaylistPage,
    PlaylistResponse,
    PlaylistSongsAdd,
)
from dotify_server.services import catalog, integrity, media
from dotify_server.services.media import MediaUploader, get_media_uploader

router = APIRouter(prefix="/playlists", tags=["playlists"])


@router.get("", response_model=PlaylistPage)
async def list_playlists(
    search: str | None = Query(None),
    creator: int | None = Query(None, description="Creator user id"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
) -> PlaylistPage:
    """List public playlists, most followed first."""
    result = await catalog.list_playlists(
        db, search=search, creator_id=creator, page=page, limit=limit
    )
    return PlaylistPage(
        playlists=[PlaylistResponse.model_validate(p) for p in result.items],
        page=result.page,
        pages=result.pages,
        total=result.total,
    )


@router.get("/featured", response_model=list[PlaylistResponse])
async def featured_playlists(
    db: AsyncSession = Depends(get_db),
) -> list[PlaylistResponse]:
    return [PlaylistResponse.model_validate(p) for p in await catalog.featured_playlists(db)]


@router.get("/user/me", response_model=list[PlaylistResponse])
async def my_playlists(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[PlaylistResponse]:
    """Playlists the caller created or collaborates on, public or private."""
    return [PlaylistResponse.model_validate(p) for p in await catalog.user_playlists(db, user.id)]


@router.get("/{playlist_id}", response_model=PlaylistResponse)
async def get_playlist(
    playlist_id: int,
    user_id: int | None = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
) -> PlaylistResponse:
    """Fetch a playlist. Private playlists look missing to anyone but the creator and collaborators."""
    return PlaylistResponse.model_validate(await catalog.get_visible_playlist(db, playlist_id, user_id))


@router.post("", response_model=PlaylistResponse, status_code=status.HTTP_201_CREATED)
async def create_playlist(
    name: str = Form(..., min_length=3, max_length=50),
    description: str | None = Form(None, min_length=10, max_length=200),
    is_public: bool = Form(False),
    cover_image: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    uploader: MediaUploader = Depends(get_media_uploader),
    db: AsyncSession = Depends(get_db),
) -> PlaylistResponse:
    await integrity.ensure_playlist_name_free(db, user.id, name)
    cover_url = await uploader.ingest(cover_image, media.PLAYLISTS)
    playlist = await integrity.create_playlist(
        db,
        creator_id=user.id,
        name=name,
        description=description,
        is_public=is_public,
        cover_image=cover_url,
    )
    return PlaylistResponse.model_validate(playlist)


@router.put("/{playlist_id}", response_model=PlaylistResponse)
async def update_playlist(
    playlist_id: int,
    name: str | None = Form(None, min_length=3, max_length=50),
    description: str | None = Form(None, min_length=10, max_length=200),
    is_public: bool | None = Form(None),
    cover_image: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    uploader: MediaUploader = Depends(get_media_uploader),
    db: AsyncSession = Depends(get_db),
) -> PlaylistResponse:
    """Update playlist details. Creator only."""
    playlist = await integrity.authorize_playlist(db, playlist_id, user.id, allow_collaborators=False)
    if name is not None and name != playlist.name:
        await integrity.ensure_playlist_name_free(db, user.id, name, exclude_id=playlist_id)
    cover_url = await uploader.ingest(cover_image, media.PLAYLISTS)
    playlist = await integrity.update_playlist(
        db,
        playlist_id,
        user.id,
        name=name,
        description=description,
        is_public=is_public,
        cover_image=cover_url,
    )
    return PlaylistResponse.model_validate(playlist)


@router.delete("/{playlist_id}", response_model=MessageResponse)
async def delete_playlist(
    playlist_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a playlist and drop it from every follower's list. Creator only."""
    await integrity.delete_playlist(db, playlist_id, user.id)
    return MessageResponse(message="Playlist removed")


@router.put("/{playlist_id}/add-songs", response_model=PlaylistResponse)
async def add_songs(
    playlist_id: int,
    data: PlaylistSongsAdd,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PlaylistResponse:
    """Append songs to the end of the playlist. Creator or collaborator."""
    playlist = await integrity.add_playlist_songs(db, playlist_id, user.id, data.song_ids)
    return PlaylistResponse.model_validate(playlist)


@router.put("/{playlist_id}/remove-song/{song_id}", response_model=PlaylistResponse)
async def remove_song(
    playlist_id: int,
    song_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PlaylistResponse:
    playlist = await integrity.remove_song_from_playlist(db, playlist_id, user.id, song_id)
    return PlaylistResponse.model_validate(playlist)


@router.put("/{playlist_id}/add-collaborator", response_model=PlaylistResponse)
async def add_collaborator(
    playlist_id: int,
    data: CollaboratorChange,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PlaylistResponse:
    """Let another user edit this playlist's songs. Creator only."""
    playlist = await integrity.add_collaborator(db, playlist_id, user.id, data.user_id)
    return PlaylistResponse.model_validate(playlist)


@router.put("/{playlist_id}/remove-collaborator", response_model=PlaylistResponse)
async def remove_collaborator(
    playlist_id: int,
    data: CollaboratorChange,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PlaylistResponse:
    playlist = await integrity.remove_collaborator(db, playlist_id, user.id, data.user_id)
    return PlaylistResponse.model_validate(playlist)
