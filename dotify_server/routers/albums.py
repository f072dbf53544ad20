# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Album API routes."""

from datetime import date

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from dotify_server.auth import require_admin
from dotify_server.database import get_db
from dotify_server.models import User
from dotify_server.api.schemas import AlbumPage, AlbumResponse, AlbumSongsAdd, MessageResponse
from dotify_server.services import catalog, integrity, media
from dotify_server.services.media import MediaUploader, get_media_uploader

router = APIRouter(prefix="/albums", tags=["albums"])


@router.get("", response_model=AlbumPage)
async def list_albums(
    genre: str | None = Query(None),
    artist: int | None = Query(None, description="Owning artist id"),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
) -> AlbumPage:
    """List albums, newest release first."""
    result = await catalog.list_albums(
        db, genre=genre, artist_id=artist, search=search, page=page, limit=limit
    )
    return AlbumPage(
        albums=[AlbumResponse.model_validate(a) for a in result.items],
        page=result.page,
        pages=result.pages,
        total=result.total,
    )


@router.get("/new-releases", response_model=list[AlbumResponse])
async def new_releases(
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
) -> list[AlbumResponse]:
    return [AlbumResponse.model_validate(a) for a in await catalog.new_release_albums(db, limit)]


@router.get("/{album_id}", response_model=AlbumResponse)
async def get_album(
    album_id: int,
    db: AsyncSession = Depends(get_db),
) -> AlbumResponse:
    return AlbumResponse.model_validate(await catalog.get_album(db, album_id))


@router.post("", response_model=AlbumResponse, status_code=status.HTTP_201_CREATED)
async def create_album(
    title: str = Form(..., min_length=3, max_length=100),
    artist_id: int = Form(...),
    release_date: date | None = Form(None),
    genre: str = Form(..., min_length=1),
    description: str = Form(..., min_length=10, max_length=200),
    is_explicit: bool = Form(False),
    cover_image: UploadFile | None = File(None),
    _admin: User = Depends(require_admin),
    uploader: MediaUploader = Depends(get_media_uploader),
    db: AsyncSession = Depends(get_db),
) -> AlbumResponse:
    """Create an album for an existing artist. Admin only."""
    await integrity.check_album_refs(db, artist_id=artist_id, title=title)
    cover_url = await uploader.ingest(cover_image, media.ALBUMS)
    album = await integrity.create_album(
        db,
        title=title,
        artist_id=artist_id,
        release_date=release_date,
        genre=genre,
        description=description,
        is_explicit=is_explicit,
        cover_image=cover_url,
    )
    return AlbumResponse.model_validate(album)


@router.put("/{album_id}", response_model=AlbumResponse)
async def update_album(
    album_id: int,
    title: str | None = Form(None, min_length=3, max_length=100),
    release_date: date | None = Form(None),
    genre: str | None = Form(None),
    description: str | None = Form(None, min_length=10, max_length=200),
    is_explicit: bool | None = Form(None),
    cover_image: UploadFile | None = File(None),
    _admin: User = Depends(require_admin),
    uploader: MediaUploader = Depends(get_media_uploader),
    db: AsyncSession = Depends(get_db),
) -> AlbumResponse:
    """Update album details. Admin only."""
    await catalog.get_album(db, album_id)
    if title is not None:
        await integrity.ensure_album_title_free(db, title, exclude_id=album_id)
    cover_url = await uploader.ingest(cover_image, media.ALBUMS)
    album = await integrity.update_album(
        db,
        album_id,
        title=title,
        release_date=release_date,
        genre=genre,
        description=description,
        is_explicit=is_explicit,
        cover_image=cover_url,
    )
    return AlbumResponse.model_validate(album)


@router.delete("/{album_id}", response_model=MessageResponse)
async def delete_album(
    album_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete an album; its songs stay without an album. Admin only."""
    await integrity.delete_album(db, album_id)
    return MessageResponse(message="Album removed")


@router.put("/{album_id}/add-songs", response_model=AlbumResponse)
async def add_songs_to_album(
    album_id: int,
    data: AlbumSongsAdd,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AlbumResponse:
    """File existing songs under this album. Admin only."""
    album = await integrity.add_album_songs(db, album_id, data.song_ids)
    return AlbumResponse.model_validate(album)


@router.delete("/{album_id}/remove-songs/{song_id}", response_model=AlbumResponse)
async def remove_song_from_album(
    album_id: int,
    song_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AlbumResponse:
    """Take a song off this album without deleting it. Admin only."""
    album = await integrity.remove_album_song(db, album_id, song_id)
    return AlbumResponse.model_validate(album)
