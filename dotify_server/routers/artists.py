# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Artist API routes."""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from dotify_server.auth import require_admin
from dotify_server.database import get_db
from dotify_server.errors import BadRequest
from dotify_server.models import User
from dotify_server.api.schemas import ArtistPage, ArtistResponse, MessageResponse, SongResponse
from dotify_server.services import catalog, integrity, media
from dotify_server.services.media import MediaUploader, get_media_uploader

router = APIRouter(prefix="/artists", tags=["artists"])


@router.get("", response_model=ArtistPage)
async def list_artists(
    genre: str | None = Query(None),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
) -> ArtistPage:
    """List artists, least-followed first, with optional genre and text filters."""
    result = await catalog.list_artists(db, genre=genre, search=search, page=page, limit=limit)
    return ArtistPage(
        artists=[ArtistResponse.model_validate(a) for a in result.items],
        page=result.page,
        pages=result.pages,
        total=result.total,
    )


@router.get("/top", response_model=list[ArtistResponse])
async def top_artists(
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
) -> list[ArtistResponse]:
    """Most-followed artists."""
    return [ArtistResponse.model_validate(a) for a in await catalog.top_artists(db, limit)]


@router.get("/{artist_id}", response_model=ArtistResponse)
async def get_artist(
    artist_id: int,
    db: AsyncSession = Depends(get_db),
) -> ArtistResponse:
    return ArtistResponse.model_validate(await catalog.get_artist(db, artist_id))


@router.get("/{artist_id}/top-songs", response_model=list[SongResponse])
async def artist_top_songs(
    artist_id: int,
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
) -> list[SongResponse]:
    """An artist's most played songs."""
    songs = await catalog.artist_top_songs(db, artist_id, limit)
    return [SongResponse.model_validate(s) for s in songs]


@router.post("", response_model=ArtistResponse, status_code=status.HTTP_201_CREATED)
async def create_artist(
    name: str = Form(..., min_length=1, max_length=255),
    bio: str = Form(..., min_length=1),
    genres: list[str] = Form(...),
    image: UploadFile | None = File(None),
    _admin: User = Depends(require_admin),
    uploader: MediaUploader = Depends(get_media_uploader),
    db: AsyncSession = Depends(get_db),
) -> ArtistResponse:
    """Create an artist. Admin only."""
    await integrity.ensure_artist_name_free(db, name)
    image_url = await uploader.ingest(image, media.ARTISTS)
    artist = await integrity.create_artist(db, name=name, bio=bio, genres=genres, image=image_url)
    return ArtistResponse.model_validate(artist)


@router.put("/{artist_id}", response_model=ArtistResponse)
async def update_artist(
    artist_id: int,
    name: str | None = Form(None, min_length=1, max_length=255),
    bio: str | None = Form(None),
    genres: list[str] | None = Form(None),
    clear_genres: bool = Form(False),
    is_verified: bool | None = Form(None),
    image: UploadFile | None = File(None),
    _admin: User = Depends(require_admin),
    uploader: MediaUploader = Depends(get_media_uploader),
    db: AsyncSession = Depends(get_db),
) -> ArtistResponse:
    """Update artist details; ``clear_genres`` removes every genre tag. Admin only."""
    await catalog.get_artist(db, artist_id)
    if clear_genres and genres:
        raise BadRequest("Cannot set and clear genres in one request")
    if name is not None:
        await integrity.ensure_artist_name_free(db, name, exclude_id=artist_id)
    image_url = await uploader.ingest(image, media.ARTISTS)
    artist = await integrity.update_artist(
        db,
        artist_id,
        name=name,
        bio=bio,
        genres=[] if clear_genres else genres,
        image=image_url,
        is_verified=is_verified,
    )
    return ArtistResponse.model_validate(artist)


@router.delete("/{artist_id}", response_model=MessageResponse)
async def delete_artist(
    artist_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete an artist together with its songs and albums. Admin only."""
    removed = await integrity.delete_artist(db, artist_id)
    return MessageResponse(
        message=f"Artist removed with {removed.songs} songs and {removed.albums} albums"
    )
