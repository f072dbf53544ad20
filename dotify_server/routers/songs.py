# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Song API routes."""

import logging
from dataclasses import dataclass

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from dotify_server.auth import require_admin
from dotify_server.database import get_db
from dotify_server.errors import BadRequest, UploadFailed
from dotify_server.models import User
from dotify_server.api.schemas import MessageResponse, SongPage, SongResponse
from dotify_server.services import catalog, integrity, media
from dotify_server.services.media import MediaUploader, get_media_uploader

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/songs", tags=["songs"])


@dataclass
class SongMedia:
    audio_url: str | None
    cover_url: str | None
    duration: float | None


async def _ingest_media(
    uploader: MediaUploader,
    audio: UploadFile | None,
    cover: UploadFile | None,
    duration: float | None,
) -> SongMedia:
    """Stage both files and settle the duration before anything is sent to the media host.

    The duration comes from the audio headers when they are readable, else from the form.
    """
    audio_path = cover_path = None
    try:
        if media.has_file(audio):
            audio_path = await media.save_upload(audio)
        if media.has_file(cover):
            cover_path = await media.save_upload(cover)
        if audio_path is not None:
            measured = await media.read_duration(audio_path)
            if measured is None and duration is None:
                raise BadRequest("Could not read the audio duration; send it explicitly")
            if measured is not None:
                duration = measured

        audio_url = None
        if audio_path is not None:
            audio_url = await uploader.upload(audio_path, media.media_folder(media.SONGS))
        cover_url = None
        if cover_path is not None:
            try:
                cover_url = await uploader.upload(cover_path, media.media_folder(media.COVERS))
            except UploadFailed:
                if audio_url:
                    logger.warning("Cover upload failed; audio left unreferenced at %s", audio_url)
                raise
        return SongMedia(audio_url=audio_url, cover_url=cover_url, duration=duration)
    finally:
        for path in (audio_path, cover_path):
            if path is not None:
                path.unlink(missing_ok=True)


@router.get("", response_model=SongPage)
async def list_songs(
    genre: str | None = Query(None),
    artist: int | None = Query(None, description="Artist id"),
    album: int | None = Query(None, description="Album id"),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
) -> SongPage:
    """List songs, most played first."""
    result = await catalog.list_songs(
        db, genre=genre, artist_id=artist, album_id=album, search=search, page=page, limit=limit
    )
    return SongPage(
        songs=[SongResponse.model_validate(s) for s in result.items],
        page=result.page,
        pages=result.pages,
        total=result.total,
    )


@router.get("/top", response_model=list[SongResponse])
async def top_songs(
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
) -> list[SongResponse]:
    return [SongResponse.model_validate(s) for s in await catalog.top_songs(db, limit)]


@router.get("/new-releases", response_model=list[SongResponse])
async def new_releases(
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
) -> list[SongResponse]:
    return [SongResponse.model_validate(s) for s in await catalog.new_release_songs(db, limit)]


@router.get("/{song_id}", response_model=SongResponse)
async def get_song(
    song_id: int,
    db: AsyncSession = Depends(get_db),
) -> SongResponse:
    """Fetch a song. Each fetch counts as a play."""
    await integrity.record_play(db, song_id)
    return SongResponse.model_validate(await catalog.get_song(db, song_id))


@router.post("", response_model=SongResponse, status_code=status.HTTP_201_CREATED)
async def create_song(
    title: str = Form(..., min_length=1, max_length=255),
    artist_id: int = Form(...),
    album_id: int | None = Form(None),
    duration: float | None = Form(None, gt=0),
    audio_url: str | None = Form(None),
    genres: list[str] = Form([]),
    is_explicit: bool = Form(False),
    featured_artists: list[int] = Form([]),
    audio: UploadFile | None = File(None),
    cover: UploadFile | None = File(None),
    _admin: User = Depends(require_admin),
    uploader: MediaUploader = Depends(get_media_uploader),
    db: AsyncSession = Depends(get_db),
) -> SongResponse:
    """Create a song from an uploaded audio file or an existing audio URL. Admin only."""
    if not media.has_file(audio) and not audio_url:
        raise BadRequest("Audio file is required")
    if not media.has_file(audio) and duration is None:
        raise BadRequest("Duration is required when no audio file is uploaded")
    await integrity.check_song_refs(
        db, artist_id=artist_id, album_id=album_id, featured_artist_ids=featured_artists
    )
    ingested = await _ingest_media(uploader, audio, cover, duration)
    song = await integrity.create_song(
        db,
        title=title,
        artist_id=artist_id,
        album_id=album_id,
        duration=ingested.duration,
        audio_url=ingested.audio_url or audio_url,
        cover_image=ingested.cover_url,
        genres=genres,
        is_explicit=is_explicit,
        featured_artist_ids=featured_artists,
    )
    return SongResponse.model_validate(song)


@router.put("/{song_id}", response_model=SongResponse)
async def update_song(
    song_id: int,
    title: str | None = Form(None, min_length=1, max_length=255),
    artist_id: int | None = Form(None),
    album_id: int | None = Form(None),
    clear_album: bool = Form(False),
    duration: float | None = Form(None, gt=0),
    audio_url: str | None = Form(None),
    genres: list[str] | None = Form(None),
    is_explicit: bool | None = Form(None),
    featured_artists: list[int] | None = Form(None),
    clear_featured: bool = Form(False),
    audio: UploadFile | None = File(None),
    cover: UploadFile | None = File(None),
    _admin: User = Depends(require_admin),
    uploader: MediaUploader = Depends(get_media_uploader),
    db: AsyncSession = Depends(get_db),
) -> SongResponse:
    """Update a song. Admin only.

    ``clear_album`` takes it off its album and ``clear_featured`` drops every featured artist.
    """
    current = await catalog.get_song(db, song_id)
    if clear_album and album_id is not None:
        raise BadRequest("Cannot set and clear the album in one request")
    if clear_featured and featured_artists:
        raise BadRequest("Cannot set and clear the featured artists in one request")
    await integrity.check_song_refs(
        db, artist_id=artist_id, album_id=album_id, featured_artist_ids=featured_artists or ()
    )
    ingested = await _ingest_media(uploader, audio, cover, duration or current.duration)
    song = await integrity.update_song(
        db,
        song_id,
        title=title,
        artist_id=artist_id,
        album_id=album_id,
        clear_album=clear_album,
        duration=ingested.duration,
        audio_url=ingested.audio_url or audio_url,
        cover_image=ingested.cover_url,
        genres=genres,
        is_explicit=is_explicit,
        featured_artist_ids=[] if clear_featured else featured_artists,
    )
    return SongResponse.model_validate(song)


@router.delete("/{song_id}", response_model=MessageResponse)
async def delete_song(
    song_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a song and drop it from every album, playlist and liked set. Admin only."""
    await integrity.delete_song(db, song_id)
    return MessageResponse(message="Song removed")
