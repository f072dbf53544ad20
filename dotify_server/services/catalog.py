# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Catalog queries: filtered, sorted, paginated listings and single-entity loaders.

Listings share one shape: ``Page(items, page, pages, total)`` with
``pages = ceil(total / limit)``, so an empty match set reports ``pages == 0``.
Every ordering ends with ``id`` ascending, which keeps page boundaries stable
when the primary sort key ties.
"""

import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dotify_server.errors import NotFound
from dotify_server.models import (
    Album,
    Artist,
    ArtistGenre,
    Playlist,
    PlaylistSong,
    Song,
    SongGenre,
    User,
    playlist_collaborators,
)

T = TypeVar("T")

DEFAULT_LIMIT = 10

# Eager-load options: the id lists each response exposes, nothing deeper.
ARTIST_LOAD = (
    selectinload(Artist.genre_tags),
    selectinload(Artist.albums).load_only(Album.id),
    selectinload(Artist.songs).load_only(Song.id),
)
ALBUM_LOAD = (selectinload(Album.songs).load_only(Song.id),)
SONG_LOAD = (
    selectinload(Song.genre_tags),
    selectinload(Song.featured_artists).load_only(Artist.id),
)
PLAYLIST_LOAD = (
    selectinload(Playlist.entries),
    selectinload(Playlist.collaborators).load_only(User.id),
)
USER_LOAD = (
    selectinload(User.liked_songs).load_only(Song.id),
    selectinload(User.liked_albums).load_only(Album.id),
    selectinload(User.followed_artists).load_only(Artist.id),
    selectinload(User.followed_playlists).load_only(Playlist.id),
)


@dataclass
class Page(Generic[T]):
    """One page of a listing."""

    items: list[T]
    page: int
    pages: int
    total: int


def _contains(column, term: str):
    """Case-insensitive substring match; LIKE wildcards in the term are literal."""
    return column.icontains(term, autoescape=True)


async def paginate(
    db: AsyncSession,
    stmt: Select,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    options: tuple = (),
) -> Page[Any]:
    """Run ``stmt`` for one page and count the full match set. ``options`` apply to the page only."""
    page = max(page, 1)
    limit = max(limit, 1)
    total = await db.scalar(
        select(func.count()).select_from(stmt.order_by(None).subquery())
    ) or 0
    result = await db.execute(stmt.options(*options).offset((page - 1) * limit).limit(limit))
    return Page(
        items=list(result.scalars().all()),
        page=page,
        pages=math.ceil(total / limit),
        total=total,
    )


# ---------- Filters ----------

def artist_query(genre: str | None = None, search: str | None = None) -> Select:
    q = select(Artist)
    if genre:
        q = q.where(
            exists()
            .where(ArtistGenre.artist_id == Artist.id)
            .where(func.lower(ArtistGenre.name) == genre.strip().lower())
        )
    if search:
        q = q.where(or_(_contains(Artist.name, search), _contains(Artist.bio, search)))
    return q.order_by(Artist.followers.asc(), Artist.id.asc())


def album_query(
    genre: str | None = None,
    artist_id: int | None = None,
    search: str | None = None,
) -> Select:
    q = select(Album)
    if genre:
        q = q.where(func.lower(Album.genre) == genre.strip().lower())
    if artist_id is not None:
        q = q.where(Album.artist_id == artist_id)
    if search:
        q = q.where(
            or_(
                _contains(Album.title, search),
                _contains(Album.genre, search),
                _contains(Album.description, search),
            )
        )
    return q.order_by(Album.release_date.desc(), Album.id.asc())


def song_query(
    genre: str | None = None,
    artist_id: int | None = None,
    album_id: int | None = None,
    search: str | None = None,
) -> Select:
    q = select(Song)
    if genre:
        q = q.where(
            exists()
            .where(SongGenre.song_id == Song.id)
            .where(func.lower(SongGenre.name) == genre.strip().lower())
        )
    if artist_id is not None:
        q = q.where(Song.artist_id == artist_id)
    if album_id is not None:
        q = q.where(Song.album_id == album_id)
    if search:
        genre_match = (
            exists()
            .where(SongGenre.song_id == Song.id)
            .where(_contains(SongGenre.name, search))
        )
        q = q.where(or_(_contains(Song.title, search), genre_match))
    return q.order_by(Song.plays.desc(), Song.id.asc())


def playlist_query(search: str | None = None, creator_id: int | None = None) -> Select:
    """Public playlists only."""
    q = select(Playlist).where(Playlist.is_public.is_(True))
    if creator_id is not None:
        q = q.where(Playlist.creator_id == creator_id)
    if search:
        q = q.where(or_(_contains(Playlist.name, search), _contains(Playlist.description, search)))
    return q.order_by(Playlist.followers.desc(), Playlist.id.asc())


# ---------- Listings ----------

async def list_artists(
    db: AsyncSession,
    *,
    genre: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> Page[Artist]:
    return await paginate(db, artist_query(genre, search), page, limit, ARTIST_LOAD)


async def list_albums(
    db: AsyncSession,
    *,
    genre: str | None = None,
    artist_id: int | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> Page[Album]:
    return await paginate(db, album_query(genre, artist_id, search), page, limit, ALBUM_LOAD)


async def list_songs(
    db: AsyncSession,
    *,
    genre: str | None = None,
    artist_id: int | None = None,
    album_id: int | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> Page[Song]:
    return await paginate(db, song_query(genre, artist_id, album_id, search), page, limit, SONG_LOAD)


async def list_playlists(
    db: AsyncSession,
    *,
    search: str | None = None,
    creator_id: int | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> Page[Playlist]:
    return await paginate(db, playlist_query(search, creator_id), page, limit, PLAYLIST_LOAD)


async def top_artists(db: AsyncSession, limit: int = DEFAULT_LIMIT) -> list[Artist]:
    result = await db.execute(
        select(Artist).options(*ARTIST_LOAD).order_by(Artist.followers.desc(), Artist.id.asc()).limit(limit)
    )
    return list(result.scalars().all())


async def artist_top_songs(db: AsyncSession, artist_id: int, limit: int = DEFAULT_LIMIT) -> list[Song]:
    if await db.get(Artist, artist_id) is None:
        raise NotFound("Artist not found")
    result = await db.execute(song_query(artist_id=artist_id).options(*SONG_LOAD).limit(limit))
    return list(result.scalars().all())


async def top_songs(db: AsyncSession, limit: int = DEFAULT_LIMIT) -> list[Song]:
    result = await db.execute(song_query().options(*SONG_LOAD).limit(limit))
    return list(result.scalars().all())


async def new_release_songs(db: AsyncSession, limit: int = DEFAULT_LIMIT) -> list[Song]:
    result = await db.execute(
        select(Song).options(*SONG_LOAD).order_by(Song.created_at.desc(), Song.id.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def new_release_albums(db: AsyncSession, limit: int = DEFAULT_LIMIT) -> list[Album]:
    result = await db.execute(album_query().options(*ALBUM_LOAD).limit(limit))
    return list(result.scalars().all())


async def featured_playlists(db: AsyncSession, limit: int = 5) -> list[Playlist]:
    result = await db.execute(playlist_query().options(*PLAYLIST_LOAD).limit(limit))
    return list(result.scalars().all())


async def user_playlists(db: AsyncSession, user_id: int) -> list[Playlist]:
    """Playlists the user created or collaborates on, newest first."""
    collaborating = select(playlist_collaborators.c.playlist_id).where(
        playlist_collaborators.c.user_id == user_id
    )
    result = await db.execute(
        select(Playlist)
        .options(*PLAYLIST_LOAD)
        .where(or_(Playlist.creator_id == user_id, Playlist.id.in_(collaborating)))
        .order_by(Playlist.created_at.desc(), Playlist.id.desc())
    )
    return list(result.scalars().all())


# ---------- Loaders ----------

async def _load(db: AsyncSession, model, entity_id: int, options, label: str):
    result = await db.execute(
        select(model)
        .options(*options)
        .where(model.id == entity_id)
        .execution_options(populate_existing=True)
    )
    obj = result.scalar_one_or_none()
    if obj is None:
        raise NotFound(f"{label} not found")
    return obj


async def get_artist(db: AsyncSession, artist_id: int) -> Artist:
    return await _load(db, Artist, artist_id, ARTIST_LOAD, "Artist")


async def get_album(db: AsyncSession, album_id: int) -> Album:
    return await _load(db, Album, album_id, ALBUM_LOAD, "Album")


async def get_song(db: AsyncSession, song_id: int) -> Song:
    return await _load(db, Song, song_id, SONG_LOAD, "Song")


async def get_playlist(db: AsyncSession, playlist_id: int) -> Playlist:
    return await _load(db, Playlist, playlist_id, PLAYLIST_LOAD, "Playlist")


async def get_user(db: AsyncSession, user_id: int) -> User:
    return await _load(db, User, user_id, USER_LOAD, "User")


def can_view_playlist(playlist: Playlist, user_id: int | None) -> bool:
    """Public playlists are visible to everyone, private ones to the creator and collaborators."""
    if playlist.is_public:
        return True
    if user_id is None:
        return False
    return user_id == playlist.creator_id or user_id in playlist.collaborator_ids


async def get_visible_playlist(db: AsyncSession, playlist_id: int, user_id: int | None) -> Playlist:
    playlist = await get_playlist(db, playlist_id)
    if not can_view_playlist(playlist, user_id):
        raise NotFound("Playlist not found")
    return playlist


async def playlist_song_ids(db: AsyncSession, playlist_id: int) -> list[int]:
    result = await db.execute(
        select(PlaylistSong.song_id)
        .where(PlaylistSong.playlist_id == playlist_id)
        .order_by(PlaylistSong.position)
    )
    return list(result.scalars().all())
