# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Reference integrity engine: every catalog mutation that touches more than one entity.

Each operation validates first, then issues all of its writes in the session's
transaction and commits once, so an entity and its back-references change
together or not at all. Counters move with single ``UPDATE ... SET n = n + 1``
statements (clamped at zero on the way down), never read-modify-write.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable

from sqlalchemy import Table, case, delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dotify_server.config import settings
from dotify_server.errors import BadRequest, Conflict, Forbidden, NotFound
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
    song_featured_artists,
    user_followed_artists,
    user_followed_playlists,
    user_liked_albums,
    user_liked_songs,
)
from dotify_server.services import catalog

logger = logging.getLogger(__name__)


def clean_tags(names: Iterable[str] | None) -> list[str]:
    """Strip, drop blanks, and de-duplicate case-insensitively (first spelling wins)."""
    seen: set[str] = set()
    out = []
    for raw in names or ():
        name = raw.strip()
        if name and name.lower() not in seen:
            seen.add(name.lower())
            out.append(name)
    return out


def _retag(current: list, names: Iterable[str], factory) -> list:
    """Build the new tag collection, reusing rows whose name is unchanged."""
    by_name = {tag.name: tag for tag in current}
    tags = []
    for position, name in enumerate(clean_tags(names)):
        tag = by_name.get(name) or factory(name=name)
        tag.position = position
        tags.append(tag)
    return tags


def _batch(ids: list[int], label: str) -> list[int]:
    if not ids:
        raise BadRequest(f"At least one {label} id is required")
    if len(set(ids)) != len(ids):
        raise BadRequest(f"Duplicate {label} ids in request")
    return list(ids)


async def _require(db: AsyncSession, model, entity_id: int, label: str):
    obj = await db.get(model, entity_id)
    if obj is None:
        raise NotFound(f"{label} not found")
    return obj


# ---------- Artists ----------

async def ensure_artist_name_free(db: AsyncSession, name: str, exclude_id: int | None = None) -> None:
    q = select(Artist.id).where(Artist.name == name)
    if exclude_id is not None:
        q = q.where(Artist.id != exclude_id)
    if await db.scalar(q) is not None:
        raise Conflict("Artist already exists.")


async def create_artist(
    db: AsyncSession,
    *,
    name: str,
    bio: str | None = None,
    genres: Iterable[str] = (),
    image: str | None = None,
) -> Artist:
    """Create a verified artist with no songs, no albums and zero followers."""
    await ensure_artist_name_free(db, name)
    artist = Artist(
        name=name,
        bio=bio,
        image=image or settings.default_artist_image,
        followers=0,
        is_verified=True,
        genre_tags=[ArtistGenre(name=g, position=i) for i, g in enumerate(clean_tags(genres))],
    )
    db.add(artist)
    await db.commit()
    logger.info("Created artist %s (%s)", artist.id, name)
    return await catalog.get_artist(db, artist.id)


async def update_artist(
    db: AsyncSession,
    artist_id: int,
    *,
    name: str | None = None,
    bio: str | None = None,
    genres: Iterable[str] | None = None,
    image: str | None = None,
    is_verified: bool | None = None,
) -> Artist:
    artist = await catalog.get_artist(db, artist_id)
    if name is not None and name != artist.name:
        await ensure_artist_name_free(db, name, exclude_id=artist_id)
        artist.name = name
    if bio is not None:
        artist.bio = bio
    if image is not None:
        artist.image = image
    if is_verified is not None:
        artist.is_verified = is_verified
    if genres is not None:
        artist.genre_tags = _retag(artist.genre_tags, genres, ArtistGenre)
    await db.commit()
    return await catalog.get_artist(db, artist_id)


@dataclass
class ArtistDeletion:
    songs: int
    albums: int


async def delete_artist(db: AsyncSession, artist_id: int) -> ArtistDeletion:
    """Delete an artist with every song and album it owns.

    Songs go first (each leaves its album and every playlist/like set), then the
    albums (songs of other artists filed under them are unlinked), then the
    follows and featured-artist links, then the artist row.
    """
    await _require(db, Artist, artist_id, "Artist")
    song_ids = list((await db.scalars(select(Song.id).where(Song.artist_id == artist_id))).all())
    album_ids = list((await db.scalars(select(Album.id).where(Album.artist_id == artist_id))).all())

    await _purge_songs(db, song_ids)
    await _purge_albums(db, album_ids)
    await db.execute(delete(user_followed_artists).where(user_followed_artists.c.artist_id == artist_id))
    await db.execute(delete(song_featured_artists).where(song_featured_artists.c.artist_id == artist_id))
    await db.execute(delete(ArtistGenre).where(ArtistGenre.artist_id == artist_id))
    await db.execute(delete(Artist).where(Artist.id == artist_id))
    await db.commit()
    logger.info(
        "Deleted artist %s with %d songs and %d albums", artist_id, len(song_ids), len(album_ids)
    )
    return ArtistDeletion(songs=len(song_ids), albums=len(album_ids))


# ---------- Albums ----------

async def check_album_refs(
    db: AsyncSession,
    *,
    artist_id: int,
    title: str,
    exclude_id: int | None = None,
) -> None:
    """Owner must exist; title must be unused."""
    await _require(db, Artist, artist_id, "Artist")
    await ensure_album_title_free(db, title, exclude_id)


async def ensure_album_title_free(db: AsyncSession, title: str, exclude_id: int | None = None) -> None:
    q = select(Album.id).where(Album.title == title)
    if exclude_id is not None:
        q = q.where(Album.id != exclude_id)
    if await db.scalar(q) is not None:
        raise Conflict("Album already exists")


async def create_album(
    db: AsyncSession,
    *,
    title: str,
    artist_id: int,
    release_date: date | None = None,
    genre: str | None = None,
    description: str | None = None,
    is_explicit: bool = False,
    cover_image: str | None = None,
) -> Album:
    """Create an album; it joins the owner's album list through artist_id."""
    await check_album_refs(db, artist_id=artist_id, title=title)
    album = Album(
        title=title,
        artist_id=artist_id,
        release_date=release_date or date.today(),
        genre=genre,
        description=description,
        is_explicit=is_explicit,
        cover_image=cover_image or settings.default_album_cover,
        likes=0,
    )
    db.add(album)
    await db.commit()
    logger.info("Created album %s (%s) for artist %s", album.id, title, artist_id)
    return await catalog.get_album(db, album.id)


async def update_album(
    db: AsyncSession,
    album_id: int,
    *,
    title: str | None = None,
    release_date: date | None = None,
    genre: str | None = None,
    description: str | None = None,
    is_explicit: bool | None = None,
    cover_image: str | None = None,
) -> Album:
    album = await catalog.get_album(db, album_id)
    if title is not None and title != album.title:
        await ensure_album_title_free(db, title, exclude_id=album_id)
        album.title = title
    if release_date is not None:
        album.release_date = release_date
    if genre is not None:
        album.genre = genre
    if description is not None:
        album.description = description
    if is_explicit is not None:
        album.is_explicit = is_explicit
    if cover_image is not None:
        album.cover_image = cover_image
    await db.commit()
    return await catalog.get_album(db, album_id)


async def delete_album(db: AsyncSession, album_id: int) -> None:
    """Delete an album. Its songs stay in the catalog without an album."""
    await _require(db, Album, album_id, "Album")
    await _purge_albums(db, [album_id])
    await db.commit()
    logger.info("Deleted album %s", album_id)


async def add_album_songs(db: AsyncSession, album_id: int, song_ids: list[int]) -> Album:
    """File existing songs under an album. A song on another album moves here. All or nothing."""
    await _require(db, Album, album_id, "Album")
    ids = _batch(song_ids, "song")
    rows = await db.execute(select(Song.id, Song.album_id).where(Song.id.in_(ids)))
    current = {row.id: row.album_id for row in rows}
    for song_id in ids:
        if song_id not in current:
            raise NotFound(f"Song {song_id} not found")
        if current[song_id] == album_id:
            raise BadRequest(f"Song {song_id} is already on this album")
    await db.execute(
        update(Song)
        .where(Song.id.in_(ids))
        .values(album_id=album_id)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return await catalog.get_album(db, album_id)


async def remove_album_song(db: AsyncSession, album_id: int, song_id: int) -> Album:
    await _require(db, Album, album_id, "Album")
    current = await db.scalar(select(Song.album_id).where(Song.id == song_id))
    if current is None and await db.get(Song, song_id) is None:
        raise NotFound("Song not found")
    if current != album_id:
        raise BadRequest("Song is not on this album")
    await db.execute(
        update(Song)
        .where(Song.id == song_id)
        .values(album_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return await catalog.get_album(db, album_id)


async def _purge_albums(db: AsyncSession, album_ids: list[int]) -> None:
    if not album_ids:
        return
    await db.execute(
        update(Song)
        .where(Song.album_id.in_(album_ids))
        .values(album_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.execute(delete(user_liked_albums).where(user_liked_albums.c.album_id.in_(album_ids)))
    await db.execute(delete(Album).where(Album.id.in_(album_ids)))


# ---------- Songs ----------

async def check_song_refs(
    db: AsyncSession,
    *,
    artist_id: int | None,
    album_id: int | None = None,
    featured_artist_ids: Iterable[int] = (),
) -> list[Artist]:
    """Every referenced artist and album must exist. Returns the featured artists in request order."""
    if artist_id is not None:
        await _require(db, Artist, artist_id, "Artist")
    if album_id is not None:
        await _require(db, Album, album_id, "Album")
    wanted = list(dict.fromkeys(featured_artist_ids))
    if not wanted:
        return []
    found = {a.id: a for a in (await db.scalars(select(Artist).where(Artist.id.in_(wanted)))).all()}
    for featured_id in wanted:
        if featured_id not in found:
            raise NotFound(f"Featured artist {featured_id} not found")
    return [found[i] for i in wanted]


async def create_song(
    db: AsyncSession,
    *,
    title: str,
    artist_id: int,
    duration: float,
    audio_url: str,
    album_id: int | None = None,
    cover_image: str | None = None,
    genres: Iterable[str] = (),
    is_explicit: bool = False,
    featured_artist_ids: Iterable[int] = (),
) -> Song:
    """Create a song under its artist and, when given, its album."""
    featured = await check_song_refs(
        db, artist_id=artist_id, album_id=album_id, featured_artist_ids=featured_artist_ids
    )
    song = Song(
        title=title,
        artist_id=artist_id,
        album_id=album_id,
        duration=duration,
        audio_url=audio_url,
        cover_image=cover_image or settings.default_song_cover,
        is_explicit=is_explicit,
        plays=0,
        likes=0,
        genre_tags=[SongGenre(name=g, position=i) for i, g in enumerate(clean_tags(genres))],
        featured_artists=featured,
    )
    db.add(song)
    await db.commit()
    logger.info("Created song %s (%s) for artist %s, album %s", song.id, title, artist_id, album_id)
    return await catalog.get_song(db, song.id)


async def update_song(
    db: AsyncSession,
    song_id: int,
    *,
    title: str | None = None,
    artist_id: int | None = None,
    album_id: int | None = None,
    clear_album: bool = False,
    duration: float | None = None,
    audio_url: str | None = None,
    cover_image: str | None = None,
    genres: Iterable[str] | None = None,
    is_explicit: bool | None = None,
    featured_artist_ids: Iterable[int] | None = None,
) -> Song:
    """Update a song. Re-pointing it at another artist or album moves it between their lists."""
    song = await catalog.get_song(db, song_id)
    if clear_album and album_id is not None:
        raise BadRequest("Cannot set and clear the album in one request")
    featured = await check_song_refs(
        db,
        artist_id=artist_id,
        album_id=album_id,
        featured_artist_ids=featured_artist_ids or (),
    )
    if title is not None:
        song.title = title
    if artist_id is not None:
        song.artist_id = artist_id
    if album_id is not None:
        song.album_id = album_id
    elif clear_album:
        song.album_id = None
    if duration is not None:
        song.duration = duration
    if audio_url is not None:
        song.audio_url = audio_url
    if cover_image is not None:
        song.cover_image = cover_image
    if is_explicit is not None:
        song.is_explicit = is_explicit
    if genres is not None:
        song.genre_tags = _retag(song.genre_tags, genres, SongGenre)
    if featured_artist_ids is not None:
        song.featured_artists = featured
    await db.commit()
    return await catalog.get_song(db, song_id)


async def delete_song(db: AsyncSession, song_id: int) -> None:
    """Delete a song; it leaves its artist, its album, every playlist and every liked set."""
    await _require(db, Song, song_id, "Song")
    await _purge_songs(db, [song_id])
    await db.commit()
    logger.info("Deleted song %s", song_id)


async def record_play(db: AsyncSession, song_id: int) -> None:
    result = await db.execute(
        update(Song)
        .where(Song.id == song_id)
        .values(plays=Song.plays + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFound("Song not found")
    await db.commit()


async def _purge_songs(db: AsyncSession, song_ids: list[int]) -> None:
    if not song_ids:
        return
    await db.execute(delete(PlaylistSong).where(PlaylistSong.song_id.in_(song_ids)))
    await db.execute(delete(user_liked_songs).where(user_liked_songs.c.song_id.in_(song_ids)))
    await db.execute(delete(song_featured_artists).where(song_featured_artists.c.song_id.in_(song_ids)))
    await db.execute(delete(SongGenre).where(SongGenre.song_id.in_(song_ids)))
    await db.execute(delete(Song).where(Song.id.in_(song_ids)))


# ---------- Likes and follows ----------

@dataclass(frozen=True)
class Relation:
    """A user-owned set whose membership drives a counter on the member entity."""

    table: Table
    member_column: str
    model: Any
    counter: str
    label: str


LIKED_SONGS = Relation(user_liked_songs, "song_id", Song, "likes", "Song")
LIKED_ALBUMS = Relation(user_liked_albums, "album_id", Album, "likes", "Album")
FOLLOWED_ARTISTS = Relation(user_followed_artists, "artist_id", Artist, "followers", "Artist")
FOLLOWED_PLAYLISTS = Relation(user_followed_playlists, "playlist_id", Playlist, "followers", "Playlist")


@dataclass
class ToggleResult:
    added: bool
    members: list[int]
    count: int

    @property
    def status(self) -> str:
        return "added" if self.added else "removed"


def _shift_counter(relation: Relation, member_id: int, delta: int):
    column = getattr(relation.model, relation.counter)
    value = column + 1 if delta > 0 else case((column > 0, column - 1), else_=0)
    return (
        update(relation.model)
        .where(relation.model.id == member_id)
        .values({relation.counter: value})
        .execution_options(synchronize_session=False)
    )


async def member_ids(db: AsyncSession, relation: Relation, owner_id: int) -> list[int]:
    member_col = relation.table.c[relation.member_column]
    result = await db.scalars(
        select(member_col).where(relation.table.c.user_id == owner_id).order_by(member_col)
    )
    return list(result.all())


async def toggle_membership(
    db: AsyncSession, relation: Relation, owner_id: int, member_id: int
) -> ToggleResult:
    """Add ``member_id`` to the user's set (counter + 1) or remove it (counter - 1, floor 0)."""
    await _require(db, User, owner_id, "User")
    target = await _require(db, relation.model, member_id, relation.label)
    if isinstance(target, Playlist) and not await _playlist_visible_to(db, target, owner_id):
        raise NotFound("Playlist not found")

    owner_col = relation.table.c.user_id
    member_col = relation.table.c[relation.member_column]
    present = await db.scalar(
        select(func.count())
        .select_from(relation.table)
        .where(owner_col == owner_id, member_col == member_id)
    )
    if present:
        await db.execute(delete(relation.table).where(owner_col == owner_id, member_col == member_id))
        await db.execute(_shift_counter(relation, member_id, -1))
    else:
        await db.execute(insert(relation.table).values({"user_id": owner_id, relation.member_column: member_id}))
        await db.execute(_shift_counter(relation, member_id, +1))
    await db.commit()

    count = await db.scalar(
        select(getattr(relation.model, relation.counter)).where(relation.model.id == member_id)
    )
    result = ToggleResult(added=not present, members=await member_ids(db, relation, owner_id), count=count or 0)
    logger.info("User %s %s %s %s", owner_id, result.status, relation.label.lower(), member_id)
    return result


# ---------- Playlists ----------

async def _is_collaborator(db: AsyncSession, playlist_id: int, user_id: int) -> bool:
    found = await db.scalar(
        select(playlist_collaborators.c.user_id).where(
            playlist_collaborators.c.playlist_id == playlist_id,
            playlist_collaborators.c.user_id == user_id,
        )
    )
    return found is not None


async def _playlist_visible_to(db: AsyncSession, playlist: Playlist, user_id: int) -> bool:
    if playlist.is_public or playlist.creator_id == user_id:
        return True
    return await _is_collaborator(db, playlist.id, user_id)


async def authorize_playlist(
    db: AsyncSession,
    playlist_id: int,
    requester_id: int,
    *,
    allow_collaborators: bool,
) -> Playlist:
    """Load a playlist the requester may modify: the creator always, collaborators when allowed."""
    playlist = await catalog.get_playlist(db, playlist_id)
    if requester_id == playlist.creator_id:
        return playlist
    if allow_collaborators and requester_id in playlist.collaborator_ids:
        return playlist
    if allow_collaborators:
        raise Forbidden("Only the creator or a collaborator can change this playlist")
    raise Forbidden("Only the playlist creator can do this")


async def ensure_playlist_name_free(
    db: AsyncSession, creator_id: int, name: str, exclude_id: int | None = None
) -> None:
    q = select(Playlist.id).where(Playlist.creator_id == creator_id, Playlist.name == name)
    if exclude_id is not None:
        q = q.where(Playlist.id != exclude_id)
    if await db.scalar(q) is not None:
        raise Conflict("A playlist with this name already exists")


async def create_playlist(
    db: AsyncSession,
    *,
    creator_id: int,
    name: str,
    description: str | None = None,
    is_public: bool = False,
    cover_image: str | None = None,
) -> Playlist:
    await ensure_playlist_name_free(db, creator_id, name)
    playlist = Playlist(
        creator_id=creator_id,
        name=name,
        description=description,
        is_public=is_public,
        cover_image=cover_image,
        followers=0,
    )
    db.add(playlist)
    await db.commit()
    logger.info("User %s created playlist %s", creator_id, playlist.id)
    return await catalog.get_playlist(db, playlist.id)


async def update_playlist(
    db: AsyncSession,
    playlist_id: int,
    requester_id: int,
    *,
    name: str | None = None,
    description: str | None = None,
    is_public: bool | None = None,
    cover_image: str | None = None,
) -> Playlist:
    playlist = await authorize_playlist(db, playlist_id, requester_id, allow_collaborators=False)
    if name is not None and name != playlist.name:
        await ensure_playlist_name_free(db, playlist.creator_id, name, exclude_id=playlist_id)
        playlist.name = name
    if description is not None:
        playlist.description = description
    if is_public is not None:
        playlist.is_public = is_public
    if cover_image is not None:
        playlist.cover_image = cover_image
    await db.commit()
    return await catalog.get_playlist(db, playlist_id)


async def delete_playlist(db: AsyncSession, playlist_id: int, requester_id: int) -> None:
    await authorize_playlist(db, playlist_id, requester_id, allow_collaborators=False)
    await db.execute(delete(PlaylistSong).where(PlaylistSong.playlist_id == playlist_id))
    await db.execute(delete(playlist_collaborators).where(playlist_collaborators.c.playlist_id == playlist_id))
    await db.execute(delete(user_followed_playlists).where(user_followed_playlists.c.playlist_id == playlist_id))
    await db.execute(delete(Playlist).where(Playlist.id == playlist_id))
    await db.commit()
    logger.info("User %s deleted playlist %s", requester_id, playlist_id)


async def add_playlist_songs(
    db: AsyncSession, playlist_id: int, requester_id: int, song_ids: list[int]
) -> Playlist:
    """Append songs in request order. The first missing or already-present song rejects the whole batch."""
    playlist = await authorize_playlist(db, playlist_id, requester_id, allow_collaborators=True)
    ids = _batch(song_ids, "song")
    present = set(playlist.song_ids)
    found = set((await db.scalars(select(Song.id).where(Song.id.in_(ids)))).all())
    for song_id in ids:
        if song_id not in found:
            raise NotFound(f"Song {song_id} not found")
        if song_id in present:
            raise BadRequest(f"Song {song_id} is already in the playlist")

    last = await db.scalar(
        select(func.max(PlaylistSong.position)).where(PlaylistSong.playlist_id == playlist_id)
    ) or 0
    db.add_all(
        PlaylistSong(playlist_id=playlist_id, song_id=song_id, position=last + offset)
        for offset, song_id in enumerate(ids, start=1)
    )
    await db.commit()
    return await catalog.get_playlist(db, playlist_id)


async def remove_song_from_playlist(
    db: AsyncSession, playlist_id: int, requester_id: int, song_id: int
) -> Playlist:
    playlist = await authorize_playlist(db, playlist_id, requester_id, allow_collaborators=True)
    if song_id not in playlist.song_ids:
        raise BadRequest("Song is not in the playlist")
    await db.execute(
        delete(PlaylistSong).where(
            PlaylistSong.playlist_id == playlist_id, PlaylistSong.song_id == song_id
        )
    )
    await db.commit()
    return await catalog.get_playlist(db, playlist_id)


async def add_collaborator(
    db: AsyncSession, playlist_id: int, requester_id: int, user_id: int
) -> Playlist:
    playlist = await authorize_playlist(db, playlist_id, requester_id, allow_collaborators=False)
    await _require(db, User, user_id, "User")
    if user_id == playlist.creator_id:
        raise BadRequest("The creator cannot be added as a collaborator")
    if user_id in playlist.collaborator_ids:
        raise BadRequest("User is already a collaborator")
    await db.execute(insert(playlist_collaborators).values(playlist_id=playlist_id, user_id=user_id))
    await db.commit()
    logger.info("User %s added collaborator %s to playlist %s", requester_id, user_id, playlist_id)
    return await catalog.get_playlist(db, playlist_id)


async def remove_collaborator(
    db: AsyncSession, playlist_id: int, requester_id: int, user_id: int
) -> Playlist:
    playlist = await authorize_playlist(db, playlist_id, requester_id, allow_collaborators=False)
    if user_id not in playlist.collaborator_ids:
        raise BadRequest("User is not a collaborator")
    await db.execute(
        delete(playlist_collaborators).where(
            playlist_collaborators.c.playlist_id == playlist_id,
            playlist_collaborators.c.user_id == user_id,
        )
    )
    await db.commit()
    return await catalog.get_playlist(db, playlist_id)
