# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Reference integrity engine tests, run directly against a session."""

import pytest
from sqlalchemy import update

from dotify_server.errors import BadRequest, Forbidden, NotFound
from dotify_server.models import Song
from dotify_server.services import accounts, catalog, integrity


async def _user(db, name: str):
    return await accounts.register_user(db, name=name, email=f"{name}@example.com", password="secret12")


async def _catalog(db):
    artist = await integrity.create_artist(db, name="Artist", bio="bio", genres=["Rock"])
    album = await integrity.create_album(db, title="Album One", artist_id=artist.id, genre="Rock")
    song = await integrity.create_song(
        db, title="Song", artist_id=artist.id, album_id=album.id, duration=120, audio_url="https://x/a.mp3"
    )
    return artist, album, song


async def test_clean_tags():
    assert integrity.clean_tags([" Rock ", "", "rock", "Jazz"]) == ["Rock", "Jazz"]
    assert integrity.clean_tags(None) == []


async def test_delete_artist_removes_albums_and_songs(db):
    artist, album, song = await _catalog(db)
    other = await integrity.create_artist(db, name="Other", genres=[])
    guest = await integrity.create_song(
        db, title="Guest spot", artist_id=other.id, album_id=album.id, duration=90,
        audio_url="https://x/b.mp3", featured_artist_ids=[artist.id],
    )
    user = await _user(db, "fan")
    await integrity.toggle_membership(db, integrity.FOLLOWED_ARTISTS, user.id, artist.id)
    await integrity.toggle_membership(db, integrity.LIKED_ALBUMS, user.id, album.id)

    removed = await integrity.delete_artist(db, artist.id)
    assert (removed.songs, removed.albums) == (1, 1)

    for loader, entity_id in ((catalog.get_artist, artist.id), (catalog.get_album, album.id), (catalog.get_song, song.id)):
        with pytest.raises(NotFound):
            await loader(db, entity_id)

    # Another artist's song filed on the deleted album survives without an album or the feature link
    survivor = await catalog.get_song(db, guest.id)
    assert survivor.album_id is None
    assert survivor.featured_artist_ids == []

    fan = await catalog.get_user(db, user.id)
    assert fan.followed_artist_ids == []
    assert fan.liked_album_ids == []


async def test_like_round_trip_and_zero_floor(db):
    _, _, song = await _catalog(db)
    user = await _user(db, "liker")

    added = await integrity.toggle_membership(db, integrity.LIKED_SONGS, user.id, song.id)
    assert (added.status, added.members, added.count) == ("added", [song.id], 1)
    removed = await integrity.toggle_membership(db, integrity.LIKED_SONGS, user.id, song.id)
    assert (removed.status, removed.members, removed.count) == ("removed", [], 0)

    # A drifted counter never goes negative
    await integrity.toggle_membership(db, integrity.LIKED_SONGS, user.id, song.id)
    await db.execute(update(Song).where(Song.id == song.id).values(likes=0))
    await db.commit()
    result = await integrity.toggle_membership(db, integrity.LIKED_SONGS, user.id, song.id)
    assert result.count == 0


async def test_follow_scenario(db):
    artist, _, _ = await _catalog(db)
    u1 = await _user(db, "one")
    u2 = await _user(db, "two")

    await integrity.toggle_membership(db, integrity.FOLLOWED_ARTISTS, u1.id, artist.id)
    result = await integrity.toggle_membership(db, integrity.FOLLOWED_ARTISTS, u2.id, artist.id)
    assert result.count == 2
    result = await integrity.toggle_membership(db, integrity.FOLLOWED_ARTISTS, u1.id, artist.id)
    assert result.count == 1
    assert (await catalog.get_artist(db, artist.id)).followers == 1
    assert (await catalog.get_user(db, u2.id)).followed_artist_ids == [artist.id]


async def test_toggle_missing_target(db):
    user = await _user(db, "nobody")
    with pytest.raises(NotFound):
        await integrity.toggle_membership(db, integrity.LIKED_SONGS, user.id, 12345)


async def test_playlist_batch_all_or_nothing(db):
    artist, _, song = await _catalog(db)
    second = await integrity.create_song(db, title="Second", artist_id=artist.id, duration=60, audio_url="https://x/c.mp3")
    owner = await _user(db, "owner")
    playlist = await integrity.create_playlist(db, creator_id=owner.id, name="Mix")

    with pytest.raises(NotFound):
        await integrity.add_playlist_songs(db, playlist.id, owner.id, [song.id, 999])
    assert await catalog.playlist_song_ids(db, playlist.id) == []

    await integrity.add_playlist_songs(db, playlist.id, owner.id, [second.id])
    with pytest.raises(BadRequest):
        await integrity.add_playlist_songs(db, playlist.id, owner.id, [song.id, second.id])
    assert await catalog.playlist_song_ids(db, playlist.id) == [second.id]

    updated = await integrity.add_playlist_songs(db, playlist.id, owner.id, [song.id])
    assert updated.song_ids == [second.id, song.id]


async def test_non_owner_cannot_change_collaborators(db):
    owner = await _user(db, "owner")
    stranger = await _user(db, "stranger")
    third = await _user(db, "third")
    playlist = await integrity.create_playlist(db, creator_id=owner.id, name="Mine")

    with pytest.raises(Forbidden):
        await integrity.add_collaborator(db, playlist.id, stranger.id, third.id)

    await integrity.add_collaborator(db, playlist.id, owner.id, stranger.id)
    # Collaborators still cannot manage collaborators
    with pytest.raises(Forbidden):
        await integrity.add_collaborator(db, playlist.id, stranger.id, third.id)
    with pytest.raises(Forbidden):
        await integrity.delete_playlist(db, playlist.id, stranger.id)


async def test_album_membership_moves_songs(db):
    artist, first, song = await _catalog(db)
    second = await integrity.create_album(db, title="Album Two", artist_id=artist.id)

    moved = await integrity.add_album_songs(db, second.id, [song.id])
    assert moved.song_ids == [song.id]
    assert (await catalog.get_album(db, first.id)).song_ids == []

    with pytest.raises(BadRequest):
        await integrity.remove_album_song(db, first.id, song.id)
    with pytest.raises(NotFound):
        await integrity.remove_album_song(db, first.id, 999)


async def test_update_song_cannot_set_and_clear_album(db):
    _, album, song = await _catalog(db)
    with pytest.raises(BadRequest):
        await integrity.update_song(db, song.id, album_id=album.id, clear_album=True)
