# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Song endpoint tests."""

import logging

from httpx import AsyncClient

from dotify_server.config import settings


async def test_create_song_with_audio_upload(client: AsyncClient, make, admin, uploader):
    artist = await make.artist()
    album = await make.album(artist["id"])
    featured = await make.artist()
    r = await client.post(
        "/api/v1/songs",
        data={
            "title": "Uploaded",
            "artist_id": str(artist["id"]),
            "album_id": str(album["id"]),
            "duration": "201.5",
            "genres": ["Rock", "Live"],
            "featured_artists": [str(featured["id"])],
        },
        files={
            "audio": ("track.mp3", b"not really audio", "audio/mpeg"),
            "cover": ("cover.jpg", b"jpg", "image/jpeg"),
        },
        headers=admin["headers"],
    )
    assert r.status_code == 201, r.text
    song = r.json()
    assert song["audio_url"].startswith("https://media.test/dotify/songs/")
    assert song["cover_image"].startswith("https://media.test/dotify/covers/")
    assert song["duration"] == 201.5
    assert song["genres"] == ["Rock", "Live"]
    assert song["featured_artists"] == [featured["id"]]
    assert song["plays"] == 0
    assert [folder for _, folder in uploader.uploads] == ["dotify/songs", "dotify/covers"]

    assert (await client.get(f"/api/v1/artists/{artist['id']}")).json()["songs"] == [song["id"]]
    assert (await client.get(f"/api/v1/albums/{album['id']}")).json()["songs"] == [song["id"]]


async def test_create_song_without_audio(client: AsyncClient, make, admin):
    artist = await make.artist()
    r = await client.post(
        "/api/v1/songs",
        data={"title": "Silent", "artist_id": str(artist["id"]), "duration": "10"},
        headers=admin["headers"],
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Audio file is required"


async def test_unreadable_audio_needs_duration(client: AsyncClient, make, admin, uploader):
    artist = await make.artist()
    r = await client.post(
        "/api/v1/songs",
        data={"title": "Noise", "artist_id": str(artist["id"])},
        files={"audio": ("noise.mp3", b"garbage", "audio/mpeg")},
        headers=admin["headers"],
    )
    assert r.status_code == 400
    assert uploader.uploads == []


async def test_unreadable_audio_stops_before_cover_upload(client: AsyncClient, make, admin, uploader):
    artist = await make.artist()
    r = await client.post(
        "/api/v1/songs",
        data={"title": "Noise", "artist_id": str(artist["id"])},
        files={
            "audio": ("noise.mp3", b"garbage", "audio/mpeg"),
            "cover": ("cover.jpg", b"jpg", "image/jpeg"),
        },
        headers=admin["headers"],
    )
    assert r.status_code == 400
    assert uploader.uploads == []
    assert list(settings.upload_dir.glob("*")) == []


async def test_failed_cover_upload_reports_audio_url(client: AsyncClient, make, admin, uploader, caplog):
    artist = await make.artist()
    uploader.fail_folders.add("dotify/covers")
    with caplog.at_level(logging.WARNING, logger="dotify_server.routers.songs"):
        r = await client.post(
            "/api/v1/songs",
            data={"title": "Half Done", "artist_id": str(artist["id"]), "duration": "90"},
            files={
                "audio": ("track.mp3", b"not really audio", "audio/mpeg"),
                "cover": ("cover.jpg", b"jpg", "image/jpeg"),
            },
            headers=admin["headers"],
        )
    assert r.status_code == 502
    [(name, folder)] = uploader.uploads
    assert folder == "dotify/songs"
    assert f"https://media.test/dotify/songs/{name}" in caplog.text
    assert list(settings.upload_dir.glob("*")) == []
    assert (await client.get("/api/v1/songs")).json()["total"] == 0



async def test_create_song_missing_refs(client: AsyncClient, make, admin, uploader):
    artist = await make.artist()
    base = {"title": "Lost", "artist_id": str(artist["id"]), "duration": "60"}
    audio = {"audio": ("a.mp3", b"x", "audio/mpeg")}

    r = await client.post("/api/v1/songs", data={**base, "artist_id": "999"}, files=audio, headers=admin["headers"])
    assert r.status_code == 404
    r = await client.post("/api/v1/songs", data={**base, "album_id": "999"}, files=audio, headers=admin["headers"])
    assert r.status_code == 404
    r = await client.post(
        "/api/v1/songs", data={**base, "featured_artists": ["999"]}, files=audio, headers=admin["headers"]
    )
    assert r.status_code == 404
    assert r.json()["detail"] == "Featured artist 999 not found"
    assert uploader.uploads == []


async def test_get_song_counts_plays(client: AsyncClient, make):
    artist = await make.artist()
    song = await make.song(artist["id"])
    await client.get(f"/api/v1/songs/{song['id']}")
    r = await client.get(f"/api/v1/songs/{song['id']}")
    assert r.json()["plays"] == 2
    assert (await client.get("/api/v1/songs/999")).status_code == 404


async def test_list_songs(client: AsyncClient, make):
    artist = await make.artist()
    other = await make.artist()
    a = await make.song(artist["id"], title="Blue Train", genres=["Jazz"])
    b = await make.song(artist["id"], title="Giant Steps", genres=["Bebop"])
    c = await make.song(other["id"], title="Train Song", genres=["Folk"])
    await client.get(f"/api/v1/songs/{c['id']}")

    r = await client.get("/api/v1/songs", params={"search": "train"})
    assert [s["id"] for s in r.json()["songs"]] == [c["id"], a["id"]]

    r = await client.get("/api/v1/songs", params={"search": "bebop"})
    assert [s["id"] for s in r.json()["songs"]] == [b["id"]]

    r = await client.get("/api/v1/songs", params={"artist": artist["id"], "genre": "jazz"})
    assert [s["id"] for s in r.json()["songs"]] == [a["id"]]

    top = (await client.get("/api/v1/songs/top", params={"limit": 1})).json()
    assert [s["id"] for s in top] == [c["id"]]

    newest = (await client.get("/api/v1/songs/new-releases")).json()
    assert [s["id"] for s in newest] == [c["id"], b["id"], a["id"]]


async def test_update_song_moves_album(client: AsyncClient, make, admin):
    artist = await make.artist()
    first = await make.album(artist["id"])
    second = await make.album(artist["id"])
    song = await make.song(artist["id"], album_id=str(first["id"]))

    r = await client.put(
        f"/api/v1/songs/{song['id']}", data={"album_id": str(second["id"])}, headers=admin["headers"]
    )
    assert r.status_code == 200
    assert r.json()["album_id"] == second["id"]
    assert (await client.get(f"/api/v1/albums/{first['id']}")).json()["songs"] == []
    assert (await client.get(f"/api/v1/albums/{second['id']}")).json()["songs"] == [song["id"]]

    r = await client.put(f"/api/v1/songs/{song['id']}", data={"clear_album": "true"}, headers=admin["headers"])
    assert r.json()["album_id"] is None


async def test_update_song_clears_featured_artists(client: AsyncClient, make, admin):
    artist = await make.artist()
    guest = await make.artist()
    song = await make.song(artist["id"], featured_artists=[str(guest["id"])])
    assert song["featured_artists"] == [guest["id"]]

    r = await client.put(
        f"/api/v1/songs/{song['id']}",
        data={"clear_featured": "true", "featured_artists": [str(guest["id"])]},
        headers=admin["headers"],
    )
    assert r.status_code == 400

    r = await client.put(
        f"/api/v1/songs/{song['id']}", data={"clear_featured": "true"}, headers=admin["headers"]
    )
    assert r.status_code == 200
    assert r.json()["featured_artists"] == []


async def test_delete_song_leaves_everywhere(client: AsyncClient, make, admin, user):
    artist = await make.artist()
    album = await make.album(artist["id"])
    song = await make.song(artist["id"], album_id=str(album["id"]))
    playlist = await make.playlist(user)
    await client.put(
        f"/api/v1/playlists/{playlist['id']}/add-songs", json={"song_ids": [song["id"]]}, headers=user["headers"]
    )
    await client.put(f"/api/v1/users/like-song/{song['id']}", headers=user["headers"])

    r = await client.delete(f"/api/v1/songs/{song['id']}", headers=admin["headers"])
    assert r.status_code == 200

    assert (await client.get(f"/api/v1/artists/{artist['id']}")).json()["songs"] == []
    assert (await client.get(f"/api/v1/albums/{album['id']}")).json()["songs"] == []
    assert (await client.get(f"/api/v1/playlists/{playlist['id']}")).json()["songs"] == []
    me = (await client.get("/api/v1/users/profile", headers=user["headers"])).json()
    assert me["liked_songs"] == []
