# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""User account, profile and like/follow endpoint tests."""

from httpx import AsyncClient


async def test_register_returns_token_and_user(client: AsyncClient):
    r = await client.post(
        "/api/v1/users/register",
        json={"name": "Ada", "email": "Ada@Example.com", "password": "secret12"},
    )
    assert r.status_code == 201
    data = r.json()
    assert data["access_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "ada@example.com"
    assert data["user"]["liked_songs"] == []
    assert "password_hash" not in data["user"]


async def test_register_duplicate_email_conflicts(client: AsyncClient):
    body = {"name": "Ada", "email": "ada@example.com", "password": "secret12"}
    assert (await client.post("/api/v1/users/register", json=body)).status_code == 201
    r = await client.post("/api/v1/users/register", json={**body, "email": "ADA@example.com"})
    assert r.status_code == 409
    assert r.json()["detail"] == "User already exists"


async def test_register_short_password_is_bad_request(client: AsyncClient):
    r = await client.post(
        "/api/v1/users/register",
        json={"name": "Ada", "email": "ada@example.com", "password": "123"},
    )
    assert r.status_code == 400
    assert "detail" in r.json()


async def test_login_invalid_credentials(client: AsyncClient):
    """Login with wrong password returns 401."""
    await client.post(
        "/api/v1/users/register",
        json={"name": "Ada", "email": "ada@example.com", "password": "secret12"},
    )
    r = await client.post("/api/v1/users/login", json={"email": "ada@example.com", "password": "wrong"})
    assert r.status_code == 401
    r = await client.post("/api/v1/users/login", json={"email": "nobody@example.com", "password": "secret12"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid email or password"


async def test_login_then_profile(client: AsyncClient):
    await client.post(
        "/api/v1/users/register",
        json={"name": "Ada", "email": "ada@example.com", "password": "secret12"},
    )
    r = await client.post("/api/v1/users/login", json={"email": "ada@example.com", "password": "secret12"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = await client.get("/api/v1/users/profile", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Ada"


async def test_profile_requires_auth(client: AsyncClient):
    r = await client.get("/api/v1/users/profile")
    assert r.status_code == 401
    assert r.json()["detail"] == "No token found in header."

    r = await client.get("/api/v1/users/profile", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


async def test_update_profile(client: AsyncClient, user, other_user, uploader):
    r = await client.put(
        "/api/v1/users/profile",
        data={"name": "Renamed"},
        files={"profile_picture": ("me.png", b"png-bytes", "image/png")},
        headers=user["headers"],
    )
    assert r.status_code == 200
    data = r.json()
    assert data["name"] == "Renamed"
    assert data["profile_picture"].startswith("https://media.test/dotify/users/")
    assert uploader.uploads[-1][1] == "dotify/users"


async def test_update_profile_email_taken(client: AsyncClient, user, other_user, uploader):
    other = (await client.get("/api/v1/users/profile", headers=other_user["headers"])).json()
    r = await client.put(
        "/api/v1/users/profile",
        data={"email": other["email"]},
        files={"profile_picture": ("me.png", b"png-bytes", "image/png")},
        headers=user["headers"],
    )
    assert r.status_code == 409
    # Rejected before anything reached the media host
    assert uploader.uploads == []


async def test_like_song_toggles(client: AsyncClient, make, user):
    artist = await make.artist()
    song = await make.song(artist["id"])

    r = await client.put(f"/api/v1/users/like-song/{song['id']}", headers=user["headers"])
    assert r.status_code == 200
    assert r.json() == {"status": "added", "ids": [song["id"]], "count": 1}

    r = await client.put(f"/api/v1/users/like-song/{song['id']}", headers=user["headers"])
    assert r.json() == {"status": "removed", "ids": [], "count": 0}


async def test_like_missing_album_not_found(client: AsyncClient, user):
    r = await client.put("/api/v1/users/like-album/999", headers=user["headers"])
    assert r.status_code == 404
    assert r.json()["detail"] == "Album not found"


async def test_follow_artist_shows_on_profile(client: AsyncClient, make, user):
    artist = await make.artist()
    r = await client.put(f"/api/v1/users/follow-artist/{artist['id']}", headers=user["headers"])
    assert r.json()["count"] == 1

    me = (await client.get("/api/v1/users/profile", headers=user["headers"])).json()
    assert me["followed_artists"] == [artist["id"]]
    assert (await client.get(f"/api/v1/artists/{artist['id']}")).json()["followers"] == 1
