# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest fixtures. Tests run against a throwaway SQLite file; tables are rebuilt per test."""

import os
import tempfile
import uuid
from pathlib import Path

_tmp = tempfile.mkdtemp(prefix="dotify-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp}/test.db"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["UPLOAD_DIR"] = f"{_tmp}/uploads"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from dotify_server.auth import create_access_token  # noqa: E402
from dotify_server.database import async_session_maker, drop_db, init_db  # noqa: E402
from dotify_server.errors import UploadFailed  # noqa: E402
from dotify_server.main import app  # noqa: E402
from dotify_server.services import accounts  # noqa: E402
from dotify_server.services.media import MediaUploader, get_media_uploader  # noqa: E402


class FakeUploader(MediaUploader):
    """Records uploads and hands back predictable URLs instead of calling the media host."""

    def __init__(self):
        super().__init__("test-cloud", "key", "secret")
        self.uploads: list[tuple[str, str]] = []
        self.fail_folders: set[str] = set()

    async def upload(self, path: Path, folder: str) -> str:
        try:
            if folder in self.fail_folders:
                raise UploadFailed("Failed to upload to cloudinary.")
            self.uploads.append((path.name, folder))
            return f"https://media.test/{folder}/{path.name}"
        finally:
            path.unlink(missing_ok=True)


@pytest.fixture(autouse=True)
async def database():
    await init_db()
    yield
    await drop_db()


@pytest.fixture
async def db():
    async with async_session_maker() as session:
        yield session


@pytest.fixture
def uploader():
    fake = FakeUploader()
    app.dependency_overrides[get_media_uploader] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_media_uploader, None)


@pytest.fixture
async def client(uploader):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _make_user(is_admin: bool) -> dict:
    u = uuid.uuid4().hex[:8]
    async with async_session_maker() as session:
        user = await accounts.register_user(
            session,
            name=f"user {u}",
            email=f"user_{u}@example.com",
            password="testpass123",
            is_admin=is_admin,
        )
    token = create_access_token({"sub": str(user.id)})
    return {"id": user.id, "headers": {"Authorization": f"Bearer {token}"}}


@pytest.fixture
async def admin():
    return await _make_user(is_admin=True)


@pytest.fixture
async def user():
    return await _make_user(is_admin=False)


@pytest.fixture
async def other_user():
    return await _make_user(is_admin=False)


class CatalogFactory:
    """Creates catalog entries through the API as the admin."""

    def __init__(self, client: AsyncClient, admin: dict):
        self.client = client
        self.admin = admin

    async def artist(self, name: str | None = None, genres: tuple[str, ...] = ("Rock",), **fields) -> dict:
        data = {"name": name or f"Artist {uuid.uuid4().hex[:6]}", "bio": "A band", "genres": list(genres), **fields}
        r = await self.client.post("/api/v1/artists", data=data, headers=self.admin["headers"])
        assert r.status_code == 201, r.text
        return r.json()

    async def album(self, artist_id: int, title: str | None = None, **fields) -> dict:
        data = {
            "title": title or f"Album {uuid.uuid4().hex[:6]}",
            "artist_id": artist_id,
            "genre": "Rock",
            "description": "Ten songs recorded live",
            **fields,
        }
        r = await self.client.post("/api/v1/albums", data=data, headers=self.admin["headers"])
        assert r.status_code == 201, r.text
        return r.json()

    async def song(self, artist_id: int, title: str | None = None, **fields) -> dict:
        data = {
            "title": title or f"Song {uuid.uuid4().hex[:6]}",
            "artist_id": artist_id,
            "duration": "180",
            "audio_url": "https://media.test/audio.mp3",
            **fields,
        }
        r = await self.client.post("/api/v1/songs", data=data, headers=self.admin["headers"])
        assert r.status_code == 201, r.text
        return r.json()

    async def playlist(self, owner: dict, name: str | None = None, **fields) -> dict:
        data = {"name": name or f"Mix {uuid.uuid4().hex[:6]}", "is_public": "true", **fields}
        r = await self.client.post("/api/v1/playlists", data=data, headers=owner["headers"])
        assert r.status_code == 201, r.text
        return r.json()


@pytest.fixture
async def make(client, admin):
    return CatalogFactory(client, admin)
