# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Media ingestion: stage uploaded files locally, proxy them to Cloudinary, keep only the URL."""

import asyncio
import logging
import shutil
import uuid
from pathlib import Path

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from fastapi import UploadFile
from mutagen import File as MutagenFile
from mutagen import MutagenError

from dotify_server.config import settings
from dotify_server.errors import UploadFailed

logger = logging.getLogger(__name__)

ARTISTS = "artists"
ALBUMS = "albums"
SONGS = "songs"
COVERS = "covers"
PLAYLISTS = "playlists"
USERS = "users"


def media_folder(kind: str) -> str:
    """Destination folder on the media host, e.g. ``dotify/songs``."""
    return f"{settings.media_folder.strip('/')}/{kind}"


def configure_cloudinary() -> bool:
    """Point the Cloudinary SDK at the configured account. Returns False when credentials are missing."""
    cloudinary.config(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        secure=True,
    )
    return bool(
        settings.cloudinary_cloud_name and settings.cloudinary_api_key and settings.cloudinary_api_secret
    )


def has_file(upload: UploadFile | None) -> bool:
    """Browsers send an empty part for an untouched file input."""
    return upload is not None and bool(upload.filename)


def _copy_to(upload: UploadFile, path: Path) -> None:
    upload.file.seek(0)
    with path.open("wb") as fh:
        shutil.copyfileobj(upload.file, fh)


async def save_upload(upload: UploadFile) -> Path:
    """Copy an uploaded file into the scratch directory and return its path."""
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename or "").suffix.lower()
    path = upload_dir / f"{uuid.uuid4().hex}{suffix}"
    await asyncio.to_thread(_copy_to, upload, path)
    return path


def audio_duration(path: Path) -> float | None:
    """Audio length in seconds from the file's own headers, or None when unreadable."""
    try:
        audio = MutagenFile(str(path))
    except MutagenError:
        return None
    if audio is None or not getattr(audio, "info", None):
        return None
    length = getattr(audio.info, "length", None)
    return round(float(length), 3) if length else None


async def read_duration(path: Path) -> float | None:
    return await asyncio.to_thread(audio_duration, path)


class MediaUploader:
    """Uploads local files to Cloudinary and returns their ``secure_url``.

    The local file is removed whether or not the upload succeeds.
    """

    def __init__(
        self,
        cloud_name: str | None,
        api_key: str | None,
        api_secret: str | None,
        *,
        timeout: float = 60.0,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "MediaUploader":
        return cls(
            settings.cloudinary_cloud_name,
            settings.cloudinary_api_key,
            settings.cloudinary_api_secret,
            timeout=settings.upload_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    async def upload(self, path: Path, folder: str) -> str:
        try:
            if not self.configured:
                raise UploadFailed("Media storage is not configured")
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                str(path),
                folder=folder,
                resource_type="auto",
                cloud_name=self.cloud_name,
                api_key=self.api_key,
                api_secret=self.api_secret,
                timeout=self.timeout,
            )
            secure_url = (result or {}).get("secure_url")
            if not secure_url:
                logger.warning("Media upload to %s returned no secure_url", folder)
                raise UploadFailed("Failed to upload to cloudinary.")
            return secure_url
        except (cloudinary.exceptions.Error, OSError) as e:
            logger.warning("Media upload to %s failed: %s", folder, e)
            raise UploadFailed("Failed to upload to cloudinary.") from e
        finally:
            path.unlink(missing_ok=True)

    async def ingest(self, upload: UploadFile | None, kind: str) -> str | None:
        """Stage and upload an optional form file; None when no file was sent."""
        if not has_file(upload):
            return None
        path = await save_upload(upload)
        return await self.upload(path, media_folder(kind))


def get_media_uploader() -> MediaUploader:
    """Dependency: the configured uploader. Tests override this."""
    return MediaUploader.from_settings()
