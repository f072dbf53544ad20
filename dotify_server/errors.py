# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Catalog error taxonomy. Each kind maps to one HTTP status in the API layer."""

from fastapi import status


class CatalogError(Exception):
    """Base class for failures the API reports to the client."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class BadRequest(CatalogError):
    """Missing or invalid input, duplicate batch membership."""

    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(CatalogError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(CatalogError):
    """Authenticated, but not the owner (or not an admin)."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFound(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(CatalogError):
    """Unique field already taken."""

    status_code = status.HTTP_409_CONFLICT


class UploadFailed(CatalogError):
    """The media host rejected or never received the file."""

    status_code = status.HTTP_502_BAD_GATEWAY
