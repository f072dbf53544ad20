# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""User model."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dotify_server.models.associations import (
    user_followed_artists,
    user_followed_playlists,
    user_liked_albums,
    user_liked_songs,
)
from dotify_server.models.base import Base
from dotify_server.models.timestamp import TimestampMixin


class User(Base, TimestampMixin):
    """User account with liked and followed catalog entries."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    profile_picture: Mapped[str] = mapped_column(String(512), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Toggled through the association tables by the integrity engine.
    liked_songs: Mapped[list["Song"]] = relationship(
        "Song", secondary=user_liked_songs, viewonly=True, order_by="Song.id"
    )
    liked_albums: Mapped[list["Album"]] = relationship(
        "Album", secondary=user_liked_albums, viewonly=True, order_by="Album.id"
    )
    followed_artists: Mapped[list["Artist"]] = relationship(
        "Artist", secondary=user_followed_artists, viewonly=True, order_by="Artist.id"
    )
    followed_playlists: Mapped[list["Playlist"]] = relationship(
        "Playlist", secondary=user_followed_playlists, viewonly=True, order_by="Playlist.id"
    )

    @property
    def liked_song_ids(self) -> list[int]:
        return [s.id for s in self.liked_songs]

    @property
    def liked_album_ids(self) -> list[int]:
        return [a.id for a in self.liked_albums]

    @property
    def followed_artist_ids(self) -> list[int]:
        return [a.id for a in self.followed_artists]

    @property
    def followed_playlist_ids(self) -> list[int]:
        return [p.id for p in self.followed_playlists]
