# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Playlist models."""

from datetime import datetime
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dotify_server.models.associations import playlist_collaborators
from dotify_server.models.base import Base
from dotify_server.models.timestamp import TimestampMixin


class Playlist(Base, TimestampMixin):
    """User playlist. The creator is fixed; collaborators may edit the song list."""

    __tablename__ = "playlists"
    __table_args__ = (UniqueConstraint("creator_id", "name", name="uq_playlists_creator_name"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    creator_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_image: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    followers: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    entries: Mapped[list["PlaylistSong"]] = relationship(
        "PlaylistSong", viewonly=True, order_by="PlaylistSong.position"
    )
    collaborators: Mapped[list["User"]] = relationship(
        "User", secondary=playlist_collaborators, viewonly=True, order_by="User.id"
    )

    @property
    def song_ids(self) -> list[int]:
        return [e.song_id for e in self.entries]

    @property
    def collaborator_ids(self) -> list[int]:
        return [u.id for u in self.collaborators]


class PlaylistSong(Base):
    """Song in a playlist with position."""

    __tablename__ = "playlist_songs"

    playlist_id: Mapped[int] = mapped_column(
        ForeignKey("playlists.id", ondelete="CASCADE"), primary_key=True
    )
    song_id: Mapped[int] = mapped_column(
        ForeignKey("songs.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
