# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Song model."""

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dotify_server.models.associations import song_featured_artists
from dotify_server.models.base import Base
from dotify_server.models.timestamp import TimestampMixin


class Song(Base, TimestampMixin):
    """Music track. Always owned by an artist, optionally on an album."""

    __tablename__ = "songs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    artist_id: Mapped[int] = mapped_column(ForeignKey("artists.id"), nullable=False, index=True)
    album_id: Mapped[int | None] = mapped_column(ForeignKey("albums.id"), nullable=True, index=True)
    duration: Mapped[float] = mapped_column(Float, nullable=False)  # seconds
    audio_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    cover_image: Mapped[str] = mapped_column(String(512), nullable=False)
    plays: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_explicit: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    genre_tags: Mapped[list["SongGenre"]] = relationship(
        "SongGenre", cascade="all, delete-orphan", order_by="SongGenre.position"
    )
    featured_artists: Mapped[list["Artist"]] = relationship(
        "Artist", secondary=song_featured_artists, order_by="Artist.id"
    )

    @property
    def genres(self) -> list[str]:
        return [g.name for g in self.genre_tags]

    @property
    def featured_artist_ids(self) -> list[int]:
        return [a.id for a in self.featured_artists]


class SongGenre(Base):
    """Genre tag on a song."""

    __tablename__ = "song_genres"

    song_id: Mapped[int] = mapped_column(
        ForeignKey("songs.id", ondelete="CASCADE"), primary_key=True
    )
    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
