# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Artist model."""

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dotify_server.models.base import Base
from dotify_server.models.timestamp import TimestampMixin


class Artist(Base, TimestampMixin):
    """Music artist. Owns albums and songs through their artist_id."""

    __tablename__ = "artists"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str] = mapped_column(String(512), nullable=False)
    followers: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    genre_tags: Mapped[list["ArtistGenre"]] = relationship(
        "ArtistGenre", cascade="all, delete-orphan", order_by="ArtistGenre.position"
    )
    # Back-references are written through the child foreign keys by the integrity engine.
    albums: Mapped[list["Album"]] = relationship(
        "Album", viewonly=True, order_by="Album.id"
    )
    songs: Mapped[list["Song"]] = relationship(
        "Song", viewonly=True, order_by="Song.id"
    )

    @property
    def genres(self) -> list[str]:
        return [g.name for g in self.genre_tags]

    @property
    def album_ids(self) -> list[int]:
        return [a.id for a in self.albums]

    @property
    def song_ids(self) -> list[int]:
        return [s.id for s in self.songs]


class ArtistGenre(Base):
    """Genre tag on an artist."""

    __tablename__ = "artist_genres"

    artist_id: Mapped[int] = mapped_column(
        ForeignKey("artists.id", ondelete="CASCADE"), primary_key=True
    )
    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
