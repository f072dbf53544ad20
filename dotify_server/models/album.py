# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Album model."""

from datetime import date
from sqlalchemy import Boolean, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dotify_server.models.base import Base
from dotify_server.models.timestamp import TimestampMixin


class Album(Base, TimestampMixin):
    """Music album."""

    __tablename__ = "albums"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    artist_id: Mapped[int] = mapped_column(ForeignKey("artists.id"), nullable=False, index=True)
    release_date: Mapped[date] = mapped_column(Date, default=date.today, nullable=False)
    cover_image: Mapped[str] = mapped_column(String(512), nullable=False)
    genre: Mapped[str | None] = mapped_column(String(64), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_explicit: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    songs: Mapped[list["Song"]] = relationship(
        "Song", viewonly=True, order_by="Song.id"
    )

    @property
    def song_ids(self) -> list[int]:
        return [s.id for s in self.songs]
