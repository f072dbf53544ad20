# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later
"""Initial catalog schema: users, artists, albums, songs, playlists and their link tables.

Revision ID: 0001_initial_catalog
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial_catalog"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _membership(name: str, owner: str, owner_table: str, member: str, member_table: str) -> None:
    op.create_table(
        name,
        sa.Column(owner, sa.Integer(), sa.ForeignKey(f"{owner_table}.id", ondelete="CASCADE"), primary_key=True),
        sa.Column(member, sa.Integer(), sa.ForeignKey(f"{member_table}.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("profile_picture", sa.String(512), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "artists",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("image", sa.String(512), nullable=False),
        sa.Column("followers", sa.Integer(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_artists_name", "artists", ["name"], unique=True)

    op.create_table(
        "artist_genres",
        sa.Column("artist_id", sa.Integer(), sa.ForeignKey("artists.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("name", sa.String(64), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False),
    )

    op.create_table(
        "albums",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("artist_id", sa.Integer(), sa.ForeignKey("artists.id"), nullable=False),
        sa.Column("release_date", sa.Date(), nullable=False),
        sa.Column("cover_image", sa.String(512), nullable=False),
        sa.Column("genre", sa.String(64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_explicit", sa.Boolean(), nullable=False),
        sa.Column("likes", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_albums_title", "albums", ["title"], unique=True)
    op.create_index("ix_albums_artist_id", "albums", ["artist_id"])

    op.create_table(
        "songs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("artist_id", sa.Integer(), sa.ForeignKey("artists.id"), nullable=False),
        sa.Column("album_id", sa.Integer(), sa.ForeignKey("albums.id"), nullable=True),
        sa.Column("duration", sa.Float(), nullable=False),
        sa.Column("audio_url", sa.String(1024), nullable=False),
        sa.Column("cover_image", sa.String(512), nullable=False),
        sa.Column("plays", sa.Integer(), nullable=False),
        sa.Column("likes", sa.Integer(), nullable=False),
        sa.Column("is_explicit", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_songs_title", "songs", ["title"])
    op.create_index("ix_songs_artist_id", "songs", ["artist_id"])
    op.create_index("ix_songs_album_id", "songs", ["album_id"])

    op.create_table(
        "song_genres",
        sa.Column("song_id", sa.Integer(), sa.ForeignKey("songs.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("name", sa.String(64), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False),
    )

    op.create_table(
        "playlists",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("creator_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cover_image", sa.String(512), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("followers", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("creator_id", "name", name="uq_playlists_creator_name"),
    )
    op.create_index("ix_playlists_creator_id", "playlists", ["creator_id"])

    op.create_table(
        "playlist_songs",
        sa.Column("playlist_id", sa.Integer(), sa.ForeignKey("playlists.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("song_id", sa.Integer(), sa.ForeignKey("songs.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("added_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    _membership("user_liked_songs", "user_id", "users", "song_id", "songs")
    _membership("user_liked_albums", "user_id", "users", "album_id", "albums")
    _membership("user_followed_artists", "user_id", "users", "artist_id", "artists")
    _membership("user_followed_playlists", "user_id", "users", "playlist_id", "playlists")
    _membership("playlist_collaborators", "playlist_id", "playlists", "user_id", "users")
    _membership("song_featured_artists", "song_id", "songs", "artist_id", "artists")


def downgrade() -> None:
    for name in (
        "song_featured_artists",
        "playlist_collaborators",
        "user_followed_playlists",
        "user_followed_artists",
        "user_liked_albums",
        "user_liked_songs",
        "playlist_songs",
        "playlists",
        "song_genres",
        "songs",
        "albums",
        "artist_genres",
        "artists",
        "users",
    ):
        op.drop_table(name)
