# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Association tables for set-valued relations (likes, follows, collaborators, features)."""

from sqlalchemy import Column, DateTime, ForeignKey, Table, func

from dotify_server.models.base import Base


def _membership_table(name: str, owner_column: str, owner_table: str, member_column: str, member_table: str) -> Table:
    """Two-column set table; the composite primary key keeps membership unique."""
    return Table(
        name,
        Base.metadata,
        Column(owner_column, ForeignKey(f"{owner_table}.id", ondelete="CASCADE"), primary_key=True),
        Column(member_column, ForeignKey(f"{member_table}.id", ondelete="CASCADE"), primary_key=True),
        Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
    )


user_liked_songs = _membership_table("user_liked_songs", "user_id", "users", "song_id", "songs")
user_liked_albums = _membership_table("user_liked_albums", "user_id", "users", "album_id", "albums")
user_followed_artists = _membership_table("user_followed_artists", "user_id", "users", "artist_id", "artists")
user_followed_playlists = _membership_table(
    "user_followed_playlists", "user_id", "users", "playlist_id", "playlists"
)
playlist_collaborators = _membership_table("playlist_collaborators", "playlist_id", "playlists", "user_id", "users")
song_featured_artists = _membership_table("song_featured_artists", "song_id", "songs", "artist_id", "artists")
