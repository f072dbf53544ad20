# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Database models."""

from dotify_server.models.base import Base
from dotify_server.models.associations import (
    playlist_collaborators,
    song_featured_artists,
    user_followed_artists,
    user_followed_playlists,
    user_liked_albums,
    user_liked_songs,
)
from dotify_server.models.user import User
from dotify_server.models.artist import Artist, ArtistGenre
from dotify_server.models.album import Album
from dotify_server.models.song import Song, SongGenre
from dotify_server.models.playlist import Playlist, PlaylistSong

__all__ = [
    "Base",
    "User",
    "Artist",
    "ArtistGenre",
    "Album",
    "Song",
    "SongGenre",
    "Playlist",
    "PlaylistSong",
    "playlist_collaborators",
    "song_featured_artists",
    "user_followed_artists",
    "user_followed_playlists",
    "user_liked_albums",
    "user_liked_songs",
]
