"""Playlist domain - edits to the stored playlist map.

This domain handles:
- Adding, refreshing, renaming, and deleting playlists
- Loading a playlist into the playback state
"""

from .crud import (
    get_playlist,
    get_current_playlist,
    save_playlist,
    refresh_playlist,
    rename_playlist,
    delete_playlist,
    load_playlist,
)

__all__ = [
    "get_playlist",
    "get_current_playlist",
    "save_playlist",
    "refresh_playlist",
    "rename_playlist",
    "delete_playlist",
    "load_playlist",
]
