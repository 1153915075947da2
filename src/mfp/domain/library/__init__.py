"""Library domain - songs, playlists, and the YouTube source.

This domain handles:
- Song and Playlist models and their persisted form
- YouTube playlist URL validation
- Playlist metadata fetching via yt-dlp
"""

from .models import (
    Song,
    Playlist,
    now_stamp,
    song_to_dict,
    song_from_dict,
    playlist_to_dict,
    playlist_from_dict,
)
from .exceptions import YouTubeError, InvalidPlaylistURLError, EmptyPlaylistError
from .youtube import (
    is_valid_playlist_url,
    extract_playlist_id,
    fetch_playlist_songs,
    format_duration,
)

__all__ = [
    "Song",
    "Playlist",
    "now_stamp",
    "song_to_dict",
    "song_from_dict",
    "playlist_to_dict",
    "playlist_from_dict",
    "YouTubeError",
    "InvalidPlaylistURLError",
    "EmptyPlaylistError",
    "is_valid_playlist_url",
    "extract_playlist_id",
    "fetch_playlist_songs",
    "format_duration",
]
