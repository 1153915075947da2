"""YouTube playlist fetching using yt-dlp.

Only metadata is extracted; mpv streams the watch URLs itself.
"""

import re
from typing import List, Optional

import yt_dlp
from loguru import logger

from .exceptions import EmptyPlaylistError, InvalidPlaylistURLError, YouTubeError
from .models import Song

PLAYLIST_URL_RE = re.compile(
    r"(?:youtube\.com/playlist\?list=|youtu\.be/playlist\?list=)([a-zA-Z0-9_-]+)",
    re.IGNORECASE,
)


def is_valid_playlist_url(url: str) -> bool:
    """Check whether a URL points at a YouTube playlist."""
    return PLAYLIST_URL_RE.search(url) is not None


def extract_playlist_id(url: str) -> str:
    """Extract the playlist ID from a YouTube playlist URL.

    Raises:
        InvalidPlaylistURLError: If URL is not a YouTube playlist URL
    """
    match = PLAYLIST_URL_RE.search(url)
    if not match:
        raise InvalidPlaylistURLError(f"Invalid YouTube playlist URL: {url}")
    return match.group(1)


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def format_duration(seconds: Optional[float]) -> str:
    """Format seconds as M:SS (or H:MM:SS); "Unknown" when missing."""
    if not seconds or seconds < 0:
        return "Unknown"
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def entry_to_song(entry: dict) -> Optional[Song]:
    """Convert a flat yt-dlp playlist entry to a Song, or None if unusable."""
    video_id = entry.get("id")
    if not video_id:
        return None

    duration = entry.get("duration_string")
    if not duration or duration == "NA":
        duration = format_duration(entry.get("duration"))

    return Song(
        title=entry.get("title") or "Unknown",
        video_id=video_id,
        duration=duration,
        url=watch_url(video_id),
    )


def fetch_playlist_songs(playlist_id: str, playlist_end: int = 100) -> List[Song]:
    """Fetch the songs of a YouTube playlist without downloading anything.

    Args:
        playlist_id: YouTube playlist ID
        playlist_end: Maximum number of entries to fetch

    Returns:
        Songs in playlist order

    Raises:
        EmptyPlaylistError: If no playable entries were found
        YouTubeError: If the playlist cannot be accessed
    """
    ydl_opts = {
        "quiet": True,
        "no_warnings": True,
        "extract_flat": True,  # Don't download, just extract info
        "playlistend": playlist_end,
    }
    playlist_url = f"https://www.youtube.com/playlist?list={playlist_id}"

    try:
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            info = ydl.extract_info(playlist_url, download=False)
    except yt_dlp.utils.DownloadError as e:
        raise YouTubeError(f"Failed to access playlist: {e}") from e

    if not info:
        raise YouTubeError("Failed to extract playlist information")

    songs = []
    for entry in info.get("entries") or []:
        if not entry:  # Unavailable videos come back as None
            continue
        song = entry_to_song(entry)
        if song:
            songs.append(song)

    if not songs:
        raise EmptyPlaylistError("No songs found in playlist")

    logger.info(f"Fetched playlist {playlist_id}: {len(songs)} songs")
    return songs
