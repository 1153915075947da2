"""
Music library domain models.

Contains data structures for representing songs and playlists.
"""

from datetime import datetime
from typing import Any, Dict, List, NamedTuple

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class Song(NamedTuple):
    """A single playable song.

    Identity is the external video ID; songs are never mutated, only replaced
    when their playlist is refreshed.
    """
    title: str
    video_id: str
    duration: str = "Unknown"  # Display label, e.g. "3:45"
    url: str = ""  # Playable locator handed to mpv


class Playlist(NamedTuple):
    """Named, ordered sequence of songs with its source URL."""
    name: str
    url: str
    songs: List[Song]
    last_updated: str = ""


def now_stamp() -> str:
    """Timestamp used for playlist refreshes."""
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def song_to_dict(song: Song) -> Dict[str, Any]:
    return song._asdict()


def song_from_dict(data: Dict[str, Any]) -> Song:
    """Build a Song from its persisted form.

    Raises:
        KeyError: If title or video_id is missing
    """
    return Song(
        title=str(data["title"]),
        video_id=str(data["video_id"]),
        duration=str(data.get("duration") or "Unknown"),
        url=str(data.get("url") or ""),
    )


def playlist_to_dict(playlist: Playlist) -> Dict[str, Any]:
    return {
        "name": playlist.name,
        "url": playlist.url,
        "songs": [song_to_dict(s) for s in playlist.songs],
        "last_updated": playlist.last_updated,
    }


def playlist_from_dict(name: str, data: Dict[str, Any]) -> Playlist:
    """Build a Playlist from its persisted form.

    The map key wins over the stored ``name`` field.

    Raises:
        KeyError, TypeError: If the record is malformed
    """
    return Playlist(
        name=name,
        url=str(data.get("url") or ""),
        songs=[song_from_dict(s) for s in data.get("songs") or []],
        last_updated=str(data.get("last_updated") or ""),
    )
