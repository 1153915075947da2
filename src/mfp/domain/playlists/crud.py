"""
Playlist CRUD operations for MFP.

Every function edits a store Snapshot, so the playlist map and the playback
state change together inside one transaction. In particular, renaming or
deleting the loaded playlist updates ``current_playlist`` in the same save.
"""

from typing import List

from loguru import logger

from mfp.core.errors import NotFoundError, ValidationError
from mfp.domain.library.models import Playlist, Song, now_stamp
from mfp.domain.playback.shuffle import reshuffle
from mfp.domain.playback.store import Snapshot


def get_playlist(snap: Snapshot, name: str) -> Playlist:
    """
    Look up a playlist by name.

    Raises:
        NotFoundError: If no playlist has that name
    """
    playlist = snap.playlists.get(name)
    if playlist is None:
        raise NotFoundError(f"Playlist '{name}' not found")
    return playlist


def get_current_playlist(snap: Snapshot) -> Playlist:
    """
    Get the loaded playlist.

    Raises:
        NotFoundError: If nothing is loaded
    """
    if not snap.state.current_playlist:
        raise NotFoundError("No playlist is currently loaded")
    return get_playlist(snap, snap.state.current_playlist)


def _validate_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError("Playlist name cannot be empty")
    return name


def save_playlist(snap: Snapshot, name: str, url: str, songs: List[Song]) -> Playlist:
    """
    Store a playlist under name, replacing its songs if it already exists.

    Args:
        snap: Store snapshot
        name: Playlist name
        url: Source playlist URL
        songs: Songs in source order

    Returns:
        The stored playlist
    """
    name = _validate_name(name)
    if name in snap.playlists:
        return refresh_playlist(snap, name, songs, url=url)

    playlist = Playlist(name=name, url=url, songs=list(songs), last_updated=now_stamp())
    snap.playlists[name] = playlist
    logger.info(f"Added playlist '{name}' with {len(songs)} songs")
    return playlist


def refresh_playlist(
    snap: Snapshot, name: str, songs: List[Song], url: str = ""
) -> Playlist:
    """
    Replace a playlist's songs wholesale.

    If it is the loaded playlist, the position is kept in range and a new
    shuffle order is generated when the song count changed.
    """
    old = get_playlist(snap, name)
    playlist = old._replace(
        songs=list(songs), url=url or old.url, last_updated=now_stamp()
    )
    snap.playlists[name] = playlist

    state = snap.state
    if state.current_playlist == name:
        count = len(playlist.songs)
        if state.current_song_index >= count:
            state.current_song_index = 0
            state.position = 0
        if state.is_shuffle and count != len(old.songs):
            reshuffle(state, count)

    logger.info(f"Refreshed playlist '{name}': {len(old.songs)} -> {len(songs)} songs")
    return playlist


def rename_playlist(snap: Snapshot, old_name: str, new_name: str) -> Playlist:
    """
    Rename a playlist, following it in the playback state if loaded.

    Raises:
        NotFoundError: If old_name does not exist
        ValidationError: If new_name is empty or already taken
    """
    playlist = get_playlist(snap, old_name)
    new_name = _validate_name(new_name)
    if new_name in snap.playlists:
        raise ValidationError(f"Playlist '{new_name}' already exists")

    renamed = playlist._replace(name=new_name)
    del snap.playlists[old_name]
    snap.playlists[new_name] = renamed

    if snap.state.current_playlist == old_name:
        snap.state.current_playlist = new_name

    logger.info(f"Renamed playlist '{old_name}' to '{new_name}'")
    return renamed


def delete_playlist(snap: Snapshot, name: str) -> bool:
    """
    Delete a playlist, unloading it if it was current.

    Returns:
        True if the deleted playlist was the loaded one

    Raises:
        NotFoundError: If the playlist does not exist
    """
    get_playlist(snap, name)
    del snap.playlists[name]

    was_current = snap.state.current_playlist == name
    if was_current:
        snap.state.current_playlist = ""
        snap.state.is_playing = False
        snap.state.reset_navigation()

    logger.info(f"Deleted playlist '{name}'")
    return was_current


def load_playlist(snap: Snapshot, name: str) -> Playlist:
    """
    Make a playlist current, starting from its first song.

    Raises:
        NotFoundError: If the playlist does not exist
    """
    playlist = get_playlist(snap, name)
    state = snap.state
    state.current_playlist = name
    state.reset_navigation()
    if state.is_shuffle:
        reshuffle(state, len(playlist.songs))
    return playlist
