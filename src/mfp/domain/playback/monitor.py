"""
Playback monitor for MFP.

Polls the live mpv session at a fixed interval and folds what it observes
into the persisted state: elapsed position, player-driven track changes, and
process exit. Persisted observations are therefore at most one poll interval
stale. The monitor is the only writer of observed position data.
"""

import threading
from pathlib import Path
from typing import Optional, Tuple

from loguru import logger

from mfp.core.config import Config
from mfp.core.errors import LaunchError, PersistenceError, TransportError
from mfp.core.output import log
from mfp.domain.library.models import Playlist

from . import ipc
from .navigation import apply_position, position_for_song, resolved_order, song_at
from .player import Session, remove_endpoint, write_playlist_file
from .shuffle import reshuffle
from .state import PlaybackState
from .store import Snapshot, StateStore


def song_for_locator(playlist: Playlist, locator: str) -> Optional[int]:
    """Index of the first song whose URL is locator."""
    for index, song in enumerate(playlist.songs):
        if song.url == locator:
            return index
    return None


def observe_playlist_pos(
    state: PlaybackState,
    playlist: Playlist,
    playlist_pos: int,
    locator: Optional[str] = None,
) -> Optional[int]:
    """Fold mpv's playlist position into state.

    When mpv reports what it loaded at that position, the song is found by
    its URL. mpv keeps the list it was started with, which differs from the
    stored playlist after a refresh.

    Returns:
        The song index now current, or None if the position does not map
        onto the loaded playlist (state left untouched)
    """
    song_index = song_at(state, playlist, playlist_pos)

    in_range = song_index is not None and song_index < len(playlist.songs)

    if locator is not None and not (in_range and playlist.songs[song_index].url == locator):
        found = song_for_locator(playlist, locator)
        if found is None:
            return None
        position = position_for_song(state, found)
        if position is not None:
            apply_position(state, position)
        state.current_song_index = found
        return found

    if not in_range:
        return None
    apply_position(state, playlist_pos)
    return song_index


def renamed_to(snap: Snapshot, session: Session) -> Optional[str]:
    """New name of the session's playlist if it was renamed while playing."""
    current = snap.state.current_playlist
    playlist = snap.playlists.get(current)
    if playlist is None or session.playlist_name in snap.playlists:
        return None
    if session.playlist_url and playlist.url != session.playlist_url:
        return None
    return current


def handle_exit(store: StateStore, session: Session) -> None:
    """Record that the session's process is gone and clean up its socket."""
    with store.transaction() as snap:
        snap.state.is_playing = False
        snap.state.position = 0
    remove_endpoint(session.socket_path)


def is_loop_restart(state: PlaybackState, last_pos: Optional[int], playlist_pos: int) -> bool:
    """True when mpv itself wrapped a looping shuffled playlist back to the start.

    A cursor already moved off the last entry means a command reloaded the
    player, so that wrap has been handled.
    """
    length = len(state.shuffle_order)
    return (
        state.is_shuffle
        and state.is_loop
        and length > 1
        and playlist_pos == 0
        and last_pos == length - 1
        and state.shuffle_index == length - 1
    )


def tick(store: StateStore, config: Config, session: Session) -> Tuple[Session, bool]:
    """Run one monitor step.

    Returns:
        (updated_session, finished) - finished is True once mpv has exited
    """
    if session.process.poll() is not None:
        logger.info(f"MPV process ended (code {session.process.returncode})")
        handle_exit(store, session)
        return session, True

    timeout = config.player.ipc_timeout
    try:
        playlist_pos = ipc.get_playlist_pos(session.socket_path, timeout=timeout)
        time_pos = ipc.get_time_pos(session.socket_path, timeout=timeout)
    except TransportError as e:
        logger.debug(f"Monitor tick skipped: {e}")
        return session, False

    changed_track = playlist_pos is not None and playlist_pos != session.last_playlist_pos
    locator = None
    if changed_track:
        try:
            locator = ipc.get_playlist_entry(session.socket_path, playlist_pos, timeout=timeout)
        except TransportError as e:
            logger.debug(f"Playlist entry unavailable: {e}")

    now_playing = None
    reloaded = None
    new_name = None

    with store.transaction() as snap:
        state = snap.state
        playlist = snap.playlists.get(state.current_playlist)
        if playlist is None:
            return session, False
        if state.current_playlist != session.playlist_name:
            new_name = renamed_to(snap, session)
            if new_name is None:
                # Another invocation loaded something else; nothing to reconcile
                return session, False

        if changed_track and is_loop_restart(state, session.last_playlist_pos, playlist_pos):
            reshuffle(state, len(playlist.songs))
            reloaded = resolved_order(state, playlist)
            now_playing = playlist.songs[state.current_song_index].title
            state.position = 0
            time_pos = None
        elif changed_track:
            song_index = observe_playlist_pos(state, playlist, playlist_pos, locator)
            if song_index is not None:
                now_playing = playlist.songs[song_index].title
                state.position = 0

        if time_pos is not None:
            state.position = int(time_pos)

    if reloaded is not None:
        try:
            write_playlist_file(Path(session.playlist_file), reloaded)
            ipc.set_shuffle(session.socket_path, session.playlist_file, 0, timeout=timeout)
        except (TransportError, LaunchError) as e:
            logger.warning(f"Could not reload reshuffled playlist: {e}")

    if new_name is not None:
        logger.info(f"Following rename of '{session.playlist_name}' to '{new_name}'")
        session = session._replace(playlist_name=new_name)
    if changed_track:
        session = session._replace(last_playlist_pos=playlist_pos)
    if time_pos is not None:
        session = session._replace(last_position=time_pos)
    if now_playing:
        log(f"♪ Now playing: {now_playing}", "info")

    return session, False


class PlaybackMonitor:
    """Background polling loop bound to one Session."""

    def __init__(self, store: StateStore, config: Config, session: Session):
        self.store = store
        self.config = config
        self.session = session
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._run, daemon=True, name="PlaybackMonitor"
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def is_alive(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread:
            self._thread.join(timeout)

    def _run(self) -> None:
        interval = self.config.player.poll_interval
        while not self._stop.is_set():
            try:
                self.session, finished = tick(self.store, self.config, self.session)
            except PersistenceError as e:
                logger.warning(f"Monitor could not persist state: {e}")
                finished = False
            if finished:
                break
            self._stop.wait(interval)
        logger.debug("Playback monitor stopped")
