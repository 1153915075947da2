"""
MPV player integration with JSON IPC for MFP
Functional approach with explicit state management
"""

import os
import subprocess
from pathlib import Path
from typing import List, NamedTuple, Optional, Sequence

from loguru import logger

from mfp.core.config import Config
from mfp.core.errors import LaunchError, TransportError
from mfp.domain.library.models import Playlist, Song

from . import ipc
from .navigation import resolved_order, sequence_position
from .state import PlaybackState


class Session(NamedTuple):
    """Live player process for one playback run.

    Exists only inside the launching process; other invocations reach the
    player through the control socket instead.
    """

    process: subprocess.Popen
    socket_path: str
    playlist_file: str
    playlist_name: str = ""
    playlist_url: str = ""  # Identifies the playlist across renames
    last_playlist_pos: Optional[int] = None  # Last mpv playlist-pos seen by the Monitor
    last_position: float = 0.0  # Last mpv time-pos seen by the Monitor


def check_mpv_available(mpv_path: str = "mpv") -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            [mpv_path, "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def render_playlist(songs: Sequence[Song]) -> str:
    """Render songs as extended M3U text."""
    lines = ["#EXTM3U"]
    for song in songs:
        title = song.title.replace("\n", " ")
        lines.append(f"#EXTINF:-1,{title}")
        lines.append(song.url)
    return "\n".join(lines) + "\n"


def write_playlist_file(path: Path, songs: Sequence[Song]) -> None:
    """Write the ephemeral playlist file, replacing any previous one.

    Raises:
        LaunchError: If the file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_playlist(songs), encoding="utf-8")
    except OSError as e:
        raise LaunchError(f"Could not create playlist file {path}: {e}") from e


def remove_endpoint(socket_path: Optional[str]) -> None:
    """Remove a control socket file if present."""
    if socket_path and os.path.exists(socket_path):
        try:
            os.unlink(socket_path)
        except OSError as e:
            logger.warning(f"Could not remove socket {socket_path}: {e}")


def build_mpv_args(
    config: Config, playlist_file: Path, start: int, volume: int, loop: bool
) -> List[str]:
    """Command line for a playlist session."""
    args = [
        config.player.mpv_path,
        "--no-video",
        "--no-terminal",
        "--quiet",
        f"--input-ipc-server={config.socket_path}",
        f"--volume={volume}",
        f"--playlist={playlist_file}",
        f"--playlist-start={start}",
    ]
    if loop:
        args.append("--loop-playlist=inf")
    return args


def launch(config: Config, playlist: Playlist, state: PlaybackState) -> Session:
    """Start mpv on the playlist in resolved order at the current position.

    Args:
        config: Application configuration
        playlist: Playlist to play
        state: Playback state (mode flags, cursor/index, volume)

    Returns:
        Live Session with the control socket answering

    Raises:
        LaunchError: Playlist file, spawn, or socket handshake failed. No
            process or socket file is left behind.
    """
    songs = resolved_order(state, playlist)
    if not songs:
        raise LaunchError(f"Playlist '{playlist.name}' has no songs")

    playlist_file = config.playlist_file
    write_playlist_file(playlist_file, songs)

    socket_path = str(config.socket_path)
    remove_endpoint(socket_path)

    start = sequence_position(state, playlist)
    cmd = build_mpv_args(config, playlist_file, start, state.volume, state.is_loop)
    logger.info(f"Starting MPV player with socket: {socket_path}")

    try:
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
        )
    except (subprocess.SubprocessError, OSError) as e:
        raise LaunchError(f"Failed to start mpv: {e}") from e

    session = Session(
        process=process,
        socket_path=socket_path,
        playlist_file=str(playlist_file),
        playlist_name=playlist.name,
        playlist_url=playlist.url,
        last_playlist_pos=start,
    )

    try:
        ready = ipc.wait_for_endpoint(socket_path, config.player.socket_wait_timeout)
        if not ready:
            exit_code = process.poll()
            if exit_code is not None:
                raise LaunchError(f"mpv exited during startup (code {exit_code})")
            raise LaunchError(
                f"MPV socket not created after {config.player.socket_wait_timeout}s"
            )
    except BaseException:
        kill_session(session)
        raise

    logger.info(f"MPV started (pid {process.pid}) at position {start}")
    return session


def is_session_alive(session: Optional[Session]) -> bool:
    """Check if the session's mpv process is still running."""
    return bool(session and session.process.poll() is None)


def kill_session(session: Session, timeout: float = 2.0) -> None:
    """Terminate the mpv process and remove its socket."""
    if session.process.poll() is None:
        try:
            session.process.kill()
            session.process.wait(timeout=timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Could not kill mpv (pid {session.process.pid}): {e}")
    remove_endpoint(session.socket_path)


def stop_session(session: Session, timeout: float = 2.0) -> None:
    """Ask mpv to quit, then make sure it is gone."""
    try:
        ipc.quit_player(session.socket_path, timeout=timeout)
        session.process.wait(timeout=timeout)
    except TransportError as e:
        logger.debug(f"quit not delivered: {e}")
    except subprocess.TimeoutExpired:
        logger.warning("mpv ignored quit; killing it")
    kill_session(session, timeout=timeout)


def format_time(seconds: float) -> str:
    """Format time in seconds to M:SS format."""
    if seconds < 0:
        return "0:00"

    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"
