"""
Persisted state store for MFP.

Two JSON records live in the data directory: ``playlists.json`` (name ->
Playlist) and ``state.json`` (PlaybackState). Each is written atomically on
its own, so a failure while writing one can never corrupt the other.

Read-modify-write cycles go through ``StateStore.transaction()``, which holds
an in-process re-entrant lock plus an advisory ``flock`` on ``mfp.lock``.
That serializes the Monitor thread against the command thread, and separate
mfp invocations against each other.
"""

import fcntl
import json
import os
import tempfile
import threading
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, NamedTuple, Optional, Tuple

from loguru import logger

from mfp.core.errors import PersistenceError
from mfp.domain.library.models import Playlist, playlist_from_dict, playlist_to_dict

from .state import DEFAULT_VOLUME, PlaybackState

Playlists = Dict[str, Playlist]


class Snapshot(NamedTuple):
    """Mutable view of both records for the duration of a transaction."""

    playlists: Playlists
    state: PlaybackState


class StateStore:
    """Loads and saves playlists and playback state under one directory."""

    def __init__(
        self,
        data_dir: Path,
        lock_timeout: float = 5.0,
        default_volume: int = DEFAULT_VOLUME,
    ):
        self.data_dir = Path(data_dir)
        self.playlists_file = self.data_dir / "playlists.json"
        self.state_file = self.data_dir / "state.json"
        self.lock_file = self.data_dir / "mfp.lock"
        self.lock_timeout = lock_timeout
        self.default_volume = default_volume

        self._lock = threading.RLock()
        self._depth = 0
        self._snapshot: Optional[Snapshot] = None
        self._lock_fd: Optional[int] = None

    # ------------------------------------------------------------------ load

    def _read_json(self, path: Path) -> Optional[Any]:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable {path.name}: {e}")
            return None

    def _load_playlists(self) -> Playlists:
        data = self._read_json(self.playlists_file)
        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed {self.playlists_file.name}: not an object")
            return {}

        playlists: Playlists = {}
        for name, record in data.items():
            try:
                playlists[name] = playlist_from_dict(name, record)
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed playlist '{name}': {e}")
        return playlists

    def _load_state(self) -> PlaybackState:
        data = self._read_json(self.state_file)
        if data is None:
            return PlaybackState(volume=self.default_volume)
        try:
            return PlaybackState.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed {self.state_file.name}: {e}")
            return PlaybackState(volume=self.default_volume)

    def load(self) -> Tuple[Playlists, PlaybackState]:
        """Load both records; each falls back to defaults independently."""
        playlists = self._load_playlists()
        state = self._load_state()

        if state.current_playlist and state.current_playlist not in playlists:
            logger.warning(
                f"Current playlist '{state.current_playlist}' no longer exists; unloading"
            )
            state.current_playlist = ""
            state.reset_navigation()

        return playlists, state

    # ------------------------------------------------------------------ save

    def _atomic_write(self, path: Path, data: Any) -> None:
        text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=self.data_dir
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise PersistenceError(f"Could not save {path.name}: {e}") from e

    def save_playlists(self, playlists: Playlists) -> None:
        self._atomic_write(
            self.playlists_file,
            {name: playlist_to_dict(p) for name, p in playlists.items()},
        )

    def save_state(self, state: PlaybackState) -> None:
        """Stamp and write the playback state.

        Raises:
            PersistenceError: If the write failed (the change did not happen)
        """
        previous = state.last_updated
        state.last_updated = datetime.now().isoformat(timespec="seconds")
        try:
            self._atomic_write(self.state_file, state.to_dict())
        except PersistenceError:
            state.last_updated = previous
            raise

    def save(self, playlists: Playlists, state: PlaybackState) -> None:
        """Write both records.

        Raises:
            PersistenceError: If either write failed
        """
        self.save_playlists(playlists)
        self.save_state(state)

    # ----------------------------------------------------------- transaction

    def _acquire_file_lock(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.lock_file, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise PersistenceError(f"Could not open state lock: {e}") from e

        deadline = time.monotonic() + self.lock_timeout
        while True:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    os.close(fd)
                    raise PersistenceError(
                        "State is locked by another mfp invocation; try again"
                    )
                time.sleep(0.05)

        self._lock_fd = fd

    def _release_file_lock(self) -> None:
        if self._lock_fd is None:
            return
        try:
            fcntl.flock(self._lock_fd, fcntl.LOCK_UN)
        finally:
            os.close(self._lock_fd)
            self._lock_fd = None

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self) -> Iterator[Snapshot]:
        """Load, yield for mutation, then save whatever changed.

        An exception raised inside the block discards the mutation. Nested
        transactions on the same thread share the outermost snapshot.

        Raises:
            PersistenceError: If the lock could not be taken or a save failed
        """
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self._snapshot
                finally:
                    self._depth -= 1
                return

            self._acquire_file_lock()
            try:
                playlists, state = self.load()
                playlists_before = {n: playlist_to_dict(p) for n, p in playlists.items()}
                state_before = state.to_dict()

                snapshot = Snapshot(playlists, state)
                self._snapshot = snapshot
                self._depth = 1
                try:
                    yield snapshot
                finally:
                    self._depth = 0
                    self._snapshot = None

                playlists_after = {n: playlist_to_dict(p) for n, p in playlists.items()}
                if playlists_after != playlists_before:
                    self.save_playlists(playlists)
                if state.to_dict() != state_before:
                    self.save_state(state)
            finally:
                self._release_file_lock()

    def read(self) -> Snapshot:
        """Consistent read-only snapshot (taken under the lock, never saved)."""
        with self._lock:
            if self._depth:
                return self._snapshot
            self._acquire_file_lock()
            try:
                return Snapshot(*self.load())
            finally:
                self._release_file_lock()
