"""Shared fixtures: isolated data dirs, seeded playlists, and a fake mpv."""

import json
import os
import re
import shutil
import socket
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from mfp.context import AppContext
from mfp.core.config import Config
from mfp.domain.library.models import Playlist, Song
from mfp.domain.playback.player import Session
from mfp.domain.playback.store import StateStore


def make_song(title: str) -> Song:
    video_id = title.lower().replace(" ", "-")
    return Song(
        title=title,
        video_id=video_id,
        duration="3:00",
        url=f"https://www.youtube.com/watch?v={video_id}",
    )


class FakeMpv:
    """In-thread stand-in for mpv's JSON IPC server on a Unix socket."""

    def __init__(self, path: str):
        self.path = path
        self.properties: Dict[str, Any] = {
            "pid": 4242,
            "playlist-pos": 0,
            "time-pos": 12.5,
            "volume": 70,
        }
        self.commands: List[list] = []
        self.playlist: List[str] = []  # Locators as loaded, in playlist order
        self.emit_event = False
        self.silent = False
        self.fail_with: Optional[str] = None

        self._server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._server.bind(path)
        self._server.listen(5)
        self._server.settimeout(0.05)
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> "FakeMpv":
        self._thread.start()
        return self

    def close(self) -> None:
        self._stop.set()
        self._thread.join(2)
        self._server.close()
        if os.path.exists(self.path):
            os.unlink(self.path)

    def names(self) -> List[str]:
        return [c[0] for c in self.commands]

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self._server.accept()
            except (socket.timeout, OSError):
                continue
            with conn:
                self._handle(conn)

    def _handle(self, conn: socket.socket) -> None:
        conn.settimeout(2.0)
        buffer = b""
        try:
            while b"\n" not in buffer:
                chunk = conn.recv(4096)
                if not chunk:
                    return
                buffer += chunk
        except OSError:
            return

        message = json.loads(buffer.split(b"\n", 1)[0])
        command = message["command"]
        self.commands.append(command)

        if self.silent:
            try:
                conn.recv(4096)  # Wait for the client to give up
            except OSError:
                pass
            return

        reply = self._respond(command)
        reply["request_id"] = message.get("request_id")
        out = b""
        if self.emit_event:
            out += json.dumps({"event": "playback-restart"}).encode() + b"\n"
        out += json.dumps(reply).encode() + b"\n"
        try:
            conn.sendall(out)
        except OSError:
            pass

    def _respond(self, command: list) -> Dict[str, Any]:
        if self.fail_with:
            return {"error": self.fail_with}
        name = command[0]
        if name == "get_property":
            if command[1] in self.properties:
                return {"error": "success", "data": self.properties[command[1]]}
            entry = re.fullmatch(r"playlist/(\d+)/filename", command[1])
            if entry and int(entry.group(1)) < len(self.playlist):
                return {"error": "success", "data": self.playlist[int(entry.group(1))]}
            return {"error": "property unavailable"}
        if name == "loadlist" and os.path.exists(command[1]):
            with open(command[1], encoding="utf-8") as f:
                self.playlist = [line.strip() for line in f if line.strip() and not line.startswith("#")]
        if name == "set_property":
            self.properties[command[1]] = command[2]
        return {"error": "success", "data": None}


class FakeProcess:
    """Popen look-alike for sessions whose mpv is the FakeMpv server."""

    def __init__(self, returncode: Optional[int] = None):
        self.returncode = returncode
        self.pid = 4242
        self.killed = False

    def poll(self) -> Optional[int]:
        return self.returncode

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        return self.returncode


@pytest.fixture
def short_dir():
    """Temp dir with a short path (Unix socket paths are length-limited)."""
    path = tempfile.mkdtemp(prefix="mfp-", dir="/tmp")
    yield Path(path)
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def config(short_dir: Path) -> Config:
    cfg = Config()
    cfg.storage.data_dir = str(short_dir / "data")
    cfg.storage.lock_timeout = 1.0
    cfg.player.ipc_timeout = 0.5
    cfg.player.poll_interval = 0.05
    cfg.player.socket_wait_timeout = 1.0
    cfg.data_dir.mkdir(parents=True, exist_ok=True)
    return cfg


@pytest.fixture
def store(config: Config) -> StateStore:
    return StateStore(config.data_dir, lock_timeout=config.storage.lock_timeout)


@pytest.fixture
def ctx(config: Config, store: StateStore) -> AppContext:
    return AppContext(config=config, store=store)


@pytest.fixture
def seed(store: StateStore):
    """Store a playlist, load it, and apply state overrides."""

    def _seed(name: str = "rock", titles=("A", "B", "C"), **state_fields) -> Playlist:
        playlist = Playlist(
            name=name,
            url=f"https://www.youtube.com/playlist?list=PL{name}",
            songs=[make_song(t) for t in titles],
            last_updated="2024-01-01 00:00:00",
        )
        with store.transaction() as snap:
            snap.playlists[name] = playlist
            snap.state.current_playlist = name
            for key, value in state_fields.items():
                setattr(snap.state, key, value)
        return playlist

    return _seed


@pytest.fixture
def mpv(config: Config):
    """Fake mpv listening on the configured control socket."""
    server = FakeMpv(str(config.socket_path)).start()
    yield server
    server.close()


@pytest.fixture
def fake_process():
    return FakeProcess


@pytest.fixture
def make_session(config: Config):
    def _make(process=None, playlist_name: str = "rock", last_playlist_pos: Optional[int] = 0) -> Session:
        return Session(
            process=process or FakeProcess(),
            socket_path=str(config.socket_path),
            playlist_file=str(config.playlist_file),
            playlist_name=playlist_name,
            playlist_url=f"https://www.youtube.com/playlist?list=PL{playlist_name}",
            last_playlist_pos=last_playlist_pos,
        )

    return _make
