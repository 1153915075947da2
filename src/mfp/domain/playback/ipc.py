"""
mpv JSON IPC client for MFP.

Each request opens the control endpoint (a Unix socket), writes one
``{"command": [...]}`` line, and reads lines until the matching reply
arrives. Every call is bounded by a timeout, so a hung player cannot hang the
invoking command. Failures raise TransportError; callers decide whether that
is a warning (direct commands) or ignorable (the Monitor).
"""

import itertools
import json
import os
import socket
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from loguru import logger

from mfp.core.errors import TransportError

DEFAULT_TIMEOUT = 2.0

Endpoint = Union[str, Path]

_request_ids = itertools.count(1)


def _read_reply(sock: socket.socket, request_id: int) -> Dict[str, Any]:
    buffer = b""
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            raise TransportError("mpv closed the connection before replying")
        buffer += chunk

        while b"\n" in buffer:
            line, buffer = buffer.split(b"\n", 1)
            if not line.strip():
                continue
            try:
                message = json.loads(line.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise TransportError(f"Invalid reply from mpv: {e}") from e

            # mpv broadcasts events to every client; skip them
            if "event" in message:
                continue
            if message.get("request_id", request_id) != request_id:
                continue
            return message


def request(endpoint: Optional[Endpoint], *args: Any, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    """Send one command and return mpv's decoded reply.

    Raises:
        TransportError: Endpoint missing, unreachable, slow, or command rejected
    """
    if not endpoint or not os.path.exists(endpoint):
        raise TransportError("Player unreachable: control socket not found")

    request_id = next(_request_ids)
    payload = json.dumps({"command": list(args), "request_id": request_id}) + "\n"

    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.settimeout(timeout)
            sock.connect(str(endpoint))
            sock.sendall(payload.encode("utf-8"))
            reply = _read_reply(sock, request_id)
    except socket.timeout as e:
        raise TransportError("Player unreachable: request timed out") from e
    except OSError as e:
        raise TransportError(f"Player unreachable: {e}") from e

    error = reply.get("error", "success")
    if error != "success":
        raise TransportError(f"mpv rejected {args[0] if args else 'command'}: {error}")

    logger.debug(f"mpv {list(args)} -> {reply.get('data')!r}")
    return reply


def send_command(endpoint: Optional[Endpoint], *args: Any, timeout: float = DEFAULT_TIMEOUT) -> None:
    """Fire a directive; only transport-level success is checked."""
    request(endpoint, *args, timeout=timeout)


def get_property(endpoint: Optional[Endpoint], name: str, timeout: float = DEFAULT_TIMEOUT) -> Any:
    """Query a property and return its ``data`` value."""
    return request(endpoint, "get_property", name, timeout=timeout).get("data")


def is_endpoint_alive(endpoint: Optional[Endpoint], timeout: float = DEFAULT_TIMEOUT) -> bool:
    """True if a player answers on the endpoint."""
    try:
        get_property(endpoint, "pid", timeout=timeout)
        return True
    except TransportError:
        return False


def wait_for_endpoint(endpoint: Endpoint, timeout: float, poll: float = 0.1) -> bool:
    """Wait until the endpoint file exists and answers, up to timeout seconds."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if os.path.exists(endpoint) and is_endpoint_alive(endpoint, timeout=poll * 5):
            return True
        time.sleep(poll)
    return False


# Directives


def quit_player(endpoint: Optional[Endpoint], timeout: float = DEFAULT_TIMEOUT) -> None:
    send_command(endpoint, "quit", timeout=timeout)


def playlist_next(endpoint: Optional[Endpoint], timeout: float = DEFAULT_TIMEOUT) -> None:
    send_command(endpoint, "playlist-next", timeout=timeout)


def playlist_prev(endpoint: Optional[Endpoint], timeout: float = DEFAULT_TIMEOUT) -> None:
    send_command(endpoint, "playlist-prev", timeout=timeout)


def set_playlist_position(
    endpoint: Optional[Endpoint], position: int, timeout: float = DEFAULT_TIMEOUT
) -> None:
    send_command(endpoint, "set_property", "playlist-pos", position, timeout=timeout)


def seek(
    endpoint: Optional[Endpoint],
    seconds: float,
    absolute: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
) -> None:
    mode = "absolute" if absolute else "relative"
    send_command(endpoint, "seek", seconds, mode, timeout=timeout)


def set_volume(endpoint: Optional[Endpoint], volume: int, timeout: float = DEFAULT_TIMEOUT) -> None:
    volume = max(0, min(100, volume))
    send_command(endpoint, "set_property", "volume", volume, timeout=timeout)


def set_loop(endpoint: Optional[Endpoint], enabled: bool, timeout: float = DEFAULT_TIMEOUT) -> None:
    value = "inf" if enabled else "no"
    send_command(endpoint, "set_property", "loop-playlist", value, timeout=timeout)


def set_shuffle(
    endpoint: Optional[Endpoint],
    playlist_file: Endpoint,
    start: int,
    timeout: float = DEFAULT_TIMEOUT,
) -> None:
    """Switch the live player to a re-ordered playlist file.

    mpv's own shuffle only applies when a playlist is loaded, and it would not
    match our permutation, so the reordered file is reloaded instead,
    starting at ``start``.
    """
    send_command(endpoint, "set_property", "playlist-start", start, timeout=timeout)
    send_command(endpoint, "loadlist", str(playlist_file), "replace", timeout=timeout)


# Queries


def get_time_pos(endpoint: Optional[Endpoint], timeout: float = DEFAULT_TIMEOUT) -> Optional[float]:
    value = get_property(endpoint, "time-pos", timeout=timeout)
    return float(value) if isinstance(value, (int, float)) else None


def get_playlist_pos(endpoint: Optional[Endpoint], timeout: float = DEFAULT_TIMEOUT) -> Optional[int]:
    value = get_property(endpoint, "playlist-pos", timeout=timeout)
    if isinstance(value, (int, float)) and value >= 0:
        return int(value)
    return None


def get_playlist_entry(
    endpoint: Optional[Endpoint], position: int, timeout: float = DEFAULT_TIMEOUT
) -> Optional[str]:
    """Locator mpv has loaded at a playlist position, or None if unknown."""
    value = get_property(endpoint, f"playlist/{position}/filename", timeout=timeout)
    return value if isinstance(value, str) and value else None
