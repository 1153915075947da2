"""Playback domain - MPV integration and state management.

This domain handles:
- Persisted playback state (store + PlaybackState)
- Shuffle permutations and sequential/shuffled navigation
- MPV session launch and JSON IPC control
- Background monitoring of a live session
"""

# State
from .state import PlaybackState, clamp_volume, DEFAULT_VOLUME
from .store import StateStore, Snapshot

# Navigation
from .shuffle import generate, reshuffle, is_valid_order
from .navigation import (
    NEXT,
    PREVIOUS,
    Advance,
    advance,
    apply_position,
    current_index,
    ensure_shuffle_order,
    jump,
    queue_window,
    resolved_order,
    sequence_position,
)

# Player integration
from .player import (
    Session,
    check_mpv_available,
    launch,
    is_session_alive,
    stop_session,
    kill_session,
    remove_endpoint,
    write_playlist_file,
    format_time,
)
from .monitor import PlaybackMonitor, tick

__all__ = [
    # State
    "PlaybackState",
    "clamp_volume",
    "DEFAULT_VOLUME",
    "StateStore",
    "Snapshot",
    # Navigation
    "generate",
    "reshuffle",
    "is_valid_order",
    "NEXT",
    "PREVIOUS",
    "Advance",
    "advance",
    "apply_position",
    "current_index",
    "ensure_shuffle_order",
    "jump",
    "queue_window",
    "resolved_order",
    "sequence_position",
    # Player
    "Session",
    "check_mpv_available",
    "launch",
    "is_session_alive",
    "stop_session",
    "kill_session",
    "remove_endpoint",
    "write_playlist_file",
    "format_time",
    # Monitor
    "PlaybackMonitor",
    "tick",
]
