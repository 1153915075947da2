"""
Helper utilities for MFP command handlers: argument parsing, signal setup,
and orderly session teardown.
"""

import os
import signal
import time
from typing import List, Optional

from loguru import logger

from mfp.context import AppContext
from mfp.core.errors import PersistenceError, ValidationError
from mfp.core.output import log
from mfp.domain.playback.player import Session, remove_endpoint, stop_session

ON_WORDS = ("on", "true", "1", "yes")
OFF_WORDS = ("off", "false", "0", "no")


def parse_toggle(args: List[str], current: bool, usage: str) -> bool:
    """Resolve a toggle command's new value.

    No argument flips ``current``; otherwise on/off style words set it.

    Raises:
        ValidationError: If the argument is not a recognised on/off word
    """
    if not args:
        return not current
    word = args[0].lower()
    if word in ON_WORDS:
        return True
    if word in OFF_WORDS:
        return False
    raise ValidationError(f"Usage: {usage}")


def parse_int(value: str, what: str) -> int:
    """Parse an integer argument.

    Raises:
        ValidationError: If value is not an integer
    """
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"Invalid {what}: '{value}'") from None


def _raise_keyboard_interrupt(signum, frame) -> None:
    raise KeyboardInterrupt


def install_signal_handlers() -> None:
    """Route SIGTERM through the same path as Ctrl+C.

    Both surface as KeyboardInterrupt in the main thread, where the command
    that owns a session tears it down before the process exits.
    """
    signal.signal(signal.SIGTERM, _raise_keyboard_interrupt)
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, _raise_keyboard_interrupt)


def wait_for_release(path: str, timeout: float, poll: float = 0.05) -> bool:
    """Wait until path disappears; True if it did within timeout."""
    deadline = time.monotonic() + timeout
    while os.path.exists(path):
        if time.monotonic() >= deadline:
            return False
        time.sleep(poll)
    return True


def mark_stopped(ctx: AppContext) -> None:
    """Persist that nothing is playing."""
    with ctx.store.transaction() as snap:
        snap.state.is_playing = False
        snap.state.position = 0


def teardown_session(ctx: AppContext, session: Optional[Session]) -> None:
    """Quit the player, forget it in the persisted state, remove its socket.

    Used on interrupt and on stop from the launching process. Never raises
    for persistence failures; those are reported instead.
    """
    if session is not None:
        stop_session(session, timeout=ctx.ipc_timeout)
    else:
        remove_endpoint(ctx.socket_path)

    try:
        mark_stopped(ctx)
    except PersistenceError as e:
        logger.error(f"Teardown could not persist stopped state: {e}")
        log(f"❌ Could not save stopped state: {e}", "error")
