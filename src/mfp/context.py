"""Application context for explicit state passing.

This module provides the AppContext dataclass that carries configuration,
the state store, and the process-local playback session to every command
handler, instead of module-level globals.
"""

from dataclasses import dataclass, field
from typing import Optional

from rich.console import Console

from mfp.core.config import Config
from mfp.domain.playback.player import Session
from mfp.domain.playback.store import StateStore


@dataclass
class AppContext:
    """Application context passed to all command handlers.

    Attributes:
        config: Application configuration
        store: Persisted state store (playlists + playback state)
        session: Live mpv session, only set in the process that launched it
        console: Rich Console for formatted output
    """

    config: Config
    store: StateStore
    session: Optional[Session] = None
    console: Optional[Console] = field(default=None, repr=False)

    @classmethod
    def create(cls, config: Config, console: Optional[Console] = None) -> "AppContext":
        """Create initial application context.

        Args:
            config: Application configuration
            console: Optional Rich Console instance

        Returns:
            New AppContext with a store rooted at the configured data dir
        """
        store = StateStore(
            config.data_dir,
            lock_timeout=config.storage.lock_timeout,
            default_volume=config.player.volume,
        )
        return cls(config=config, store=store, session=None, console=console)

    def with_session(self, session: Optional[Session]) -> "AppContext":
        """Return new context with updated session.

        Args:
            session: New session, or None once it has ended

        Returns:
            New AppContext with updated session, other fields unchanged
        """
        return AppContext(
            config=self.config,
            store=self.store,
            session=session,
            console=self.console,
        )

    @property
    def socket_path(self) -> str:
        return str(self.config.socket_path)

    @property
    def ipc_timeout(self) -> float:
        return self.config.player.ipc_timeout
