"""
Playback state for MFP.

PlaybackState is the single durable record of what is loaded, where playback
is, and which modes are on. It is read-modify-written by every command and is
passed explicitly; there is no module-level instance.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

DEFAULT_VOLUME = 70


def clamp_volume(volume: int) -> int:
    """Clamp volume to 0-100."""
    return max(0, min(100, int(volume)))


@dataclass
class PlaybackState:
    """Persisted playback state.

    Attributes:
        current_playlist: Name of the loaded playlist ("" when idle)
        current_song_index: Raw index into the playlist's songs
        is_playing: True while a player process is believed alive
        is_shuffle: Shuffle mode flag
        is_loop: Loop mode flag (wrap at playlist boundaries)
        volume: Volume 0-100
        shuffle_order: Permutation of song indices (shuffle playback order)
        shuffle_index: Cursor into shuffle_order
        last_updated: ISO timestamp of the last save
        position: Last observed elapsed seconds in the current song
    """

    current_playlist: str = ""
    current_song_index: int = 0
    is_playing: bool = False
    is_shuffle: bool = False
    is_loop: bool = False
    volume: int = DEFAULT_VOLUME
    shuffle_order: List[int] = field(default_factory=list)
    shuffle_index: int = 0
    last_updated: str = ""
    position: int = 0

    @property
    def is_idle(self) -> bool:
        return not self.current_playlist

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_playlist": self.current_playlist,
            "current_song_index": self.current_song_index,
            "is_playing": self.is_playing,
            "is_shuffle": self.is_shuffle,
            "is_loop": self.is_loop,
            "volume": self.volume,
            "shuffle_order": list(self.shuffle_order),
            "shuffle_index": self.shuffle_index,
            "last_updated": self.last_updated,
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlaybackState":
        """Build state from its persisted form, filling defaults for missing keys.

        Raises:
            TypeError, ValueError: If a field has an unusable type
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected a JSON object, got {type(data).__name__}")

        order = data.get("shuffle_order") or []
        if not isinstance(order, list):
            raise TypeError("shuffle_order must be a list")

        return cls(
            current_playlist=str(data.get("current_playlist") or ""),
            current_song_index=int(data.get("current_song_index", 0)),
            is_playing=bool(data.get("is_playing", False)),
            is_shuffle=bool(data.get("is_shuffle", False)),
            is_loop=bool(data.get("is_loop", False)),
            volume=clamp_volume(data.get("volume", DEFAULT_VOLUME)),
            shuffle_order=[int(i) for i in order],
            shuffle_index=int(data.get("shuffle_index", 0)),
            last_updated=str(data.get("last_updated") or ""),
            position=int(data.get("position", 0) or 0),
        )

    def reset_navigation(self) -> None:
        """Forget the loaded playlist's position (used on unload/delete)."""
        self.current_song_index = 0
        self.shuffle_order = []
        self.shuffle_index = 0
        self.position = 0

    def copy(self) -> "PlaybackState":
        return PlaybackState.from_dict(self.to_dict())
