"""
Navigation resolution for MFP.

Maps the persisted mode + index/cursor onto concrete songs, independent of
whether a player is running. Two coordinate systems are in play:

- song index: position in the playlist's stored order (what users number)
- sequence position: position in playback order, i.e. the cursor when
  shuffled and the song index otherwise. The ephemeral playlist file handed
  to mpv is written in playback order, so mpv's ``playlist-pos`` is a
  sequence position.
"""

from typing import List, NamedTuple, Optional, Tuple

from mfp.core.errors import ValidationError
from mfp.domain.library.models import Playlist, Song

from .shuffle import is_valid_order, reshuffle
from .state import PlaybackState

NEXT = 1
PREVIOUS = -1


class Advance(NamedTuple):
    """Result of moving one step through the playback sequence."""

    position: int  # New sequence position
    wrapped: bool  # Crossed a boundary and wrapped (loop on)
    end_reached: bool  # Hit a boundary without wrapping (loop off)


def song_count(playlist: Optional[Playlist]) -> int:
    return len(playlist.songs) if playlist else 0


def current_index(state: PlaybackState, playlist: Optional[Playlist]) -> int:
    """Resolve the current song index; never raises, 0 when unresolvable."""
    n = song_count(playlist)
    if state.is_shuffle:
        if 0 <= state.shuffle_index < len(state.shuffle_order):
            index = state.shuffle_order[state.shuffle_index]
            if 0 <= index < n:
                return index
        return 0

    if 0 <= state.current_song_index < n:
        return state.current_song_index
    return 0


def sequence_length(state: PlaybackState, playlist: Optional[Playlist]) -> int:
    if state.is_shuffle:
        return len(state.shuffle_order)
    return song_count(playlist)


def sequence_position(state: PlaybackState, playlist: Optional[Playlist]) -> int:
    """Current position in playback order, clamped into range."""
    length = sequence_length(state, playlist)
    if length == 0:
        return 0
    raw = state.shuffle_index if state.is_shuffle else state.current_song_index
    return max(0, min(raw, length - 1))


def advance(
    state: PlaybackState, playlist: Optional[Playlist], direction: int
) -> Advance:
    """Compute the sequence position one step forward or back.

    Pure: reads state, never mutates it.

    Args:
        state: Current playback state
        playlist: Loaded playlist (None behaves like an empty one)
        direction: NEXT (+1) or PREVIOUS (-1)
    """
    length = sequence_length(state, playlist)
    if length == 0:
        return Advance(position=0, wrapped=False, end_reached=True)

    current = sequence_position(state, playlist)
    target = current + (1 if direction > 0 else -1)

    if 0 <= target < length:
        return Advance(position=target, wrapped=False, end_reached=False)

    if state.is_loop:
        return Advance(position=target % length, wrapped=True, end_reached=False)

    return Advance(position=current, wrapped=False, end_reached=True)


def apply_position(state: PlaybackState, position: int) -> None:
    """Move state to a sequence position, keeping index and cursor in step."""
    if state.is_shuffle:
        state.shuffle_index = position
        if 0 <= position < len(state.shuffle_order):
            state.current_song_index = state.shuffle_order[position]
    else:
        state.current_song_index = position


def position_for_song(state: PlaybackState, song_index: int) -> Optional[int]:
    """Sequence position holding song_index, or None if the order lacks it."""
    if not state.is_shuffle:
        return song_index
    try:
        return state.shuffle_order.index(song_index)
    except ValueError:
        return None


def ensure_shuffle_order(state: PlaybackState, playlist: Optional[Playlist]) -> bool:
    """Regenerate the permutation if shuffle is on and it no longer fits.

    Returns:
        True if a new permutation was generated
    """
    if not state.is_shuffle:
        return False
    n = song_count(playlist)
    if is_valid_order(state.shuffle_order, n):
        return False
    reshuffle(state, n)
    return True


def jump(state: PlaybackState, playlist: Playlist, song_index: int) -> int:
    """Make song_index (0-based) current in either mode.

    Returns:
        The new sequence position

    Raises:
        ValidationError: If song_index is outside the playlist
    """
    n = song_count(playlist)
    if not 0 <= song_index < n:
        raise ValidationError(f"Invalid song number. Please use 1-{n}")

    ensure_shuffle_order(state, playlist)
    position = position_for_song(state, song_index)
    if position is None:
        raise ValidationError(f"Song {song_index + 1} is missing from the shuffle order")

    apply_position(state, position)
    state.current_song_index = song_index
    state.position = 0
    return position


def resolved_order(state: PlaybackState, playlist: Playlist) -> List[Song]:
    """Songs in playback order (shuffle permutation or stored order)."""
    if state.is_shuffle:
        return [playlist.songs[i] for i in state.shuffle_order if 0 <= i < len(playlist.songs)]
    return list(playlist.songs)


def song_at(state: PlaybackState, playlist: Playlist, position: int) -> Optional[int]:
    """Song index at a sequence position, or None if out of range."""
    if state.is_shuffle:
        if 0 <= position < len(state.shuffle_order):
            return state.shuffle_order[position]
        return None
    if 0 <= position < song_count(playlist):
        return position
    return None


def queue_window(
    state: PlaybackState, playlist: Playlist, count: int = 5
) -> Tuple[List[Tuple[int, Song]], Optional[Tuple[int, Song]], List[Tuple[int, Song]]]:
    """Songs around the current one in playback order.

    Returns:
        (previous, current, upcoming), each entry a (song_index, Song) pair
    """
    length = sequence_length(state, playlist)
    if length == 0:
        return [], None, []

    here = sequence_position(state, playlist)

    def entry(position: int) -> Optional[Tuple[int, Song]]:
        index = song_at(state, playlist, position)
        if index is None or index >= song_count(playlist):
            return None
        return index, playlist.songs[index]

    previous = [e for e in (entry(p) for p in range(max(0, here - count), here)) if e]
    upcoming = [
        e for e in (entry(p) for p in range(here + 1, min(length, here + count + 1))) if e
    ]
    return previous, entry(here), upcoming
