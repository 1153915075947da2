"""Shuffle order generation."""

import random
from typing import List, Optional

from .state import PlaybackState


def generate(n: int, rng: Optional[random.Random] = None) -> List[int]:
    """Return a uniformly random permutation of range(n) (Fisher-Yates).

    Args:
        n: Number of songs; n <= 0 yields an empty permutation
        rng: Optional random source (defaults to the module-level generator)
    """
    rng = rng or random
    order = list(range(max(0, n)))
    for i in range(len(order) - 1, 0, -1):
        j = rng.randint(0, i)
        order[i], order[j] = order[j], order[i]
    return order


def reshuffle(
    state: PlaybackState, n: int, rng: Optional[random.Random] = None
) -> None:
    """Give state a fresh permutation for an n-song playlist; cursor back to 0."""
    state.shuffle_order = generate(n, rng)
    state.shuffle_index = 0
    if state.shuffle_order:
        state.current_song_index = state.shuffle_order[0]


def is_valid_order(order: List[int], n: int) -> bool:
    """True if order is a bijection of range(n)."""
    return len(order) == n and sorted(order) == list(range(n))
