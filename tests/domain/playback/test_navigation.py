"""Tests for sequential/shuffled navigation resolution."""

import pytest

from mfp.core.errors import ValidationError
from mfp.domain.library.models import Playlist, Song
from mfp.domain.playback import navigation
from mfp.domain.playback.navigation import NEXT, PREVIOUS, Advance
from mfp.domain.playback.state import PlaybackState


def _playlist(n: int, name: str = "rock") -> Playlist:
    songs = [Song(title=f"Song {i}", video_id=f"v{i}") for i in range(n)]
    return Playlist(name=name, url="", songs=songs)


@pytest.fixture
def rock() -> Playlist:
    return _playlist(3)


class TestCurrentIndex:
    """Tests for current_index function."""

    def test_sequential(self, rock: Playlist) -> None:
        """Sequential mode returns the stored index."""
        state = PlaybackState(current_playlist="rock", current_song_index=2)
        assert navigation.current_index(state, rock) == 2

    def test_sequential_out_of_range(self, rock: Playlist) -> None:
        """An index past the end falls back to 0."""
        state = PlaybackState(current_playlist="rock", current_song_index=9)
        assert navigation.current_index(state, rock) == 0

    def test_shuffle_maps_cursor(self, rock: Playlist) -> None:
        """Shuffle mode returns the permutation entry under the cursor."""
        state = PlaybackState(is_shuffle=True, shuffle_order=[2, 0, 1], shuffle_index=1)
        assert navigation.current_index(state, rock) == 0

    def test_shuffle_cursor_out_of_range(self, rock: Playlist) -> None:
        """A cursor past the permutation falls back to 0."""
        state = PlaybackState(is_shuffle=True, shuffle_order=[2, 0, 1], shuffle_index=5)
        assert navigation.current_index(state, rock) == 0

    def test_idle(self) -> None:
        """Queried with no playlist it never raises."""
        assert navigation.current_index(PlaybackState(current_song_index=3), None) == 0
        assert navigation.current_index(PlaybackState(is_shuffle=True), _playlist(0)) == 0


class TestAdvance:
    """Tests for advance function."""

    def test_pure(self, rock: Playlist) -> None:
        """Identical inputs give identical outputs and state is untouched."""
        state = PlaybackState(current_song_index=1, is_loop=True)
        before = state.to_dict()

        first = navigation.advance(state, rock, NEXT)
        second = navigation.advance(state, rock, NEXT)

        assert first == second == Advance(position=2, wrapped=False, end_reached=False)
        assert state.to_dict() == before

    def test_loop_wraps_forward(self, rock: Playlist) -> None:
        """Past the last song wraps to the first when looping."""
        state = PlaybackState(current_song_index=2, is_loop=True)
        assert navigation.advance(state, rock, NEXT) == Advance(0, True, False)

    def test_loop_wraps_backward(self, rock: Playlist) -> None:
        """Before the first song wraps to the last when looping."""
        state = PlaybackState(current_song_index=0, is_loop=True)
        assert navigation.advance(state, rock, PREVIOUS) == Advance(2, True, False)

    def test_no_loop_reports_end(self, rock: Playlist) -> None:
        """Without loop, both boundaries report end and never wrap."""
        at_end = PlaybackState(current_song_index=2)
        assert navigation.advance(at_end, rock, NEXT) == Advance(2, False, True)

        at_start = PlaybackState(current_song_index=0)
        assert navigation.advance(at_start, rock, PREVIOUS) == Advance(0, False, True)

    def test_always_in_range(self) -> None:
        """Every position and direction stays within the sequence."""
        playlist = _playlist(5)
        for loop in (True, False):
            for shuffle in (True, False):
                for pos in range(5):
                    state = PlaybackState(
                        is_loop=loop,
                        is_shuffle=shuffle,
                        shuffle_order=[3, 1, 4, 0, 2],
                        shuffle_index=pos,
                        current_song_index=pos,
                    )
                    for direction in (NEXT, PREVIOUS):
                        step = navigation.advance(state, playlist, direction)
                        assert 0 <= step.position < 5
                        assert not (step.wrapped and step.end_reached)
                        if not loop:
                            assert not step.wrapped

    def test_shuffle_moves_cursor(self, rock: Playlist) -> None:
        """Under shuffle the step is over cursor positions, not song indices."""
        state = PlaybackState(is_shuffle=True, shuffle_order=[2, 0, 1], shuffle_index=0)
        step = navigation.advance(state, rock, NEXT)
        assert step.position == 1

        navigation.apply_position(state, step.position)
        assert state.shuffle_index == 1
        assert state.current_song_index == 0

    def test_empty_playlist(self) -> None:
        """Nothing to move through reports end."""
        step = navigation.advance(PlaybackState(is_loop=True), _playlist(0), NEXT)
        assert step.end_reached


class TestJump:
    """Tests for jump function."""

    def test_sequential_jump_then_query(self, rock: Playlist) -> None:
        """current_index after jump(k) equals k."""
        for k in range(3):
            state = PlaybackState(current_playlist="rock", position=40)
            position = navigation.jump(state, rock, k)
            assert position == k
            assert navigation.current_index(state, rock) == k
            assert state.position == 0

    def test_shuffle_jump_then_query(self, rock: Playlist) -> None:
        """Under shuffle the cursor lands where the permutation holds k."""
        for k in range(3):
            state = PlaybackState(is_shuffle=True, shuffle_order=[1, 2, 0], shuffle_index=0)
            position = navigation.jump(state, rock, k)
            assert state.shuffle_order[position] == k
            assert state.shuffle_index == position
            assert navigation.current_index(state, rock) == k

    def test_out_of_range(self, rock: Playlist) -> None:
        """Jumps outside the playlist are rejected without changes."""
        state = PlaybackState(current_song_index=1)
        for bad in (-1, 3):
            with pytest.raises(ValidationError, match="1-3"):
                navigation.jump(state, rock, bad)
        assert state.current_song_index == 1

    def test_regenerates_stale_order(self, rock: Playlist) -> None:
        """A permutation that no longer fits the playlist is replaced first."""
        state = PlaybackState(is_shuffle=True, shuffle_order=[0, 1], shuffle_index=0)
        navigation.jump(state, rock, 2)
        assert sorted(state.shuffle_order) == [0, 1, 2]
        assert navigation.current_index(state, rock) == 2


class TestResolvedOrder:
    """Tests for resolved_order and queue_window."""

    def test_resolved_order_follows_permutation(self, rock: Playlist) -> None:
        state = PlaybackState(is_shuffle=True, shuffle_order=[2, 0, 1])
        titles = [s.title for s in navigation.resolved_order(state, rock)]
        assert titles == ["Song 2", "Song 0", "Song 1"]

    def test_resolved_order_sequential(self, rock: Playlist) -> None:
        state = PlaybackState()
        assert navigation.resolved_order(state, rock) == rock.songs

    def test_queue_window_sequential(self) -> None:
        """Previous, current, and upcoming songs around the cursor."""
        playlist = _playlist(10)
        state = PlaybackState(current_song_index=5)
        previous, current, upcoming = navigation.queue_window(state, playlist, 2)

        assert [i for i, _ in previous] == [3, 4]
        assert current[0] == 5
        assert [i for i, _ in upcoming] == [6, 7]

    def test_queue_window_at_end(self, rock: Playlist) -> None:
        state = PlaybackState(current_song_index=2)
        previous, current, upcoming = navigation.queue_window(state, rock, 5)
        assert [i for i, _ in previous] == [0, 1]
        assert current[0] == 2
        assert upcoming == []

    def test_queue_window_shuffle(self, rock: Playlist) -> None:
        """Entries are reported as song indices in playback order."""
        state = PlaybackState(is_shuffle=True, shuffle_order=[2, 0, 1], shuffle_index=1)
        previous, current, upcoming = navigation.queue_window(state, rock, 5)
        assert [i for i, _ in previous] == [2]
        assert current[0] == 0
        assert [i for i, _ in upcoming] == [1]

    def test_queue_window_empty(self) -> None:
        assert navigation.queue_window(PlaybackState(), _playlist(0)) == ([], None, [])
