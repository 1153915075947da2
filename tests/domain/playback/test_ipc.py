"""Tests for the mpv JSON IPC client, against an in-thread fake mpv."""

import pytest

from mfp.core.errors import TransportError
from mfp.domain.playback import ipc


class TestRequest:
    """Tests for request/get_property."""

    def test_get_property(self, mpv) -> None:
        """Queries return the reply's data field."""
        mpv.properties["volume"] = 55
        assert ipc.get_property(mpv.path, "volume") == 55
        assert mpv.commands == [["get_property", "volume"]]

    def test_events_skipped(self, mpv) -> None:
        """Event lines broadcast before the reply are ignored."""
        mpv.emit_event = True
        assert ipc.get_playlist_pos(mpv.path) == 0

    def test_error_reply(self, mpv) -> None:
        """A rejected command surfaces as TransportError."""
        mpv.fail_with = "invalid parameter"
        with pytest.raises(TransportError, match="invalid parameter"):
            ipc.send_command(mpv.path, "playlist-next")

    def test_missing_endpoint(self, short_dir) -> None:
        """No socket file means unreachable, not a crash."""
        with pytest.raises(TransportError, match="unreachable"):
            ipc.send_command(str(short_dir / "absent"), "quit")

    def test_none_endpoint(self) -> None:
        with pytest.raises(TransportError):
            ipc.get_property(None, "pid")

    def test_stale_socket_file(self, short_dir) -> None:
        """A leftover file nobody listens on is unreachable."""
        stale = short_dir / "stale-socket"
        stale.write_text("")
        with pytest.raises(TransportError):
            ipc.send_command(str(stale), "quit", timeout=0.2)

    def test_hung_player_times_out(self, mpv) -> None:
        """A player that never answers is bounded by the timeout."""
        mpv.silent = True
        with pytest.raises(TransportError, match="timed out"):
            ipc.get_property(mpv.path, "pid", timeout=0.2)


class TestDirectives:
    """Each directive maps to one mpv command list."""

    def test_navigation(self, mpv) -> None:
        ipc.playlist_next(mpv.path)
        ipc.playlist_prev(mpv.path)
        ipc.set_playlist_position(mpv.path, 4)
        ipc.quit_player(mpv.path)
        assert mpv.commands == [
            ["playlist-next"],
            ["playlist-prev"],
            ["set_property", "playlist-pos", 4],
            ["quit"],
        ]

    def test_seek(self, mpv) -> None:
        ipc.seek(mpv.path, 10)
        ipc.seek(mpv.path, 90, absolute=True)
        assert mpv.commands == [["seek", 10, "relative"], ["seek", 90, "absolute"]]

    def test_volume_clamped(self, mpv) -> None:
        ipc.set_volume(mpv.path, 150)
        assert mpv.properties["volume"] == 100

    def test_loop(self, mpv) -> None:
        ipc.set_loop(mpv.path, True)
        assert mpv.properties["loop-playlist"] == "inf"
        ipc.set_loop(mpv.path, False)
        assert mpv.properties["loop-playlist"] == "no"

    def test_set_shuffle_reloads(self, mpv) -> None:
        """Shuffle is applied by reloading the reordered playlist file."""
        ipc.set_shuffle(mpv.path, "/tmp/list.m3u", 2)
        assert mpv.commands == [
            ["set_property", "playlist-start", 2],
            ["loadlist", "/tmp/list.m3u", "replace"],
        ]


class TestQueries:
    """Tests for decoded queries and liveness."""

    def test_time_pos(self, mpv) -> None:
        mpv.properties["time-pos"] = 61.5
        assert ipc.get_time_pos(mpv.path) == 61.5

    def test_time_pos_unavailable(self, mpv) -> None:
        mpv.properties["time-pos"] = None
        assert ipc.get_time_pos(mpv.path) is None

    def test_playlist_pos_negative(self, mpv) -> None:
        """mpv reports -1 when nothing is selected."""
        mpv.properties["playlist-pos"] = -1
        assert ipc.get_playlist_pos(mpv.path) is None

    def test_playlist_entry(self, mpv) -> None:
        """The locator mpv loaded at a position, as listed in the file."""
        mpv.playlist = ["https://www.youtube.com/watch?v=a", "https://www.youtube.com/watch?v=b"]
        assert ipc.get_playlist_entry(mpv.path, 1) == "https://www.youtube.com/watch?v=b"

    def test_playlist_entry_out_of_range(self, mpv) -> None:
        with pytest.raises(TransportError):
            ipc.get_playlist_entry(mpv.path, 5)

    def test_alive(self, mpv, short_dir) -> None:
        assert ipc.is_endpoint_alive(mpv.path)
        assert not ipc.is_endpoint_alive(str(short_dir / "absent"))

    def test_wait_for_endpoint(self, mpv, short_dir) -> None:
        assert ipc.wait_for_endpoint(mpv.path, timeout=1.0)
        assert not ipc.wait_for_endpoint(str(short_dir / "absent"), timeout=0.2)
