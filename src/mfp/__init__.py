"""MFP - terminal music player for YouTube playlists, driving mpv over JSON IPC."""

__version__ = "0.1.0"
