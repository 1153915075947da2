"""Domain layer - library, playback, and playlists."""
