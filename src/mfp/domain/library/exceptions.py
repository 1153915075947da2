"""YouTube-specific exceptions for error handling."""

from mfp.core.errors import MfpError, ValidationError


class YouTubeError(MfpError):
    """Base exception for YouTube operations."""

    pass


class InvalidPlaylistURLError(YouTubeError, ValidationError):
    """Raised when URL is not a valid YouTube playlist URL."""

    pass


class EmptyPlaylistError(YouTubeError):
    """Raised when a playlist yields no playable entries."""

    pass
