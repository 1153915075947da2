"""Error taxonomy shared by every MFP layer."""


class MfpError(Exception):
    """Base exception for MFP operations."""

    pass


class ValidationError(MfpError):
    """Raised for bad arguments, out-of-range jumps, or malformed source URLs."""

    pass


class NotFoundError(MfpError):
    """Raised when a named playlist does not exist."""

    pass


class TransportError(MfpError):
    """Raised when the player's control endpoint cannot be reached."""

    pass


class LaunchError(MfpError):
    """Raised when the player or its playlist file cannot be started."""

    pass


class PersistenceError(MfpError):
    """Raised when state could not be saved; the mutation did not happen."""

    pass
