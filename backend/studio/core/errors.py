"""
Error taxonomy for the studio backend.

Every failure the wizard can surface derives from StudioError, so the
operation boundary can convert it into a single displayable message.
"""

from typing import Optional


class StudioError(Exception):
    """Base class for all studio errors."""
    pass


class ConfigurationError(StudioError):
    """Raised when a required setting (e.g. the API credential) is missing."""
    pass


class ValidationError(StudioError):
    """Raised when an uploaded file is rejected before any remote call."""
    pass


class GenerationFailure(StudioError):
    """
    The remote call succeeded transport-wise but produced no usable image.

    `reason` is one of "blocked", "finish", "text" or "empty".
    """

    def __init__(self, message: str, reason: str = "empty"):
        super().__init__(message)
        self.reason = reason


class ParseFailure(StudioError):
    """Raised when a JSON response does not have the expected shape."""
    pass


class TransportError(StudioError):
    """Network or call-level failure from the generation client."""
    pass


class RemoteOperationError(StudioError):
    """
    Single domain error raised by every facade operation.

    The message is user-facing; the underlying failure is kept in `cause`.
    """

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class InvalidTransition(StudioError):
    """Raised when a wizard action is not valid in the current step."""
    pass


class ActionInProgress(StudioError):
    """Raised when an action of the same kind is already in flight."""
    pass


class PreviewLimitExceeded(StudioError):
    """Raised when too many preview handles are live at once."""
    pass
