"""Error taxonomy for board operations."""


class ContentError(Exception):
    """Base error for board operations."""

    level = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ContentError):
    """Request rejected before any store call; the mirror is untouched."""


class NotFoundError(ValidationError):
    """Referenced category or topic is not in the mirror."""


class EngineNotReady(ValidationError):
    """The board is loading or has not been loaded yet."""


class DuplicateDefaultCategory(ValidationError):
    """Attempt to create a second default category."""

    level = "info"


class RemoteError(ContentError):
    """A store operation failed."""


class InvariantViolation(RemoteError):
    """The board is missing something it must always have."""
