"""Error types shared by the mutation services."""

from __future__ import annotations


class CommandError(Exception):
    """Base class for every error a mutation or listing call can raise."""

    kind = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CommandError):
    """Caller-fixable problem, raised before anything on disk is touched."""

    kind = "validation"


class InternalError(CommandError):
    """I/O or serialization failure the caller cannot fix by changing the request."""

    kind = "internal"

    def __init__(self, message: str, failure=None) -> None:
        super().__init__(message)
        # MutationFailure when the error came out of SafeFileMutator
        self.failure = failure

    @property
    def rollback_succeeded(self) -> bool | None:
        if self.failure is None:
            return None
        return self.failure.rollback_succeeded
