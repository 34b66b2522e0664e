"""
Exception hierarchy shared by every reconciliation step.

Validation problems are raised before any provider call is made. Provider
errors are translated once, at the client boundary, into the ProviderError
family so the rest of the package never inspects SDK exception types.
"""


class SkyforgeError(Exception):
    """Base class for all errors raised by skyforge."""


class ValidationError(SkyforgeError, ValueError):
    """The desired state is malformed (bad name, missing zone, ...)."""


class StateError(SkyforgeError):
    """The local state store is missing a record or cannot be decoded."""


class ProviderError(SkyforgeError):
    """The provider API rejected a call. The original error is kept as `cause`."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class NotFoundError(ProviderError):
    """The addressed cluster, bucket or object does not exist."""


class RateLimitedError(ProviderError):
    """The provider throttled the call; safe to retry after a backoff."""


class OperationError(SkyforgeError):
    """A long-running operation did not complete successfully."""

    def __init__(self, description: str, message: str) -> None:
        super().__init__(f"Error {description}: {message}")
        self.description = description


class OperationFailedError(OperationError):
    """The operation finished, but the provider reported an error."""

    def __init__(self, description: str, error: Exception) -> None:
        super().__init__(description, str(error))
        self.error = error


class OperationTimeoutError(OperationError, TimeoutError):
    """The operation did not reach a terminal state in the allotted window."""

    def __init__(self, description: str, timeout_minutes: float) -> None:
        super().__init__(
            description, f"timeout while waiting ({timeout_minutes} minutes)"
        )
        self.timeout_minutes = timeout_minutes


class FormatError(SkyforgeError, ValueError):
    """A duration string is empty or lacks a recognized unit."""


class ParseError(SkyforgeError, ValueError):
    """The numeric portion of a duration string is not an integer."""
