"""Exceptions raised by adapters and translated by the engine."""


class ParishError(Exception):
    """Base class for engine errors."""

    pass


class ApiError(ParishError):
    """Raised when the remote API returns an unexpected response."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class NetworkError(ApiError):
    """Raised when the API cannot be reached (no connectivity, timeout)."""

    pass


class AuthenticationError(ApiError):
    """Raised when the auth token is missing or expired."""

    pass


class ContentUnavailableError(ApiError):
    """Raised when the API has no content for the requested day."""

    pass


class StorageError(ParishError):
    """Raised when persisted state cannot be read or written."""

    pass


class CorruptStateError(StorageError):
    """Raised when persisted state exists but cannot be decoded."""

    pass


class InvalidTransition(ParishError):
    """Raised when an operation is not allowed in the current session state."""

    pass
