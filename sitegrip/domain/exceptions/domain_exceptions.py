"""Domain-specific exceptions.

Entry validation errors are raised by the application layer before any
backend call. Backend errors are raised by the indexing adapter and are
degraded to per-entry error results by the reconciler.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        """Initialize domain exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidEntryError(DomainException):
    """Raised when an entry does not carry the minimum required shape."""

    pass


class DuplicateEntryError(DomainException):
    """Raised when adding an entry whose url is already tracked."""

    pass


class IndexingApiError(DomainException):
    """Raised when the indexing backend returns an unusable response."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class IndexingAuthError(IndexingApiError):
    """Raised on missing credentials or a 401/403 from the backend."""

    pass


class IndexingRetryableError(IndexingApiError):
    """Transient backend failure that may succeed on retry."""

    pass


class MalformedResponseError(IndexingApiError):
    """Raised when a backend payload does not have the expected shape."""

    pass
