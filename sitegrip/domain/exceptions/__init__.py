from sitegrip.domain.exceptions.domain_exceptions import (
    DomainException,
    DuplicateEntryError,
    IndexingApiError,
    IndexingAuthError,
    IndexingRetryableError,
    InvalidEntryError,
    MalformedResponseError,
)

__all__ = [
    "DomainException",
    "DuplicateEntryError",
    "IndexingApiError",
    "IndexingAuthError",
    "IndexingRetryableError",
    "InvalidEntryError",
    "MalformedResponseError",
]
