from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar
from urllib.parse import urlparse

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Only http and https URLs can be submitted to the indexing API
_ALLOWED_SCHEMES: frozenset[str] = frozenset(["http", "https"])

_MAX_URL_LENGTH = 2048


def validate_url(url: str) -> bool:
    """Check that *url* is an absolute http(s) URL with a hostname.

    Args:
        url: URL string to check

    Returns:
        True if the URL can be submitted for indexing

    """
    if not url or not isinstance(url, str):
        return False
    if len(url) > _MAX_URL_LENGTH:
        return False
    if any(ord(char) < 32 for char in url):
        return False

    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False

    if parsed.scheme.lower() not in _ALLOWED_SCHEMES:
        return False
    return bool(parsed.hostname)


def extract_domain(url: str) -> str:
    """Return the lower-cased hostname of *url*, or ``unknown``."""
    if not url or not isinstance(url, str):
        return "unknown"
    try:
        hostname = urlparse(url.strip()).hostname
    except ValueError:
        logger.debug("extract_domain_failed", extra={"url": url[:100]})
        return "unknown"
    return hostname.lower() if hostname else "unknown"


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive slices of *items* with at most *size* elements."""
    if size <= 0:
        msg = "Chunk size must be positive"
        raise ValueError(msg)
    for start in range(0, len(items), size):
        yield list(items[start : start + size])
