"""Validation of status-check responses at the backend boundary.

Each requested URL gets exactly one slot: a ``StatusRecord`` when the
backend returned a valid record for it, otherwise ``None``. Malformed
records are logged and rejected rather than defaulted.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from sitegrip.adapters.indexing.models import StatusResultItem
from sitegrip.domain.exceptions import MalformedResponseError
from sitegrip.domain.models.reconciliation import StatusRecord

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


def _validate_item(raw: Any, index: int) -> StatusResultItem | None:
    if not isinstance(raw, dict):
        logger.warning(
            "status_record_rejected",
            extra={"index": index, "reason": f"expected object, got {type(raw).__name__}"},
        )
        return None
    try:
        return StatusResultItem.model_validate(raw)
    except ValidationError as exc:
        logger.warning(
            "status_record_rejected",
            extra={"index": index, "reason": "validation_failed", "error": str(exc)},
        )
        return None


def _to_record(url: str, item: StatusResultItem) -> StatusRecord:
    return StatusRecord(
        url=url,
        status_tag=item.status,
        metadata=item.to_metadata(),
        error=item.error_signal(),
    )


def parse_check_status_payload(payload: Any, urls: Sequence[str]) -> list[StatusRecord | None]:
    """Match a ``check-status`` response to the URLs that were requested.

    Records carrying a requested ``url`` are matched by URL. Records without
    one, or whose ``url`` is not among the requested ones (the backend may
    normalize a trailing slash, for example), are matched by position, only
    when the response has one record per URL.

    Args:
        payload: Decoded JSON body
        urls: URLs sent in the request, in order

    Returns:
        One slot per requested URL, in request order

    Raises:
        MalformedResponseError: If the body is not an object with a ``results`` list
    """
    if not isinstance(payload, dict):
        msg = f"Status response must be a JSON object, got {type(payload).__name__}"
        raise MalformedResponseError(msg)
    raw_results = payload.get("results")
    if not isinstance(raw_results, list):
        msg = "Status response has no 'results' list"
        raise MalformedResponseError(msg, details={"keys": sorted(payload)[:20]})

    requested = set(urls)
    by_url: dict[str, deque[StatusResultItem]] = defaultdict(deque)
    by_position: dict[int, StatusResultItem] = {}
    for index, raw in enumerate(raw_results):
        item = _validate_item(raw, index)
        if item is None:
            continue
        if item.url in requested:
            by_url[item.url].append(item)
        else:
            by_position[index] = item

    positional = len(raw_results) == len(urls)
    slots: list[StatusRecord | None] = []
    for position, url in enumerate(urls):
        item: StatusResultItem | None = None
        queue = by_url.get(url)
        if queue:
            # Duplicate URLs consume records in order; the last one is reused
            item = queue.popleft() if len(queue) > 1 else queue[0]
        elif positional:
            item = by_position.get(position)
            if item is not None and item.url:
                logger.debug(
                    "status_record_matched_by_position",
                    extra={"url": url, "reported_url": item.url, "position": position},
                )

        if item is None:
            logger.warning("status_record_missing", extra={"url": url, "position": position})
            slots.append(None)
        else:
            slots.append(_to_record(url, item))
    return slots
