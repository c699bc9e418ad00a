"""Derive the normalized status of a checked URL.

Every backend tag resolves to exactly one bucket, so the four result flags
are always mutually exclusive and summary counters can simply be summed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sitegrip.domain.models.entry import GoogleMetadata, IndexingStatus, ensure_datetime
from sitegrip.domain.models.reconciliation import StatusCheckResult

if TYPE_CHECKING:
    from datetime import datetime

    from sitegrip.domain.models.reconciliation import StatusRecord

HUMAN_STATUS_LABELS: dict[IndexingStatus, str] = {
    IndexingStatus.INDEXED: "✅ Indexed",
    IndexingStatus.PENDING: "⏳ Pending",
    IndexingStatus.NOT_INDEXED: "❌ Not Indexed - Needs Submission",
    IndexingStatus.ERROR: "⚠️ Error Checking Status",
}

ERROR_STATUS_LABEL = HUMAN_STATUS_LABELS[IndexingStatus.ERROR]

_TAG_TO_STATUS: dict[str, IndexingStatus] = {
    "indexed": IndexingStatus.INDEXED,
    "pending": IndexingStatus.PENDING,
    "not_indexed": IndexingStatus.NOT_INDEXED,
}


def normalize_status_tag(tag: str | None, error: str | None = None) -> IndexingStatus:
    """Map a coarse backend status tag to a status bucket.

    Tags are compared case-insensitively after trimming. Anything that is not
    ``indexed``, ``pending`` or ``not_indexed``, and any explicit error
    signal, maps to ``ERROR``.
    """
    if error:
        return IndexingStatus.ERROR
    if not isinstance(tag, str):
        return IndexingStatus.ERROR
    return _TAG_TO_STATUS.get(tag.strip().lower(), IndexingStatus.ERROR)


def format_crawl_date(value: str) -> str:
    parsed = ensure_datetime(value)
    if parsed is None:
        return value
    return parsed.date().isoformat()


def build_details(metadata: GoogleMetadata) -> tuple[str, ...]:
    """Render the present inspection fields as short display strings."""
    details: list[str] = []
    if metadata.coverage_state:
        details.append(f"Coverage: {metadata.coverage_state}")
    if metadata.indexing_state:
        details.append(f"Indexing: {metadata.indexing_state}")
    if metadata.last_crawl_time:
        details.append(f"Last crawled: {format_crawl_date(metadata.last_crawl_time)}")
    if metadata.crawled_as:
        details.append(f"Crawled as: {metadata.crawled_as}")
    return tuple(details)


def build_status_result(record: StatusRecord, *, checked_at: datetime) -> StatusCheckResult:
    status = normalize_status_tag(record.status_tag, record.error)
    error = record.error
    if status == IndexingStatus.ERROR and not error:
        error = f"Unrecognized status tag: {record.status_tag!r}"
    return StatusCheckResult(
        url=record.url,
        status_tag=record.status_tag,
        status=status,
        is_indexed=status == IndexingStatus.INDEXED,
        is_pending=status == IndexingStatus.PENDING,
        has_error=status == IndexingStatus.ERROR,
        needs_submission=status == IndexingStatus.NOT_INDEXED,
        human_status=HUMAN_STATUS_LABELS[status],
        last_updated=checked_at,
        metadata=record.metadata,
        details=build_details(record.metadata),
        error=error,
    )


def build_error_result(url: str, *, checked_at: datetime, error: str) -> StatusCheckResult:
    """Synthetic result for an entry whose status could not be checked."""
    return StatusCheckResult(
        url=url,
        status_tag=None,
        status=IndexingStatus.ERROR,
        is_indexed=False,
        is_pending=False,
        has_error=True,
        needs_submission=False,
        human_status=ERROR_STATUS_LABEL,
        last_updated=checked_at,
        details=(),
        error=error,
    )
