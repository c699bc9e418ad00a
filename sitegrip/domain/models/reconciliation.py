"""Result models for a reconciliation pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sitegrip.domain.models.entry import GoogleMetadata, IndexingStatus

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

# Sentinel passed as ``current`` in the final progress report
COMPLETED_MARKER = "completed"


@dataclass(frozen=True)
class ReconciliationProgress:
    """Progress snapshot surfaced to the caller during a pass."""

    completed: int
    total: int
    current: str

    @property
    def is_final(self) -> bool:
        return self.current == COMPLETED_MARKER and self.completed == self.total


@dataclass(frozen=True)
class StatusRecord:
    """One validated per-URL record from a status-check response."""

    url: str
    status_tag: str | None
    metadata: GoogleMetadata = field(default_factory=GoogleMetadata)
    error: str | None = None


@dataclass(frozen=True)
class StatusCheckResult:
    """Normalized status of one entry after a status check.

    Exactly one of ``is_indexed``, ``is_pending``, ``has_error`` and
    ``needs_submission`` is true.

    Attributes:
        url: URL that was checked
        status_tag: Coarse status tag as returned by the backend (None for synthetic errors)
        status: Normalized status bucket
        metadata: Inspection metadata returned for this check
        human_status: Display label for the status
        details: Present metadata rendered as short strings
        last_updated: Time the result was processed locally
        error: Error message for failed checks
    """

    url: str
    status_tag: str | None
    status: IndexingStatus
    is_indexed: bool
    is_pending: bool
    has_error: bool
    needs_submission: bool
    human_status: str
    last_updated: datetime
    metadata: GoogleMetadata = field(default_factory=GoogleMetadata)
    details: tuple[str, ...] = ()
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "status_tag": self.status_tag,
            "status": self.status.value,
            "is_indexed": self.is_indexed,
            "is_pending": self.is_pending,
            "has_error": self.has_error,
            "needs_submission": self.needs_submission,
            "human_status": self.human_status,
            "details": list(self.details),
            "last_updated": self.last_updated.isoformat(),
            "coverage_state": self.metadata.coverage_state,
            "indexing_state": self.metadata.indexing_state,
            "last_crawl_time": self.metadata.last_crawl_time,
            "google_canonical": self.metadata.google_canonical,
            "page_fetch_state": self.metadata.page_fetch_state,
            "crawled_as": self.metadata.crawled_as,
            "error": self.error,
        }


@dataclass(frozen=True)
class ReconciliationSummary:
    """Per-bucket counts over the results of one pass."""

    total: int = 0
    indexed: int = 0
    pending: int = 0
    errors: int = 0
    not_indexed: int = 0

    @classmethod
    def from_results(cls, results: Iterable[StatusCheckResult]) -> ReconciliationSummary:
        items = list(results)
        return cls(
            total=len(items),
            indexed=sum(1 for r in items if r.is_indexed),
            pending=sum(1 for r in items if r.is_pending),
            errors=sum(1 for r in items if r.has_error),
            not_indexed=sum(1 for r in items if r.needs_submission),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "indexed": self.indexed,
            "pending": self.pending,
            "errors": self.errors,
            "notIndexed": self.not_indexed,
        }


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of one reconciliation pass."""

    results: tuple[StatusCheckResult, ...] = ()
    summary: ReconciliationSummary = field(default_factory=ReconciliationSummary)

    @classmethod
    def from_results(cls, results: Iterable[StatusCheckResult]) -> ReconciliationResult:
        items = tuple(results)
        return cls(results=items, summary=ReconciliationSummary.from_results(items))

    @classmethod
    def empty(cls) -> ReconciliationResult:
        return cls()

    @property
    def all_failed(self) -> bool:
        return self.summary.total > 0 and self.summary.errors == self.summary.total

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [result.to_dict() for result in self.results],
            "summary": self.summary.to_dict(),
        }
