"""Caller-owned collection of tracked entries and status merge-back."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from sitegrip.domain.exceptions import DuplicateEntryError, InvalidEntryError
from sitegrip.domain.models.entry import IndexingEntry, IndexingStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sitegrip.domain.models.reconciliation import StatusCheckResult

logger = logging.getLogger(__name__)


def _apply_result(entry: IndexingEntry, result: StatusCheckResult) -> IndexingEntry:
    return replace(
        entry,
        status=result.status,
        metadata=entry.metadata.merged_with(result.metadata),
        status_label=result.human_status,
        updated_at=result.last_updated,
        error_message=result.error if result.has_error else None,
    )


def merge_status_results(
    entries: Sequence[IndexingEntry],
    results: Iterable[StatusCheckResult],
) -> list[IndexingEntry]:
    """Return a copy of *entries* with status fields taken from *results*.

    The returned list has the same length and URL order as *entries*. Entries
    without a matching result are returned unchanged; when *results* holds
    several results for one URL the last one wins.
    """
    latest: dict[str, StatusCheckResult] = {}
    for result in results:
        latest[result.url] = result

    merged: list[IndexingEntry] = []
    for entry in entries:
        result = latest.get(entry.url)
        merged.append(entry if result is None else _apply_result(entry, result))
    return merged


@dataclass
class EntryStoreStatistics:
    total: int = 0
    indexed: int = 0
    pending: int = 0
    not_indexed: int = 0
    errors: int = 0
    unchecked: int = 0
    by_domain: dict[str, int] = field(default_factory=dict)

    @property
    def indexed_rate(self) -> float:
        checked = self.total - self.unchecked
        if checked == 0:
            return 0.0
        return round(self.indexed / checked * 100, 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "indexed": self.indexed,
            "pending": self.pending,
            "not_indexed": self.not_indexed,
            "errors": self.errors,
            "unchecked": self.unchecked,
            "indexed_rate": self.indexed_rate,
            "by_domain": dict(self.by_domain),
        }


class EntryStore:
    """Ordered in-memory collection of entries keyed by URL.

    Reconciliation never removes entries; ``remove`` exists for explicit
    user actions only.
    """

    def __init__(self, entries: Iterable[IndexingEntry] = ()) -> None:
        self._entries: dict[str, IndexingEntry] = {}
        for entry in entries:
            self.add(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def add(self, entry: IndexingEntry) -> None:
        if not isinstance(entry.url, str) or not entry.url.strip():
            raise InvalidEntryError("Entry has no url")
        if entry.url in self._entries:
            raise DuplicateEntryError(
                f"Entry already tracked: {entry.url}", details={"url": entry.url}
            )
        self._entries[entry.url] = entry

    def get(self, url: str) -> IndexingEntry | None:
        return self._entries.get(url)

    def all(self) -> list[IndexingEntry]:
        return list(self._entries.values())

    def remove(self, url: str) -> IndexingEntry | None:
        removed = self._entries.pop(url, None)
        if removed is not None:
            logger.info("entry_removed", extra={"url": url})
        return removed

    def apply_results(self, results: Iterable[StatusCheckResult]) -> list[IndexingEntry]:
        """Merge results into the store and return the entries that changed.

        Results for URLs the store does not track are ignored.
        """
        current = self.all()
        merged = merge_status_results(current, results)
        changed: list[IndexingEntry] = []
        for before, after in zip(current, merged, strict=True):
            if after is not before and after != before:
                self._entries[after.url] = after
                changed.append(after)
        logger.debug(
            "entry_store_results_applied",
            extra={"total": len(current), "changed": len(changed)},
        )
        return changed

    def statistics(self) -> EntryStoreStatistics:
        """Status breakdown over every tracked entry."""
        counts = Counter(entry.status for entry in self._entries.values())
        domains = Counter(entry.domain or "unknown" for entry in self._entries.values())
        return EntryStoreStatistics(
            total=len(self._entries),
            indexed=counts[IndexingStatus.INDEXED],
            pending=counts[IndexingStatus.PENDING],
            not_indexed=counts[IndexingStatus.NOT_INDEXED],
            errors=counts[IndexingStatus.ERROR],
            unchecked=counts[IndexingStatus.UNKNOWN],
            by_domain=dict(domains.most_common()),
        )
