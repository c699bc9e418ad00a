"""Indexing entry domain model.

An entry is one previously submitted URL tracked by the dashboard together
with its last-known indexing status and Google inspection metadata.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sitegrip.core.url_utils import extract_domain


class IndexingStatus(str, Enum):
    """Indexing state of a URL as last reported by Google."""

    INDEXED = "indexed"
    PENDING = "pending"
    NOT_INDEXED = "not_indexed"
    ERROR = "error"
    UNKNOWN = "unknown"


class EntryPriority(str, Enum):
    """Submission priority used by the backend quota buckets."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def ensure_datetime(value: Any) -> datetime | None:
    """Coerce ISO strings and naive datetimes into UTC-aware datetimes."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, str) and value:
        raw = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None


@dataclass(frozen=True)
class GoogleMetadata:
    """Last-known URL inspection data from Search Console."""

    coverage_state: str | None = None
    indexing_state: str | None = None
    last_crawl_time: str | None = None
    google_canonical: str | None = None
    page_fetch_state: str | None = None
    crawled_as: str | None = None

    def merged_with(self, other: GoogleMetadata) -> GoogleMetadata:
        """Return a copy where fields present in *other* replace ours."""
        updates = {key: value for key, value in asdict(other).items() if value is not None}
        return GoogleMetadata(**{**asdict(self), **updates})


@dataclass
class IndexingEntry:
    """A submitted URL and its indexing status.

    Only the status fields (``status``, ``metadata``, ``status_label``,
    ``updated_at`` and ``error_message``) change during reconciliation.
    """

    url: str
    status: IndexingStatus = IndexingStatus.UNKNOWN
    metadata: GoogleMetadata = field(default_factory=GoogleMetadata)
    status_label: str = ""
    updated_at: datetime | None = None
    id: str | None = None
    domain: str | None = None
    priority: EntryPriority = EntryPriority.MEDIUM
    project_id: str | None = None
    submitted_at: datetime | None = None
    error_message: str | None = None

    def __post_init__(self) -> None:
        if self.domain is None and isinstance(self.url, str) and self.url:
            self.domain = extract_domain(self.url)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "status": self.status.value,
            "metadata": asdict(self.metadata),
            "status_label": self.status_label,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "id": self.id,
            "domain": self.domain,
            "priority": self.priority.value,
            "project_id": self.project_id,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "error_message": self.error_message,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexingEntry:
        """Build an entry from the dictionary produced by :meth:`to_dict`.

        Unknown status or priority values fall back to ``unknown``/``medium``.
        """
        metadata_raw = data.get("metadata")
        if not isinstance(metadata_raw, dict):
            metadata_raw = {}
        metadata = GoogleMetadata(
            **{key: metadata_raw.get(key) for key in GoogleMetadata.__dataclass_fields__}
        )
        try:
            status = IndexingStatus(str(data.get("status") or "unknown").lower())
        except ValueError:
            status = IndexingStatus.UNKNOWN
        try:
            priority = EntryPriority(str(data.get("priority") or "medium").lower())
        except ValueError:
            priority = EntryPriority.MEDIUM
        return cls(
            url=data.get("url"),  # type: ignore[arg-type]
            status=status,
            metadata=metadata,
            status_label=str(data.get("status_label") or ""),
            updated_at=ensure_datetime(data.get("updated_at")),
            id=data.get("id"),
            domain=data.get("domain"),
            priority=priority,
            project_id=data.get("project_id"),
            submitted_at=ensure_datetime(data.get("submitted_at")),
            error_message=data.get("error_message"),
        )
