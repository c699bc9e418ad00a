from sitegrip.domain.models.entry import (
    EntryPriority,
    GoogleMetadata,
    IndexingEntry,
    IndexingStatus,
    ensure_datetime,
)
from sitegrip.domain.models.reconciliation import (
    COMPLETED_MARKER,
    ReconciliationProgress,
    ReconciliationResult,
    ReconciliationSummary,
    StatusCheckResult,
    StatusRecord,
)

__all__ = [
    "COMPLETED_MARKER",
    "EntryPriority",
    "GoogleMetadata",
    "IndexingEntry",
    "IndexingStatus",
    "ReconciliationProgress",
    "ReconciliationResult",
    "ReconciliationSummary",
    "StatusCheckResult",
    "StatusRecord",
    "ensure_datetime",
]
