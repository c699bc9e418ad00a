from sitegrip.application.entry_store import (
    EntryStore,
    EntryStoreStatistics,
    merge_status_results,
)
from sitegrip.application.reconciler import BatchStatusReconciler

__all__ = [
    "BatchStatusReconciler",
    "EntryStore",
    "EntryStoreStatistics",
    "merge_status_results",
]
