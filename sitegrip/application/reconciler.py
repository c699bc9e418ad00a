"""Batch status reconciliation for previously submitted URLs.

A pass splits the entries into small groups, asks the backend for the status
of one group at a time and turns every answer into a normalized
``StatusCheckResult``. A failing group degrades to error results for its own
entries; the pass itself always completes unless it is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sitegrip.core.async_utils import maybe_await, raise_if_cancelled
from sitegrip.core.backoff import FixedDelayBackoff, build_backoff_policy
from sitegrip.core.logging_utils import generate_correlation_id
from sitegrip.core.url_utils import chunked
from sitegrip.domain.exceptions import InvalidEntryError, MalformedResponseError
from sitegrip.domain.models.reconciliation import (
    COMPLETED_MARKER,
    ReconciliationProgress,
    ReconciliationResult,
    StatusRecord,
)
from sitegrip.domain.services.status_normalizer import build_error_result, build_status_result

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sitegrip.application.protocols import ProgressCallback, StatusChecker
    from sitegrip.config import ReconcilerConfig
    from sitegrip.core.backoff import BackoffPolicy
    from sitegrip.domain.models.reconciliation import StatusCheckResult

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


def utcnow() -> datetime:
    return datetime.now(UTC)


def _entry_url(entry: Any, index: int) -> str:
    if isinstance(entry, Mapping):
        url = entry.get("url")
    else:
        url = getattr(entry, "url", None)
    if not isinstance(url, str) or not url.strip():
        raise InvalidEntryError(
            f"Entry at position {index} has no url", details={"position": index}
        )
    return url


class BatchStatusReconciler:
    """Refresh the indexing status of many entries in rate-limited groups.

    Args:
        checker: Anything with ``async check_status(urls)``; normally ``IndexingApiClient``
        batch_size: Entries per backend call
        backoff: Pause policy between consecutive groups
        batch_timeout: Optional bound in seconds on each backend call
        clock: Source of the local processing time stamped on results
    """

    def __init__(
        self,
        checker: StatusChecker,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        backoff: BackoffPolicy | None = None,
        batch_timeout: float | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if batch_size < 1:
            msg = "Batch size must be positive"
            raise ValueError(msg)
        if batch_timeout is not None and batch_timeout <= 0:
            msg = "Batch timeout must be positive"
            raise ValueError(msg)
        self._checker = checker
        self.batch_size = batch_size
        self.backoff = backoff if backoff is not None else FixedDelayBackoff(1.0)
        self.batch_timeout = batch_timeout
        self._clock = clock

    @classmethod
    def from_config(cls, checker: StatusChecker, config: ReconcilerConfig) -> BatchStatusReconciler:
        return cls(
            checker,
            batch_size=config.batch_size,
            backoff=build_backoff_policy(config.backoff, config.batch_delay_sec),
            batch_timeout=config.batch_timeout_sec,
        )

    async def reconcile(
        self,
        entries: Sequence[Any],
        on_progress: ProgressCallback | None = None,
    ) -> ReconciliationResult:
        """Check the status of every entry and summarize the outcome.

        Entries may be ``IndexingEntry`` objects, mappings with a ``url`` key
        or any object exposing ``url``.

        Returns:
            One result per entry in input order, and the bucket counts

        Raises:
            InvalidEntryError: If an entry has no url; raised before any backend call
        """
        urls = [_entry_url(entry, index) for index, entry in enumerate(entries)]
        if not urls:
            return ReconciliationResult.empty()

        correlation_id = generate_correlation_id()
        total = len(urls)
        groups = list(chunked(urls, self.batch_size))
        started = time.perf_counter()
        logger.info(
            "reconcile_pass_started",
            extra={
                "correlation_id": correlation_id,
                "total": total,
                "batch_size": self.batch_size,
                "batch_count": len(groups),
            },
        )

        results: list[StatusCheckResult] = []
        for batch_index, group in enumerate(groups):
            await self._report(
                on_progress, ReconciliationProgress(len(results), total, group[0])
            )
            results.extend(await self._check_group(group, batch_index, correlation_id))

            if batch_index < len(groups) - 1:
                delay = self.backoff.wait(batch_index)
                if delay > 0:
                    await asyncio.sleep(delay)

        await self._report(on_progress, ReconciliationProgress(total, total, COMPLETED_MARKER))

        outcome = ReconciliationResult.from_results(results)
        summary = outcome.summary
        logger.info(
            "reconcile_pass_completed",
            extra={
                "correlation_id": correlation_id,
                "total": summary.total,
                "indexed": summary.indexed,
                "pending": summary.pending,
                "errors": summary.errors,
                "not_indexed": summary.not_indexed,
                "pass_duration_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return outcome

    async def _report(
        self, on_progress: ProgressCallback | None, progress: ReconciliationProgress
    ) -> None:
        if on_progress is not None:
            await maybe_await(on_progress(progress))

    async def _call_checker(self, urls: list[str]) -> list[StatusRecord | None]:
        call = self._checker.check_status(urls)
        if self.batch_timeout is None:
            records = await call
        else:
            records = await asyncio.wait_for(call, timeout=self.batch_timeout)

        if not isinstance(records, list | tuple):
            msg = f"Status checker returned {type(records).__name__}, expected a list of records"
            raise MalformedResponseError(msg)
        for record in records:
            if record is not None and not isinstance(record, StatusRecord):
                msg = f"Status checker returned a {type(record).__name__} record"
                raise MalformedResponseError(msg)
        return list(records)

    async def _check_group(
        self, urls: list[str], batch_index: int, correlation_id: str
    ) -> list[StatusCheckResult]:
        started = time.perf_counter()
        try:
            records = await self._call_checker(urls)
        except Exception as exc:
            raise_if_cancelled(exc)
            error = str(exc) or type(exc).__name__
            if isinstance(exc, TimeoutError):
                error = f"Status check timed out after {self.batch_timeout}s"
            logger.warning(
                "reconcile_batch_failed",
                extra={
                    "correlation_id": correlation_id,
                    "batch_index": batch_index,
                    "batch_size": len(urls),
                    "error": error,
                    "error_type": type(exc).__name__,
                },
            )
            checked_at = self._clock()
            return [build_error_result(url, checked_at=checked_at, error=error) for url in urls]

        checked_at = self._clock()
        if len(records) != len(urls):
            logger.warning(
                "reconcile_batch_misaligned",
                extra={
                    "correlation_id": correlation_id,
                    "batch_index": batch_index,
                    "expected": len(urls),
                    "received": len(records),
                },
            )

        results: list[StatusCheckResult] = []
        for position, url in enumerate(urls):
            record = records[position] if position < len(records) else None
            if record is None:
                results.append(
                    build_error_result(
                        url, checked_at=checked_at, error="No status returned for this URL"
                    )
                )
            else:
                if record.url != url:
                    record = replace(record, url=url)
                results.append(build_status_result(record, checked_at=checked_at))

        logger.debug(
            "reconcile_batch_completed",
            extra={
                "correlation_id": correlation_id,
                "batch_index": batch_index,
                "batch_size": len(urls),
                "batch_duration_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return results
