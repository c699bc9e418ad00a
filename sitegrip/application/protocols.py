"""Ports used by the reconciliation use cases.

The reconciler only needs something that can check a small group of URLs,
so tests can drive it with a scripted fake instead of an HTTP client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Awaitable, Sequence

    from sitegrip.domain.models.reconciliation import ReconciliationProgress, StatusRecord


class StatusChecker(Protocol):
    async def check_status(self, urls: Sequence[str]) -> list[StatusRecord | None]: ...


class ProgressCallback(Protocol):
    def __call__(self, progress: ReconciliationProgress) -> Awaitable[None] | None: ...
