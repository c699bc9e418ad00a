"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from sitegrip.domain.models.reconciliation import StatusRecord

FIXED_NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=UTC)


class ScriptedChecker:
    """Status checker that answers from a url -> tag table and records its calls."""

    def __init__(self, tags: dict[str, str] | None = None, default: str = "indexed") -> None:
        self.tags = tags or {}
        self.default = default
        self.calls: list[list[str]] = []
        self.fail_on_calls: dict[int, Exception] = {}

    async def check_status(self, urls):
        call_index = len(self.calls)
        self.calls.append(list(urls))
        if call_index in self.fail_on_calls:
            raise self.fail_on_calls[call_index]
        return [StatusRecord(url=url, status_tag=self.tags.get(url, self.default)) for url in urls]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove sitegrip environment variables so config tests start from defaults."""
    for name in (
        "INDEXING_API_URL",
        "INDEXING_API_TOKEN",
        "INDEXING_TOKEN_CACHE_PATH",
        "INDEXING_USER_ID",
        "INDEXING_API_TIMEOUT_SEC",
        "INDEXING_API_MAX_RETRIES",
        "RECONCILE_BATCH_SIZE",
        "RECONCILE_BATCH_DELAY_SEC",
        "RECONCILE_BACKOFF",
        "RECONCILE_BATCH_TIMEOUT_SEC",
        "LOG_LEVEL",
        "LOG_FILE",
        "LOG_TRUNCATE_LENGTH",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch
