"""Tests for structured logging helpers."""

from __future__ import annotations

import json
import logging
import unittest

from sitegrip.core.logging_utils import (
    EnhancedJsonFormatter,
    generate_correlation_id,
    truncate_log_content,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="sitegrip.application.reconciler",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="reconcile_pass_completed",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestEnhancedJsonFormatter(unittest.TestCase):
    def test_groups_fields(self):
        formatter = EnhancedJsonFormatter(include_location=False, include_process_info=False)

        payload = json.loads(
            formatter.format(
                _record(
                    correlation_id="abc123",
                    total=25,
                    errors=10,
                    pass_duration_ms=12.5,
                    error_type="IndexingApiError",
                )
            )
        )

        assert payload["message"] == "reconcile_pass_completed"
        assert payload["correlation_id"] == "abc123"
        assert payload["reconciliation"] == {"total": 25, "errors": 10}
        assert payload["performance"] == {"pass_duration_ms": 12.5}
        assert payload["extra"] == {"error_type": "IndexingApiError"}
        assert "module" not in payload

    def test_location_included_by_default(self):
        payload = json.loads(EnhancedJsonFormatter().format(_record()))
        assert payload["line"] == 10
        assert "process" in payload


class TestHelpers(unittest.TestCase):
    def test_correlation_ids_are_short_and_unique(self):
        first, second = generate_correlation_id(), generate_correlation_id()
        assert len(first) == 12
        assert first != second

    def test_truncate_log_content(self):
        assert truncate_log_content(None) is None
        assert truncate_log_content("short", 100) == "short"
        truncated = truncate_log_content("word " * 100, 60)
        assert truncated.endswith("... [truncated]")
        assert len(truncated) <= 60
