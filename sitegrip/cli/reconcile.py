"""CLI tool to refresh the indexing status of a list of submitted URLs."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sitegrip.adapters.indexing.client import IndexingApiClient
from sitegrip.application.entry_store import merge_status_results
from sitegrip.application.reconciler import BatchStatusReconciler
from sitegrip.config import AppConfig, load_config
from sitegrip.core.backoff import BACKOFF_POLICIES
from sitegrip.core.logging_utils import setup_json_logging
from sitegrip.domain.exceptions import InvalidEntryError
from sitegrip.domain.models.entry import IndexingEntry

if TYPE_CHECKING:
    import httpx

    from sitegrip.domain.models.reconciliation import (
        ReconciliationProgress,
        ReconciliationSummary,
    )

logger = logging.getLogger(__name__)

__all__ = ["load_entries", "main", "run_reconcile_cli"]

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_ALL_FAILED = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="sitegrip-reconcile",
        description="Check the current indexing status of previously submitted URLs",
        allow_abbrev=False,
    )
    parser.add_argument(
        "entries",
        type=Path,
        help="A .txt file with one URL per line, or a .json list of URLs or entry objects.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Write the entries with refreshed status to this JSON file.",
    )
    parser.add_argument("--batch-size", type=int, help="URLs per status-check call.")
    parser.add_argument("--delay", type=float, help="Seconds to pause between batches.")
    parser.add_argument(
        "--backoff",
        choices=BACKOFF_POLICIES,
        help="Pause policy between batches.",
    )
    parser.add_argument("--timeout", type=float, help="Per-batch timeout in seconds.")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full result as JSON instead of progress lines and a summary.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level for this session.",
    )
    return parser.parse_args(argv)


def _entry_from_json(item: Any, index: int) -> IndexingEntry:
    if isinstance(item, str):
        return IndexingEntry(url=item.strip())
    if isinstance(item, dict):
        return IndexingEntry.from_dict(item)
    msg = f"Entry {index} must be a URL string or an object, got {type(item).__name__}"
    raise InvalidEntryError(msg)


def load_entries(path: Path) -> list[IndexingEntry]:
    """Read entries from a text or JSON file.

    Text files hold one URL per line; blank lines and ``#`` comments are
    skipped. JSON files hold a list (or ``{"entries": [...]}``) of URL strings
    or entry objects.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the JSON is invalid or has the wrong shape
    """
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() != ".json":
        return [
            IndexingEntry(url=line.strip())
            for line in text.splitlines()
            if line.strip() and not line.strip().startswith("#")
        ]

    data = json.loads(text)
    if isinstance(data, dict):
        data = data.get("entries")
    if not isinstance(data, list):
        msg = "JSON input must be a list of entries"
        raise ValueError(msg)
    return [_entry_from_json(item, index) for index, item in enumerate(data)]


def _prepare_config(args: argparse.Namespace) -> AppConfig:
    """Load configuration, applying CLI overrides on top of the environment."""
    reconciler: dict[str, Any] = {}
    if args.batch_size is not None:
        reconciler["batch_size"] = args.batch_size
    if args.delay is not None:
        reconciler["batch_delay_sec"] = args.delay
    if args.backoff is not None:
        reconciler["backoff"] = args.backoff
    if args.timeout is not None:
        reconciler["batch_timeout_sec"] = args.timeout

    overrides: dict[str, Any] = {}
    if reconciler:
        overrides["reconciler"] = reconciler
    if args.log_level:
        overrides["runtime"] = {"log_level": args.log_level}
    return load_config(**overrides)


def format_progress(progress: ReconciliationProgress) -> str:
    if progress.is_final:
        return f"[{progress.completed}/{progress.total}] done"
    return f"[{progress.completed}/{progress.total}] checking {progress.current}"


def format_summary(summary: ReconciliationSummary) -> str:
    return (
        f"Checked {summary.total} URLs: {summary.indexed} indexed, "
        f"{summary.pending} pending, {summary.not_indexed} not indexed, "
        f"{summary.errors} errors"
    )


def _print_progress(progress: ReconciliationProgress) -> None:
    print(format_progress(progress), flush=True)


async def run_reconcile_cli(
    args: argparse.Namespace,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Run one reconciliation pass and return the process exit code."""
    try:
        cfg = _prepare_config(args)
    except RuntimeError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    setup_json_logging(cfg.runtime.log_level, log_file=cfg.runtime.log_file)

    try:
        entries = load_entries(args.entries)
    except (OSError, ValueError, InvalidEntryError) as exc:
        print(f"Error: cannot read entries from {args.entries}: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    async with IndexingApiClient.from_config(
        cfg.indexing,
        error_body_limit=cfg.runtime.log_truncate_length,
        transport=transport,
    ) as client:
        reconciler = BatchStatusReconciler.from_config(client, cfg.reconciler)
        try:
            result = await reconciler.reconcile(
                entries, on_progress=None if args.json else _print_progress
            )
        except InvalidEntryError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return EXIT_INPUT_ERROR

    merged = merge_status_results(entries, result.results)
    if args.output:
        args.output.write_text(
            json.dumps([entry.to_dict() for entry in merged], indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        logger.info("reconcile_output_written", extra={"path": str(args.output)})

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_summary(result.summary))
        for item in result.results:
            if item.has_error:
                print(f"  {item.human_status}  {item.url}: {item.error}")

    return EXIT_ALL_FAILED if result.all_failed else EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Entry point for ``python -m sitegrip.cli.reconcile``."""
    args = parse_args(argv)
    try:
        return asyncio.run(run_reconcile_cli(args))
    except KeyboardInterrupt:  # pragma: no cover - user cancelled
        return 130


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
