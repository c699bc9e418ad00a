from __future__ import annotations

import datetime as dt
import json
import logging
import os
import sys
import uuid
from typing import Any

UTC = dt.UTC

try:  # Optional: modern logging via loguru
    from loguru import logger as loguru_logger

    _HAS_LOGURU = True
except Exception:  # pragma: no cover - optional dependency
    loguru_logger = None
    _HAS_LOGURU = False

# Standard LogRecord attributes that are never treated as extra fields
_STANDARD_FIELDS = frozenset(
    {
        "args",
        "msg",
        "name",
        "levelno",
        "levelname",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "message",
    }
)

_PERFORMANCE_FIELDS = frozenset(
    {
        "latency_ms",
        "batch_duration_ms",
        "pass_duration_ms",
        "delay_seconds",
        "timeout_seconds",
    }
)

_RECONCILIATION_FIELDS = frozenset(
    {
        "batch_index",
        "batch_count",
        "batch_size",
        "completed",
        "total",
        "indexed",
        "pending",
        "errors",
        "not_indexed",
    }
)

_NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


class EnhancedJsonFormatter(logging.Formatter):
    """JSON formatter that groups timing and reconciliation fields."""

    def __init__(self, include_location: bool = True, include_process_info: bool = True):
        super().__init__()
        self.include_location = include_location
        self.include_process_info = include_process_info
        self.hostname = os.uname().nodename if hasattr(os, "uname") else "unknown"

    def format(self, record: logging.LogRecord) -> str:
        base: dict[str, Any] = {
            "timestamp": dt.datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self.hostname,
        }

        if self.include_location:
            base.update(
                {
                    "module": record.module,
                    "function": record.funcName,
                    "line": record.lineno,
                    "pathname": record.pathname,
                }
            )

        if self.include_process_info:
            base.update(
                {
                    "process": record.process,
                    "process_name": getattr(record, "processName", "MainProcess"),
                    "thread": record.thread,
                    "thread_name": getattr(record, "threadName", "MainThread"),
                }
            )

        if record.exc_info:
            base["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        if record.stack_info:
            base["stack_trace"] = record.stack_info

        extra_fields: dict[str, Any] = {}
        performance_fields: dict[str, Any] = {}
        reconciliation_fields: dict[str, Any] = {}

        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _STANDARD_FIELDS or key in base:
                continue
            if key in ("correlation_id", "cid"):
                continue
            if key in _PERFORMANCE_FIELDS:
                performance_fields[key] = value
            elif key in _RECONCILIATION_FIELDS:
                reconciliation_fields[key] = value
            else:
                extra_fields[key] = value

        if performance_fields:
            base["performance"] = performance_fields
        if reconciliation_fields:
            base["reconciliation"] = reconciliation_fields
        if extra_fields:
            base["extra"] = extra_fields

        if hasattr(record, "correlation_id") or hasattr(record, "cid"):
            base["correlation_id"] = getattr(record, "correlation_id", None) or getattr(
                record, "cid", None
            )

        # Be resilient to non-JSON-serializable values
        return json.dumps(
            base, ensure_ascii=False, default=self._json_serializer, separators=(",", ":")
        )

    def _json_serializer(self, obj: Any) -> str:
        if isinstance(obj, dt.datetime):
            return obj.isoformat()
        if hasattr(obj, "__dict__"):
            return f"<{obj.__class__.__name__}>"
        return str(obj)


def _quiet_noisy_loggers() -> None:
    for noisy_logger in _NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def setup_json_logging(
    level: str = "INFO",
    include_location: bool = True,
    include_process_info: bool = True,
    use_loguru: bool = True,
    log_file: str | None = None,
    max_file_size: str = "100 MB",
    retention: str = "30 days",
) -> None:
    """Configure JSON logging with optional file output.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_location: Include file/line information in logs
        include_process_info: Include process/thread information
        use_loguru: Use loguru if available
        log_file: Optional log file path for persistent logging
        max_file_size: Maximum size per log file (loguru format)
        retention: Log retention period (loguru format)

    """
    lvl = getattr(logging, level.upper(), logging.INFO)

    if _HAS_LOGURU and use_loguru:
        loguru_logger.remove()

        loguru_logger.add(
            sys.stderr,
            level=level.upper(),
            serialize=True,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )

        if log_file:
            loguru_logger.add(
                log_file,
                level=level.upper(),
                serialize=True,
                rotation=max_file_size,
                retention=retention,
                compression="gz",
                enqueue=True,
                backtrace=True,
                diagnose=False,
            )

        class InterceptHandler(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                level_to_use: int | str
                try:
                    level_to_use = loguru_logger.level(record.levelname).name
                except ValueError:
                    level_to_use = record.levelno

                extra = {
                    key: value
                    for key, value in record.__dict__.items()
                    if not key.startswith("_") and key not in _STANDARD_FIELDS
                }

                loguru_logger.bind(**extra).opt(depth=6, exception=record.exc_info).log(
                    level_to_use, record.getMessage()
                )

        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(lvl)
        root.addHandler(InterceptHandler())
        _quiet_noisy_loggers()

        loguru_logger.info(
            "JSON logging initialized with loguru",
            setup_config={"level": level, "log_file": log_file},
        )
        return

    # Fallback: stdlib JSON logs
    root = logging.getLogger()
    root.setLevel(lvl)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(
        EnhancedJsonFormatter(
            include_location=include_location, include_process_info=include_process_info
        )
    )
    root.handlers.clear()
    root.addHandler(console_handler)

    if log_file:
        from logging.handlers import RotatingFileHandler

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=100 * 1024 * 1024,  # 100MB
            backupCount=5,
        )
        file_handler.setFormatter(
            EnhancedJsonFormatter(
                include_location=include_location, include_process_info=include_process_info
            )
        )
        root.addHandler(file_handler)

    _quiet_noisy_loggers()
    logging.getLogger(__name__).info(
        "json_logging_initialized",
        extra={"setup_config": {"level": level, "log_file": log_file}},
    )


def generate_correlation_id() -> str:
    """Generate a short correlation ID for tracing a reconciliation pass across logs."""
    return uuid.uuid4().hex[:12]


def truncate_log_content(content: str | None, max_length: int = 1000) -> str | None:
    """Truncate large content (e.g. response bodies) for logging.

    Args:
        content: The content to potentially truncate
        max_length: Maximum length before truncation (default 1000)

    Returns:
        Truncated content with a marker if truncated, or the original content

    """
    if not content:
        return content
    if len(content) <= max_length:
        return content

    if max_length > 20:
        truncate_at = max_length - 15  # Leave space for the marker
        truncated = content[:truncate_at]

        # Prefer a word boundary close to the cut
        last_space = truncated.rfind(" ", max(0, truncate_at - 50))
        if last_space > truncate_at - 100:
            truncated = truncated[:last_space]

        return truncated + "... [truncated]"

    return content[:max_length] + "..."


__all__ = [
    "EnhancedJsonFormatter",
    "generate_correlation_id",
    "setup_json_logging",
    "truncate_log_content",
]
