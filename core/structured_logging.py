"""
Structured Logging with Run Correlation
=======================================

Provides JSON-structured logging with run correlation for tracing a single
terminal scan across rules, enrichment and portfolio stages.

Features:
1. JSON log format for production (parseable by log aggregators)
2. Run correlation via a context variable (one run id per scan)
3. Integration with log sanitizer for secret redaction
4. Context-safe across asyncio tasks

Usage:
    from core.structured_logging import (
        configure_structured_logging,
        run_scope,
        log_info,
    )

    configure_structured_logging()

    with run_scope() as run_id:
        log_info(logger, "Scan started", home="KC", away="BUF")
    # Output: {"timestamp": "...", "level": "INFO", "message": "Scan started",
    #          "run_id": "run-xxx", "home": "KC", "away": "BUF"}
"""

import json
import logging
import os
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from core.log_sanitizer import REDACTED, _is_sensitive_key

# Context variable for run correlation
_run_id_ctx: ContextVar[Optional[str]] = ContextVar("run_id", default=None)

# Environment configuration
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")  # "json" or "text"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def get_run_id() -> Optional[str]:
    """Get the current run ID from context."""
    return _run_id_ctx.get()


def generate_run_id() -> str:
    """Generate a new run ID."""
    return f"run-{uuid.uuid4().hex[:12]}"


@contextmanager
def run_scope(run_id: Optional[str] = None) -> Iterator[str]:
    """Bind a run id for the duration of a block, restoring the previous one after."""
    run_id = run_id or generate_run_id()
    token = _run_id_ctx.set(run_id)
    try:
        yield run_id
    finally:
        _run_id_ctx.reset(token)


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with run correlation and secret redaction.

    Output format:
    {
        "timestamp": "2026-02-13T10:30:45.123456+00:00",
        "level": "INFO",
        "logger": "terminal_pipeline",
        "message": "Scan complete",
        "run_id": "run-abc123def456",
        "module": "terminal_pipeline",
        "function": "run_terminal_scan",
        "line": 120,
        ... extra fields ...
    }
    """

    # Fields to exclude from extra (already handled or internal)
    EXCLUDE_FIELDS = {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "taskName",
    }

    def __init__(self, include_build_sha: bool = True):
        super().__init__()
        self.include_build_sha = include_build_sha
        self._build_sha = os.getenv("BUILD_SHA", "")[:8] or "local"

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = get_run_id()
        if run_id:
            log_entry["run_id"] = run_id

        log_entry["module"] = record.module
        log_entry["function"] = record.funcName
        log_entry["line"] = record.lineno

        if self.include_build_sha:
            log_entry["build_sha"] = self._build_sha

        for key, value in record.__dict__.items():
            if key not in self.EXCLUDE_FIELDS and not key.startswith("_"):
                log_entry[key] = self._sanitize_value(key, value)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str, ensure_ascii=False)

    def _sanitize_value(self, key: str, value: Any) -> Any:
        """Sanitize sensitive values before logging."""
        if _is_sensitive_key(key):
            return REDACTED

        if isinstance(value, dict):
            return {
                k: REDACTED if _is_sensitive_key(k) else v
                for k, v in value.items()
            }

        return value


class TextFormatter(logging.Formatter):
    """
    Human-readable text formatter with run correlation.

    Output format:
    2026-02-13 10:30:45.123 [INFO] [run-abc123] terminal_pipeline:run_terminal_scan:120 - Scan complete
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        run_id = get_run_id() or "-"

        base = f"{timestamp} [{record.levelname}] [{run_id}] {record.name}:{record.funcName}:{record.lineno} - {record.getMessage()}"

        if record.exc_info:
            base += f"\n{self.formatException(record.exc_info)}"

        return base


def configure_structured_logging(
    level: str = None,
    format_type: str = None,
    include_build_sha: bool = True,
) -> None:
    """
    Configure structured logging for the process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var.
        format_type: "json" or "text". Defaults to LOG_FORMAT env var.
        include_build_sha: Include build SHA in JSON logs.

    Call once at startup, before any logging occurs.
    """
    level = (level or LOG_LEVEL).upper()
    format_type = format_type or LOG_FORMAT

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level, logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stderr so CLI output on stdout stays machine-readable
    handler = logging.StreamHandler(sys.stderr)

    if format_type.lower() == "json":
        handler.setFormatter(JSONFormatter(include_build_sha=include_build_sha))
    else:
        handler.setFormatter(TextFormatter())

    root_logger.addHandler(handler)

    # Suppress noisy third-party loggers
    for noisy_logger in ["httpx", "httpcore", "asyncio"]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """
    Log a message with additional context fields.

    Example:
        log_with_context(logger, logging.INFO, "Alerts built",
                         alerts=5, fallback=False)
    """
    logger.log(level, message, extra=extra)


def log_info(logger: logging.Logger, message: str, **extra: Any) -> None:
    """Log an INFO message with context."""
    log_with_context(logger, logging.INFO, message, **extra)


def log_warning(logger: logging.Logger, message: str, **extra: Any) -> None:
    """Log a WARNING message with context."""
    log_with_context(logger, logging.WARNING, message, **extra)


def log_error(logger: logging.Logger, message: str, **extra: Any) -> None:
    """Log an ERROR message with context."""
    log_with_context(logger, logging.ERROR, message, **extra)


def log_debug(logger: logging.Logger, message: str, **extra: Any) -> None:
    """Log a DEBUG message with context."""
    log_with_context(logger, logging.DEBUG, message, **extra)
