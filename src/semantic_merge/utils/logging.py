"""
Logging for the Semantic Merge Engine

Every record carries the merge context active on the current thread: the
query being executed, the source or rule being worked on, and an optional
caller-supplied correlation id. The JSON formatter emits these as fields; the
console formatter renders them as a short prefix.

Usage:
    setup_logging(level="DEBUG")
    logger = get_logger(__name__)

    with log_context(query_id=new_query_id()):
        with log_context(source_id="google_ads"):
            logger.info("Planned source")   # carries query_id and source_id
"""
from __future__ import annotations

import json
import logging
import sys
import threading
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, Optional

# Context keys, in the order they are rendered
CONTEXT_FIELDS = ("correlation_id", "query_id", "component", "source_id", "rule_id")

_CONSOLE_LABELS = {
    "correlation_id": "cid",
    "query_id": "q",
    "component": "",
    "source_id": "src",
    "rule_id": "rule",
}

_local = threading.local()


def current_context() -> Dict[str, Any]:
    """Copy of the merge context bound on this thread"""
    return dict(getattr(_local, "fields", {}))


def clear_context() -> None:
    """Drop every bound context field on this thread"""
    _local.fields = {}


def new_query_id() -> str:
    """Short id that tags all records of one query execution"""
    return uuid.uuid4().hex[:12]


@contextmanager
def log_context(**fields: Any) -> Generator[Dict[str, Any], None, None]:
    """
    Bind context fields for the duration of the block

    Fields stack: an inner block adds to (or overrides) the outer one, and the
    outer context comes back on exit. None values are ignored.
    """
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context fields: {sorted(unknown)}")

    previous = getattr(_local, "fields", {})
    merged = dict(previous)
    merged.update({key: value for key, value in fields.items() if value is not None})
    _local.fields = merged
    try:
        yield merged
    finally:
        _local.fields = previous


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields = dict(getattr(record, "merge_context", {}))
    fields.update(getattr(record, "extra_fields", {}))
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with the merge context as top-level keys"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_record_fields(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line output: time, level, logger, context prefix, message"""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        context = getattr(record, "merge_context", {})

        tags = []
        for key in CONTEXT_FIELDS:
            value = context.get(key)
            if value:
                label = _CONSOLE_LABELS[key]
                tags.append(f"[{label}:{value}]" if label else f"[{value}]")
        prefix = " ".join(tags) + " " if tags else ""

        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        line = (
            f"{color}{timestamp} {record.levelname:<8}{self.RESET} "
            f"{record.name}: {prefix}{record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """
    Adapter that stamps the thread's merge context onto each record

    Fields passed to ``bind`` stay attached to this adapter and win over the
    thread context.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(kwargs.get('extra') or {})
        context = current_context()
        context.update(self.extra)
        extra['merge_context'] = context
        kwargs['extra'] = extra
        return msg, kwargs

    def bind(self, **fields: Any) -> "ContextLogger":
        """Adapter over the same logger with extra fixed context fields"""
        bound = dict(self.extra)
        bound.update({key: value for key, value in fields.items() if value is not None})
        return ContextLogger(self.logger, bound)


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: Optional[str] = None
) -> None:
    """
    Configure the ``semantic_merge`` logger hierarchy

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Emit JSON records on stdout instead of console lines
        log_file: Optional path that receives JSON records as well
    """
    package_logger = logging.getLogger("semantic_merge")
    package_logger.setLevel(getattr(logging, str(level).upper()))
    package_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter() if json_format else ConsoleFormatter())
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        package_logger.addHandler(file_handler)


def get_logger(name: str) -> ContextLogger:
    """Get a context-aware logger"""
    return ContextLogger(logging.getLogger(name), {})


@contextmanager
def log_operation(
    logger: ContextLogger,
    operation: str,
    **extra_fields: Any
) -> Generator[Dict[str, Any], None, None]:
    """
    Log the start and outcome of an operation with its duration

    The yielded dict is logged on completion, so callers can add result
    fields (row counts and so on) to it inside the block.

    Usage:
        with log_operation(logger, "execute_query", sources=3) as op:
            result = run()
            op['rows'] = len(result)
    """
    started = time.perf_counter()
    summary: Dict[str, Any] = {"operation": operation, **extra_fields}

    logger.debug(f"Starting {operation}", extra={"extra_fields": dict(summary)})

    try:
        yield summary
    except Exception as e:
        summary['duration_ms'] = round((time.perf_counter() - started) * 1000, 2)
        summary['status'] = 'error'
        summary['error_type'] = type(e).__name__
        summary['error'] = str(e)
        logger.error(f"Failed {operation}: {e}", extra={"extra_fields": summary}, exc_info=True)
        raise

    summary['duration_ms'] = round((time.perf_counter() - started) * 1000, 2)
    summary['status'] = 'success'
    logger.info(
        f"Completed {operation} in {summary['duration_ms']}ms",
        extra={"extra_fields": summary},
    )
