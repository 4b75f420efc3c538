"""Logging setup for docsearch.

Search and index code attach context through ``extra``::

    logger.info("Search served", extra={"query": q, "filter": "docs", "results": 3})

Both formatters know these fields. The JSON formatter nests them under
``search`` and ``index`` objects, and the console formatter appends them as
``key=value`` pairs after the message.
"""

from __future__ import annotations
import logging
import sys
import json
import time
from functools import wraps
from typing import Any, Dict, Optional, Tuple
from datetime import datetime, timezone
from pathlib import Path

SEARCH_FIELDS = ("query", "filter", "results", "duration_ms")
INDEX_FIELDS = ("items", "skipped", "build")

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields passed through ``extra``, in the order they were set."""
    return {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS}


def split_context(context: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any], Dict[str, Any]]:
    """Split ``extra`` fields into (search, index, other)."""
    search = {key: context[key] for key in SEARCH_FIELDS if key in context}
    index = {key: context[key] for key in INDEX_FIELDS if key in context}
    other = {key: value for key, value in context.items()
             if key not in SEARCH_FIELDS and key not in INDEX_FIELDS}
    return search, index, other


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def __init__(self, service_name: str = "docsearch"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        search, index, other = split_context(record_context(record))

        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "source": f"{record.module}:{record.funcName}:{record.lineno}"
        }
        if search:
            entry["search"] = search
        if index:
            entry["index"] = index
        if other:
            entry["extra"] = other
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ColoredFormatter(logging.Formatter):
    """Single-line console output with the level colored."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    @staticmethod
    def _pair(key: str, value: Any) -> str:
        if isinstance(value, float):
            return f"{key}={value:.1f}"
        if isinstance(value, str) and (not value or " " in value or key == "query"):
            return f"{key}={value!r}"
        return f"{key}={value}"

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.use_colors and record.levelname in self.COLORS:
            level = f"{self.COLORS[record.levelname]}{level}{self.RESET}"

        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')
        line = f"{timestamp} | {level} | {record.name} | {record.getMessage()}"

        search, index, other = split_context(record_context(record))
        pairs = [self._pair(key, value) for key, value in {**search, **index, **other}.items()]
        if pairs:
            line += " [" + " ".join(pairs) + "]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO",
    service_name: str = "docsearch",
    log_file: Optional[str] = None,
    use_json: bool = False,
    use_colors: bool = True
) -> None:
    """Configure the root logger.

    Console output goes to stderr so CLI JSON on stdout stays clean. A
    ``log_file``, when given, always receives JSON.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)

    handlers = [(
        logging.StreamHandler(sys.stderr),
        JSONFormatter(service_name) if use_json else ColoredFormatter(use_colors and sys.stderr.isatty())
    )]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append((logging.FileHandler(log_file, encoding="utf-8"), JSONFormatter(service_name)))

    for handler, formatter in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for noisy in ("uvicorn", "fastapi", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def log_performance(logger_name: Optional[str] = None, threshold_ms: float = 1000.0):
    """Warn when the wrapped call runs longer than ``threshold_ms``.

    Failures are logged with their duration and re-raised.
    """
    def decorator(func):
        logger = logging.getLogger(logger_name or func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"{func.__name__} failed",
                    extra={"operation": func.__name__, "error_type": type(e).__name__,
                           "duration_ms": (time.perf_counter() - start_time) * 1000},
                    exc_info=True
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            if duration_ms > threshold_ms:
                logger.warning(
                    f"{func.__name__} is slow",
                    extra={"operation": func.__name__, "duration_ms": duration_ms,
                           "threshold_ms": threshold_ms}
                )
            return result

        return wrapper
    return decorator
