"""
Logging setup shared by every officeresolver module.

Loggers come from ``get_logger`` so that resolution runs share one record
layout (JSON by default, text when ``LOG_FORMAT=text``) and one request id
per logger.

Usage:
    from officeresolver.utils.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Resolving offices", extra={"incoming": 12, "existing": 340})
"""

import json
import logging
import os
import sys
import time
import uuid
from functools import wraps
from typing import Any, Dict, Optional, Union

LEVEL_ENV = "LOG_LEVEL"
FORMAT_ENV = "LOG_FORMAT"

TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attribute names present on a bare LogRecord
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None)))


class RequestContextFilter(logging.Filter):
    """Stamp a request id on records that do not carry one already."""

    def __init__(self, request_id: Optional[str] = None):
        super().__init__()
        self.request_id = request_id or uuid.uuid4().hex

    def filter(self, record):
        if not hasattr(record, "request_id"):
            record.request_id = self.request_id
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra`` fields are copied to the top level."""

    def _base_fields(self, record: logging.LogRecord) -> Dict[str, Any]:
        return {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "request_id": getattr(record, "request_id", None),
        }

    @staticmethod
    def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
        return {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in ("message", "asctime", "request_id")
        }

    def format(self, record):
        payload = self._base_fields(record)
        payload.update(self._extra_fields(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def _resolve_level(level: Union[int, str, None]) -> int:
    level = level or os.getenv(LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def _build_formatter(log_format: Optional[str]) -> logging.Formatter:
    log_format = (log_format or os.getenv(FORMAT_ENV, "json")).lower()
    if log_format == "json":
        return JsonFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)


def _reset(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for installed in [f for f in logger.filters if isinstance(f, RequestContextFilter)]:
        logger.removeFilter(installed)


def setup_logger(
    name: str,
    level: Union[int, str] = None,
    log_format: str = None,
    request_id: Optional[str] = None,
    add_console_handler: bool = True,
    add_file_handler: bool = False,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure and return a named logger.

    Calling it again for the same name replaces the handlers rather than
    adding a second set.

    Args:
        name: Logger name, usually ``__name__``
        level: Level name or number; defaults to ``LOG_LEVEL`` or INFO
        log_format: ``json`` or ``text``; defaults to ``LOG_FORMAT`` or json
        request_id: Id stamped on every record; generated when omitted
        add_console_handler: Log to stdout
        add_file_handler: Also log to ``log_file``
        log_file: Path for the file handler

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    _reset(logger)
    logger.setLevel(_resolve_level(level))
    request_filter = RequestContextFilter(request_id)
    logger.addFilter(request_filter)

    formatter = _build_formatter(log_format)
    handlers = []
    if add_console_handler:
        handlers.append(logging.StreamHandler(sys.stdout))
    if add_file_handler and log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        # Records propagated from child loggers skip the logger filter
        handler.addFilter(request_filter)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(
    name: str, level: Union[int, str] = None, request_id: Optional[str] = None
) -> logging.Logger:
    """Shorthand for a console logger configured from the environment."""
    return setup_logger(name, level=level, request_id=request_id)


class LogContext:
    """
    Attach key/value context to every record created inside the block.

    Usage:
        with LogContext(logger, office_id="B123S", analysis_id="analysis_1"):
            logger.info("Merging analysis")
    """

    def __init__(self, logger: logging.Logger, **context):
        self.logger = logger
        self.context = context
        self._previous_factory = None

    def __enter__(self):
        previous = self._previous_factory = logging.getLogRecordFactory()
        context = self.context

        def factory(*args, **kwargs):
            record = previous(*args, **kwargs)
            for key, value in context.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self._previous_factory)


def log_execution_time(func):
    """Log how long ``func`` took at DEBUG, or at ERROR when it raises."""
    func_logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        started = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - started) * 1000
            func_logger.error(
                f"{func.__name__} failed after {elapsed_ms:.1f} ms: {e}",
                extra={"elapsed_ms": elapsed_ms, "error": str(e)},
            )
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000
        func_logger.debug(
            f"{func.__name__} finished in {elapsed_ms:.1f} ms",
            extra={"elapsed_ms": elapsed_ms},
        )
        return result

    return wrapper
