"""Logging configuration with JSON formatting."""

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from src.config import settings

# Integration and action of the pipeline running in the current task
_pipeline: ContextVar[dict[str, str]] = ContextVar("pipeline", default={})


@contextmanager
def pipeline_context(service: str, action: str | None) -> Iterator[None]:
    """
    Tag every log record emitted inside the block with a pipeline.

    Tasks created inside the block (enrichment fan-out) inherit the tag.

    Args:
        service: Integration name, e.g. "Bitly"
        action: Action being run, e.g. "getRecruitmentLinks"
    """
    token = _pipeline.set({"service": service, "action": action or ""})
    try:
        yield
    finally:
        _pipeline.reset(token)


class JSONFormatter(logging.Formatter):
    """
    Formats records as one JSON object per line for CloudWatch.

    Fields: ``timestamp`` (UTC), ``level``, ``logger``, ``message``, then
    ``service`` and ``action`` of the running pipeline, ``correlation_id``
    when the record carries one, and the keys of the ``context`` dict
    passed via ``extra``. Context keys win over the pipeline tag, so a
    client log can name the vendor it talks to. Exception text is added
    when present, source location only at DEBUG.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_pipeline.get(),
        }

        if hasattr(record, "correlation_id"):
            log_data["correlation_id"] = record.correlation_id

        if hasattr(record, "context"):
            log_data.update(record.context)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.levelno == logging.DEBUG:
            log_data["file"] = record.pathname
            log_data["line"] = record.lineno
            log_data["function"] = record.funcName

        # Context values may be sets, enums or datetimes
        return json.dumps(log_data, default=str)


def configure_logging() -> None:
    """
    Send JSON logs to stdout at LOG_LEVEL.

    Safe to call on every Lambda warm start: existing root handlers are
    replaced, not added to. httpx and httpcore are held at WARNING since
    they log every vendor URL, query string included, at INFO.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(console_handler)

    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    root_logger.info(
        "Logging configured",
        extra={"context": {"log_level": settings.log_level}},
    )


def get_logger(name: str) -> logging.Logger:
    """Logger for a module; pass ``__name__``."""
    return logging.getLogger(name)


def mask_secret(value: str | None, visible_chars: int = 4) -> str:
    """
    Mask a credential for safe logging.

    Args:
        value: The secret to mask
        visible_chars: Number of leading characters to keep

    Returns:
        Masked value such as "abcd***"
    """
    if not value:
        return "***"
    if len(value) <= visible_chars:
        return value[0] + "***"
    return value[:visible_chars] + "***"
