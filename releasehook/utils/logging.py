"""Structured logging setup using structlog."""

from __future__ import annotations

import logging
import re
import sys

import structlog

# key=value credentials and bearer tokens
_SENSITIVE_PATTERNS = [
    re.compile(r"(token|key|secret|password|authorization)[\"']?\s*[:=]\s*[\"']?[\w\-\.]+", re.IGNORECASE),
    re.compile(r"(bearer)\s+[\w\-\.]+", re.IGNORECASE),
]

# Per-request INFO records
_QUIET_LOGGERS = ("aiohttp.access", "httpx", "httpcore")


def _filter_sensitive(
    _logger: structlog.types.WrappedLogger,
    _method: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    for key, value in list(event_dict.items()):
        if not isinstance(value, str):
            continue
        for pattern in _SENSITIVE_PATTERNS:
            value = pattern.sub(r"\1=***REDACTED***", value)
        event_dict[key] = value
    return event_dict


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Route structlog and stdlib records through one stderr handler."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _filter_sensitive,
    ]

    renderer: structlog.types.Processor
    if json_output:
        # log.exception() tracebacks become a string field
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
