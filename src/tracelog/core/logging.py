# src/tracelog/core/logging.py
"""Structured logging configuration for tracelog.

The SDK itself only ever calls structlog.get_logger(__name__); it never
configures logging on import, since it runs inside someone else's process.
Applications that want tracelog's own output formatted consistently call
configure_logging() once at startup.

Architecture:
    This module configures BOTH structlog and stdlib logging to emit
    consistent output (JSON or console). ProcessorFormatter routes stdlib
    log records through structlog's processor chain, so httpx's own
    logging lands in the same stream as the writer's events.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# Transport internals that log every connection at DEBUG. Silenced to
# WARNING even when the writer runs in debug mode.
_NOISY_LOGGERS: tuple[str, ...] = (
    "httpx",
    "httpcore",
    "httpcore.connection",
    "httpcore.http11",
)


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Remove ProcessorFormatter bookkeeping fields from output.

    ProcessorFormatter always adds _record and _from_structlog, so del is
    used rather than pop: a KeyError here means the integration is broken.
    """
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog and stdlib logging for tracelog.

    Args:
        json_output: If True, output JSON. If False, human-readable.
        level: Log level (DEBUG, INFO, WARNING, ERROR).
    """
    log_level = getattr(logging, level.upper())

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        final_processors: list[Any] = [
            _remove_internal_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors = [
            _remove_internal_fields,
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Disabled so tests can reconfigure without stale loggers
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processors=final_processors,
            foreign_pre_chain=shared_processors,
        )
    )

    sdk_logger = logging.getLogger("tracelog")
    sdk_logger.handlers = [handler]
    sdk_logger.setLevel(log_level)
    sdk_logger.propagate = False

    # Never make noisy loggers less restrictive than the configured level
    noisy_level = max(log_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)
