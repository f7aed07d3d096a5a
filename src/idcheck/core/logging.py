# src/idcheck/core/logging.py
"""Structured logging configuration for idcheck.

structlog and stdlib logging share one handler: a ProcessorFormatter
routes stdlib records through the same processor chain as structlog
events, so httpx warnings and idcheck events render identically.

Diagnostics always go to the diagnostic stream (stderr by default).
stdout belongs to the result sink and must only ever carry result lines.
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

# Third-party loggers that report every request or bucket operation.
# Capped at WARNING so --verbose shows dispatch events, not HTTP chatter.
_NOISY_LOGGERS: tuple[str, ...] = (
    "httpx",
    "httpcore",
    "pyrate_limiter",
)


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Drop the _record and _from_structlog keys ProcessorFormatter adds."""
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _shared_processors() -> list[Any]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]


def _render_processors(*, json_output: bool, colors: bool) -> list[Any]:
    if json_output:
        return [
            _remove_internal_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [_remove_internal_fields, structlog.dev.ConsoleRenderer(colors=colors)]


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and stdlib logging for idcheck.

    Safe to call more than once; each call replaces the root handler.

    Args:
        json_output: If True, one JSON object per event. If False, console lines.
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        stream: Diagnostic stream. Defaults to sys.stderr; console colours
            are only used when that default is a terminal.
    """
    log_level = getattr(logging, level.upper())
    diagnostic_stream = stream if stream is not None else sys.stderr
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Tests reconfigure logging; cached loggers would keep the old chain
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(diagnostic_stream)
    handler.setFormatter(
        ProcessorFormatter(
            processors=_render_processors(
                json_output=json_output,
                colors=stream is None and diagnostic_stream.isatty(),
            ),
            foreign_pre_chain=shared,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    # Never less restrictive than the root level
    noisy_level = max(log_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)


def ensure_stdlib_routing() -> None:
    """Route structlog events through stdlib logging if nothing configured structlog.

    Used when idcheck runs as a library. structlog's unconfigured default
    prints to stdout; stdlib logging leaves handlers to the application and
    falls back to stderr. An existing configuration is never replaced.
    """
    if structlog.is_configured():
        return
    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a bound logger for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Bound structlog logger.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
