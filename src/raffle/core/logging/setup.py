from __future__ import annotations

import logging
import sys
from typing import Any

import orjson
import structlog


def _json_serializer(obj: Any, default: Any) -> str:
    """
    JSON serializer for structured logs.

    orjson rejects ints wider than 64 bits, and oracle values are 256-bit,
    so those are rendered as strings.
    """
    return orjson.dumps(obj, default=default).decode("utf-8")


def _stringify_big_ints(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key, value in event_dict.items():
        if isinstance(value, int) and not isinstance(value, bool) and abs(value) >= 2**63:
            event_dict[key] = str(value)
    return event_dict


def configure_logging(*, level: str = "INFO") -> None:
    """
    Configure structured logging for the entire application.

    This must be called exactly once at process startup.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        # Merge context variables (round_number, component, etc.)
        structlog.contextvars.merge_contextvars,

        # Standard metadata
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),

        # Exception handling
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.dict_tracebacks,

        _stringify_big_ints,

        # Final JSON output
        structlog.processors.JSONRenderer(serializer=_json_serializer),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )

    # Ensure stdlib logging flows through the same output
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def bind_context(**values: Any) -> None:
    """
    Bind contextual information to all future log entries.

    Example:
        bind_context(run_id="local", component="keeper")
    """
    structlog.contextvars.bind_contextvars(**values)


def clear_context() -> None:
    """
    Clear all bound logging context.
    """
    structlog.contextvars.clear_contextvars()
