"""
Centralized logging configuration using structlog
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any

import structlog

# Context variable for the generation round being executed
round_id_ctx: ContextVar[int | None] = ContextVar("round_id", default=None)


class RoundContextFilter:
    """Add round context to log records."""

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        """Add round context to the event dict."""
        # Required by the structlog processor interface
        _ = logger, method_name

        round_id = round_id_ctx.get()
        if round_id is not None:
            event_dict.setdefault("round_id", round_id)

        return event_dict


def configure_logging(debug: bool = False) -> None:
    """Configure structlog with appropriate processors and formatters.

    Args:
        debug: If True, use human-readable console output. If False, use JSON.
    """

    log_level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s",
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        RoundContextFilter(),
        structlog.processors.TimeStamper(fmt="ISO", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def set_round_context(round_id: int | None) -> None:
    """Mark subsequent log events in this context as belonging to a round."""
    round_id_ctx.set(round_id)


def clear_round_context() -> None:
    """Clear round context variables."""
    round_id_ctx.set(None)


def get_round_id() -> int | None:
    """Get the current round ID."""
    return round_id_ctx.get()
