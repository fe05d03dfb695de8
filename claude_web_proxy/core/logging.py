"""Structured logging setup for Claude Web Proxy."""

import logging
import sys
from typing import Any

import structlog


def _resolve_format(fmt: str) -> str:
    if fmt != "auto":
        return fmt
    return "rich" if sys.stderr.isatty() else "json"


def setup_logging(level: str = "INFO", fmt: str = "auto") -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Logging level name
        fmt: 'rich', 'plain', 'json' or 'auto' (rich on a TTY, json otherwise)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    resolved = _resolve_format(fmt)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if resolved == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=resolved == "rich"))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(level=log_level, format="%(message)s", force=True)
    # Keep transport libraries quiet unless explicitly debugging
    for logger_name in ["httpx", "httpcore", "hpack"]:
        logging.getLogger(logger_name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger bound to the given module name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        structlog bound logger
    """
    return structlog.get_logger(name)
