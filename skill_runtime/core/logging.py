"""Logging configuration for the skill runtime.

Uses structlog with snake_case event names and key/value context. Console
rendering in development and test, JSON lines everywhere else.
"""

import logging
import sys
from typing import (
    Any,
    List,
)

import structlog

from skill_runtime.core.config import settings


def bind_context(**kwargs: Any) -> None:
    """Bind context variables to all subsequent log events in the current context.

    Args:
        **kwargs: Key/value pairs to attach (e.g. ``agent_id``, ``request_id``).
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all context variables bound with :func:`bind_context`."""
    structlog.contextvars.clear_contextvars()


def get_structlog_processors(include_file_info: bool = True) -> List[Any]:
    """Build the shared structlog processor chain.

    Args:
        include_file_info: Whether to add module/function/line information.

    Returns:
        List[Any]: Processors applied before rendering.
    """
    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_file_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                }
            )
        )

    processors.append(lambda _, __, event_dict: {**event_dict, "service": settings.PROJECT_NAME})
    return processors


def setup_logging() -> None:
    """Configure structlog and the standard logging module from settings."""
    level = getattr(logging, settings.LOG_LEVEL, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    renderer: Any
    if settings.LOG_FORMAT == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=get_structlog_processors(include_file_info=settings.DEBUG) + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


setup_logging()

logger = structlog.get_logger()
logger.debug(
    "logging_initialized",
    environment=settings.ENVIRONMENT.value,
    log_level=settings.LOG_LEVEL,
    log_format=settings.LOG_FORMAT,
)
