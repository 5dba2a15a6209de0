"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from exception_middleware.core.config import Settings, get_settings
from exception_middleware.core.errors import exception_message


class AppContextProcessor:
    """Add application context to log entries."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def __call__(self, logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["app"] = self.settings.APP_NAME
        event_dict["version"] = self.settings.APP_VERSION
        event_dict["environment"] = self.settings.ENVIRONMENT
        return event_dict


def setup_logging(settings: Settings | None = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        settings: Settings to configure from (defaults to the cached settings)
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        AppContextProcessor(settings),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.ENVIRONMENT == "development":
        # Pretty console output for development
        processors.extend([
            structlog.dev.ConsoleRenderer(),
        ])
    else:
        # JSON output everywhere else
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """
    Bind context variables to the current logger context.

    Every subsequent log entry within the current execution context
    (request task) carries these keys.

    Example:
        bind_context(request_url="https://example.com/widgets/42")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Unbind context variables from the current logger context."""
    structlog.contextvars.unbind_contextvars(*keys)


class LogContext:
    """
    Context manager for temporary log context binding.

    Example:
        with LogContext(request_url=context.request_url):
            await app(scope, receive, send)
    """

    def __init__(self, **kwargs):
        self.context = kwargs

    def __enter__(self):
        bind_context(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        unbind_context(*self.context.keys())


def log_error(
    logger: structlog.stdlib.BoundLogger,
    error: BaseException,
    event: str,
    **kwargs
) -> None:
    """
    Log an error with full context and stack trace.

    Args:
        logger: Logger instance
        error: Exception instance
        event: Event description
        **kwargs: Additional context

    Example:
        try:
            await send(message)
        except OSError as e:
            log_error(logger, e, "response_write_failed", path="/widgets/42")
    """
    logger.error(
        event,
        error=exception_message(error),
        error_type=type(error).__name__,
        exc_info=error,
        **kwargs
    )
