"""
Structured logging configuration for the vtgate gRPC client.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import (
    CallsiteParameter,
    CallsiteParameterAdder,
    JSONRenderer,
    TimeStamper,
    add_log_level,
)
from structlog.stdlib import ProcessorFormatter, add_logger_name

from vtgrpc.core.config import Settings, get_settings


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for the client.

    Not called on import; applications that want the client's log output
    formatted by structlog call it once at startup.

    Args:
        settings: Settings to read the environment and log level from;
            defaults to get_settings()
    """
    settings = settings or get_settings()
    renderer = JSONRenderer() if settings.is_production else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            merge_contextvars,
            add_log_level,
            add_logger_name,
            CallsiteParameterAdder(
                parameters=[
                    CallsiteParameter.FILENAME,
                    CallsiteParameter.FUNC_NAME,
                    CallsiteParameter.LINENO,
                ]
            ),
            TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[
                add_log_level,
                TimeStamper(fmt="iso"),
            ],
        )
    )

    # Handlers attach to the package logger, never the root logger
    package_logger = logging.getLogger("vtgrpc")
    package_logger.handlers = [handler]
    package_logger.setLevel(getattr(logging, settings.log_level))
    package_logger.propagate = False

    # Suppress noisy loggers
    logging.getLogger("grpc").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return structlog.get_logger(name)


class LogContext:
    """Context manager for adding contextual information to logs."""

    def __init__(self, **kwargs: Any):
        """Initialize with context variables."""
        self.context = kwargs

    def __enter__(self) -> "LogContext":
        """Enter context and bind variables."""
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit context and unbind variables."""
        structlog.contextvars.unbind_contextvars(*self.context)

