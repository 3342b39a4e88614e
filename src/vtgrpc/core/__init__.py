from vtgrpc.core.config import Settings, get_settings
from vtgrpc.core.logging import LogContext, get_logger, setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "LogContext",
    "get_logger",
    "setup_logging",
]
