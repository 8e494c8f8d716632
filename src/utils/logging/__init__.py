"""
Structured logging configuration for the equalizer

Provides JSON-formatted or colored console logging with contextual fields.

Usage:
    from utils.logging import setup_logging, get_logger

    # Setup logging (call once at application startup)
    setup_logging(level="INFO", log_file="/var/log/equalizer/equalizer.log")

    logger = get_logger(__name__)
    logger.info("Reconciliation finished", extra={
        "source_table": "customers",
        "insert_rows": 12,
    })
"""

from .config import configure_from_env, get_logger, setup_logging, shutdown_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "get_logger",
    "shutdown_logging",
    "configure_from_env",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
