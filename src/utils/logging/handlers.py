"""
Logger wrappers carrying run context.
"""

import logging
from typing import Any


class ContextLogger:
    """
    Logger wrapper that adds contextual information to all log messages

    Usage:
        logger = ContextLogger(__name__, run_id="20240101-1", source_table="customers")
        logger.info("Partition maps built", partitions=42)
        # Output includes run_id, source_table and partitions
    """

    def __init__(self, name: str, **context):
        self.logger = logging.getLogger(name)
        self.context = context

    def bind(self, **context) -> "ContextLogger":
        """Return a new ContextLogger with additional context."""
        return ContextLogger(self.logger.name, **{**self.context, **context})

    def _log(self, level: int, msg: str, *args, exc_info=None, **kwargs) -> None:
        extra = {**self.context, **kwargs}
        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def exception(self, msg: str, *args, **kwargs) -> None:
        """Log an error message with the current exception's traceback"""
        self._log(logging.ERROR, msg, *args, exc_info=True, **kwargs)

    def get_context(self) -> dict[str, Any]:
        return self.context.copy()
