"""Structured logging with optional JSON output."""

import json
import logging
import sys
from datetime import datetime, UTC
from typing import Any, Dict, Optional
from pathlib import Path


class JSONFormatter(logging.Formatter):
    """
    Format log records as one JSON object per line.

    Context passed through ``extra={"context": {...}}`` (or the ``*_ctx``
    helpers on StructuredLogger) is emitted under the ``context`` key.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_trace"] = record.stack_info

        return json.dumps(log_data, default=str)


class StructuredLogger(logging.Logger):
    """
    Logger with ``*_ctx`` methods that take context as keyword arguments.

    Example:
        logger.info_ctx("Tag moved", tag_id="t1", new_parent_id=None)
    """

    def _log_with_context(
        self,
        level: int,
        msg: str,
        context: Optional[Dict[str, Any]] = None,
        exc_info: Any = None,
        **kwargs,
    ) -> None:
        if not self.isEnabledFor(level):
            return

        final_context: Dict[str, Any] = {}
        if context:
            final_context.update(context)
        if kwargs:
            final_context.update(kwargs)

        extra = {"context": final_context} if final_context else {}
        # stacklevel=3 attributes the record to the *_ctx caller
        self.log(level, msg, exc_info=exc_info, extra=extra, stacklevel=3)

    def debug_ctx(self, msg: str, context: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        self._log_with_context(logging.DEBUG, msg, context, **kwargs)

    def info_ctx(self, msg: str, context: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        self._log_with_context(logging.INFO, msg, context, **kwargs)

    def warning_ctx(self, msg: str, context: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        self._log_with_context(logging.WARNING, msg, context, **kwargs)

    def error_ctx(
        self,
        msg: str,
        context: Optional[Dict[str, Any]] = None,
        exc_info: Any = None,
        **kwargs,
    ) -> None:
        """
        Log error message with context.

        Args:
            msg: Log message
            context: Dictionary of context fields
            exc_info: Exception info (True, exception instance, or exc_info tuple)
            **kwargs: Additional context fields as keyword arguments
        """
        self._log_with_context(logging.ERROR, msg, context, exc_info=exc_info, **kwargs)


# Module-level configuration
_use_json_format = False


def configure_logging(
    use_json: bool = True,
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
) -> None:
    """
    Configure logging globally.

    Args:
        use_json: Whether to use JSON formatting (default: True)
        level: Root log level (default: INFO)
        log_file: Optional file path to also write logs to
    """
    global _use_json_format

    logging.setLoggerClass(StructuredLogger)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if use_json:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    _use_json_format = use_json

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def configure_from_config(config) -> None:
    """Apply log_level and json_logs from a TaggingConfig."""
    configure_logging(
        use_json=config.json_logs,
        level=getattr(logging, config.log_level),
    )


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger instance.

    Compatible with logging.getLogger() but returns a StructuredLogger with
    the ``*_ctx`` methods. Loggers are created on first lookup, so modules
    should take theirs from here rather than from logging.getLogger().

    Args:
        name: Logger name (typically __name__)
    """
    if not issubclass(logging.getLoggerClass(), StructuredLogger):
        logging.setLoggerClass(StructuredLogger)

    return logging.getLogger(name)  # type: ignore[return-value]


def is_json_logging() -> bool:
    """Return True if JSON logging is configured."""
    return _use_json_format
