"""Structured logging module for JSON-formatted logs."""

from heirloom.log_utils.structured_logger import (
    configure_from_config,
    configure_logging,
    get_logger,
    is_json_logging,
    JSONFormatter,
    StructuredLogger,
)

__all__ = [
    "configure_from_config",
    "configure_logging",
    "get_logger",
    "is_json_logging",
    "JSONFormatter",
    "StructuredLogger",
]
