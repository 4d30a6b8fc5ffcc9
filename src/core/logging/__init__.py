"""
Structured logging module.

Provides JSON and console logging with context propagation across asyncio
tasks, plus helpers for attaching structured fields to log records.
"""

from core.logging.context import clear_log_context, get_log_context, set_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from core.logging.setup import get_log_file_path, setup_logging
from core.logging.utilities import (
    extract_log_context,
    get_logger,
    log_exception,
    log_with_context,
)

__all__ = [
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    "ConsoleFormatter",
    "JSONFormatter",
    "get_log_file_path",
    "setup_logging",
    "get_logger",
    "log_with_context",
    "log_exception",
    "extract_log_context",
]
