"""
Structured logging helpers.

Thin wrappers over the stdlib logger that carry structured fields through
``extra`` so the JSON formatter can pick them up.
"""

import logging
from typing import Any, Dict


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: int,
    msg: str,
    **kwargs: Any,
) -> None:
    """
    Log with structured context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: Additional context fields (bucket, key, attempt, ...)

    Example:
        log_with_context(
            logger, logging.INFO, "Download complete",
            bucket=ref.bucket,
            key=ref.key,
            bytes_downloaded=size,
        )
    """
    logger.log(level, msg, extra=kwargs)


def log_exception(
    logger: logging.Logger,
    exc: Exception,
    msg: str,
    level: int = logging.ERROR,
    include_traceback: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log exception with context and optional traceback.

    Automatically extracts error_category from SyncError subclasses.

    Args:
        logger: Logger instance
        exc: Exception to log
        msg: Context message
        level: Log level (default: ERROR)
        include_traceback: Include full traceback (default: True)
        **kwargs: Additional context fields
    """
    error_category = kwargs.get("error_category")
    if error_category is None and hasattr(exc, "category"):
        cat = exc.category
        error_category = cat.value if hasattr(cat, "value") else str(cat)
        kwargs["error_category"] = error_category

    error_msg = str(exc)
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."
    kwargs["error_message"] = error_msg

    if include_traceback:
        logger.log(level, msg, exc_info=exc, extra=kwargs)
    else:
        logger.log(level, msg, extra=kwargs)


def extract_log_context(obj: Any) -> Dict[str, Any]:
    """
    Extract loggable identifier fields from a file reference or outcome.

    Example:
        log_exception(logger, e, "Download failed", **extract_log_context(ref))
    """
    ctx: Dict[str, Any] = {}

    if obj is None:
        return ctx

    for attr in ["region", "bucket", "key"]:
        value = getattr(obj, attr, None)
        if value is not None:
            ctx[attr] = value

    return ctx
