"""
Common exception types and error classification for the sync agent.

Provides:
- ErrorCategory enum for retry decisions
- Typed exception hierarchy for materialization errors
- HTTP status classification for the object-store source
"""

from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures that the retry policy may recover from
                   (e.g., the object store's 403 slow-down, a cache miss)
        PERMANENT: Failures that end the task (e.g., 404, network failure,
                   invalid configuration, path traversal)
        UNKNOWN: Unclassified errors, never retried
    """

    TRANSIENT = "transient"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class SyncError(Exception):
    """
    Base exception for all sync agent errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether this error should trigger a retry."""
        return self.category == ErrorCategory.TRANSIENT

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Transient Errors (recovered by bounded retry)
# =============================================================================


class TransientError(SyncError):
    """Base class for transient/retriable errors."""

    category = ErrorCategory.TRANSIENT


class RateLimitedError(TransientError):
    """Object store answered 403, its slow-down signal in this deployment."""

    def __init__(
        self,
        message: str,
        status_code: int = 403,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        super().__init__(message, cause, context)
        self.status_code = status_code


class CacheMissError(TransientError):
    """Image cache accepted the request but did not report a hit."""

    def __init__(
        self,
        message: str,
        cache_status: Optional[str] = None,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        super().__init__(message, cause, context)
        self.cache_status = cache_status


# =============================================================================
# Permanent Errors (Don't Retry)
# =============================================================================


class PermanentError(SyncError):
    """Base class for permanent/non-retriable errors."""

    category = ErrorCategory.PERMANENT


class FatalTransportError(PermanentError):
    """Network failure, unexpected status, or local I/O failure."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        super().__init__(message, cause, context)
        self.status_code = status_code


class RetriesExhaustedError(PermanentError):
    """Retry budget consumed while only ever seeing retryable failures."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        super().__init__(message, last_error, context)
        self.attempts = attempts
        self.last_error = last_error


class WarmupIncompleteError(RetriesExhaustedError):
    """Image cache never reported a hit within the retry budget."""

    pass


class ClassificationError(PermanentError):
    """Bucket matches no configured processing lane."""

    def __init__(
        self,
        message: str,
        bucket: Optional[str] = None,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        super().__init__(message, cause, context)
        self.bucket = bucket


class PathTraversalError(PermanentError):
    """Object key resolves outside the base directory."""

    pass


class ConfigurationError(PermanentError):
    """Invalid configuration."""

    pass


class ForwardingError(PermanentError):
    """Agent rejected or could not receive a forwarded event."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        super().__init__(message, cause, context)
        self.status_code = status_code


# =============================================================================
# Error Classification Utilities
# =============================================================================


def classify_http_status(status_code: int) -> ErrorCategory:
    """
    Classify an object-store HTTP status into an error category.

    403 is the store's slow-down signal and is retried. Every other
    non-2xx status ends the download.

    Args:
        status_code: HTTP response status

    Returns:
        Appropriate ErrorCategory
    """
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    if status_code == 403:
        return ErrorCategory.TRANSIENT

    if status_code >= 300:
        return ErrorCategory.PERMANENT

    return ErrorCategory.UNKNOWN


def is_retryable_error(exc: Exception) -> bool:
    """Whether an exception should be retried by a retry policy."""
    if isinstance(exc, SyncError):
        return exc.is_retryable
    return False
