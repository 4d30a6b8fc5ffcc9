"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- SyncError hierarchy for typed exceptions
- Classification utilities for error handling
"""

from core.errors.exceptions import (
    # Enums
    ErrorCategory,
    # Base classes
    SyncError,
    TransientError,
    PermanentError,
    # Transient errors
    RateLimitedError,
    CacheMissError,
    # Permanent errors
    FatalTransportError,
    RetriesExhaustedError,
    WarmupIncompleteError,
    ClassificationError,
    PathTraversalError,
    ConfigurationError,
    ForwardingError,
    # Classification utilities
    classify_http_status,
    is_retryable_error,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "SyncError",
    "TransientError",
    "PermanentError",
    # Transient errors
    "RateLimitedError",
    "CacheMissError",
    # Permanent errors
    "FatalTransportError",
    "RetriesExhaustedError",
    "WarmupIncompleteError",
    "ClassificationError",
    "PathTraversalError",
    "ConfigurationError",
    "ForwardingError",
    # Classification utilities
    "classify_http_status",
    "is_retryable_error",
]
