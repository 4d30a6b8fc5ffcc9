"""
Resilience patterns module.

Provides the bounded retry policy shared by the download and cache
warm-up lanes.
"""

from core.resilience.retry import RetryPolicy

__all__ = ["RetryPolicy"]
