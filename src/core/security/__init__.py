"""
Security module.

Provides:
- resolve_under(): Path traversal prevention for object keys
- thumbor_token(): Thumbor HMAC URL signing
- sanitize_url(): Remove tokens from logged URLs
"""

from core.security.paths import resolve_under, validate_object_key
from core.security.signing import UNSAFE_TOKEN, thumbor_token
from core.security.urls import sanitize_url

__all__ = [
    "resolve_under",
    "validate_object_key",
    "thumbor_token",
    "UNSAFE_TOKEN",
    "sanitize_url",
]
