"""
Thumbor URL signing.

Thumbor authorizes a request by recomputing an HMAC-SHA1 of the URL path
(everything after the token segment) with its SECURITY_KEY and comparing
it to the token. Servers started with ALLOW_UNSAFE_URL accept the literal
token "unsafe" instead.
"""

import base64
import hashlib
import hmac
from typing import Optional

UNSAFE_TOKEN = "unsafe"


def thumbor_token(path: str, key: Optional[str] = None) -> str:
    """
    Compute the access token for a Thumbor path.

    Args:
        path: Thumbor path, e.g. "300x200/smart/https://bucket/a.jpg"
        key: Thumbor security key (None or empty = unsigned)

    Returns:
        URL-safe base64 HMAC-SHA1 digest with padding, or "unsafe"
    """
    if not key:
        return UNSAFE_TOKEN

    digest = hmac.new(
        key.encode("utf-8"), path.encode("utf-8"), hashlib.sha1
    ).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii")
