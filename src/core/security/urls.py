"""
URL sanitization for log output.

Removes credentials from URLs before they are written to logs:
- presigned query parameters (AWS signature, tokens)
- Thumbor HMAC access tokens embedded as a path segment
"""

import re
from urllib.parse import urlparse, urlunparse

# Query parameters that grant access if leaked
SENSITIVE_PARAMS = {
    "x-amz-signature",
    "x-amz-credential",
    "x-amz-security-token",
    "signature",
    "sig",
    "token",
    "access_token",
    "api_key",
}

# URL-safe base64 of a 20-byte SHA-1 digest, padding included
_HMAC_SHA1_TOKEN = re.compile(r"^[A-Za-z0-9_-]{27}=$")

REDACTED = "[REDACTED]"


def _sanitize_path(path: str) -> str:
    segments = path.split("/")
    return "/".join(
        REDACTED if _HMAC_SHA1_TOKEN.match(segment) else segment
        for segment in segments
    )


def sanitize_url(url: str) -> str:
    """
    Remove sensitive query parameters and signing tokens from URL.

    Preserves the path and structure for debugging while removing
    tokens that could grant access if exposed in logs.

    Args:
        url: URL that may contain sensitive parameters

    Returns:
        URL with sensitive parts replaced with [REDACTED]
    """
    if not url:
        return url

    try:
        parsed = urlparse(url)
    except ValueError:
        return url  # Return as-is if parsing fails

    path = _sanitize_path(parsed.path)

    sanitized_params = []
    if parsed.query:
        for param in parsed.query.split("&"):
            if "=" in param:
                key, _ = param.split("=", 1)
                if key.lower() in SENSITIVE_PARAMS:
                    sanitized_params.append(f"{key}={REDACTED}")
                    continue
            sanitized_params.append(param)

    return urlunparse(parsed._replace(path=path, query="&".join(sanitized_params)))
