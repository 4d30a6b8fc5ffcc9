"""Tests for Thumbor URL signing."""

import base64
import hashlib
import hmac

from core.security.signing import UNSAFE_TOKEN, thumbor_token


def reference_token(key: str, path: str) -> str:
    digest = hmac.new(key.encode(), path.encode(), hashlib.sha1).digest()
    return base64.urlsafe_b64encode(digest).decode()


class TestThumborToken:
    def test_matches_hmac_sha1_urlsafe_base64(self):
        path = "300x200/smart/https://images-prod/a/b.jpg"

        token = thumbor_token(path, "secret")

        assert token == reference_token("secret", path)
        assert len(token) == 28
        assert token.endswith("=")
        assert "+" not in token and "/" not in token

    def test_deterministic(self):
        path = "fit-in/640x480/https://images-prod/a.jpg"

        assert thumbor_token(path, "k") == thumbor_token(path, "k")

    def test_depends_on_key_and_path(self):
        path = "300x200/https://images-prod/a.jpg"

        assert thumbor_token(path, "k1") != thumbor_token(path, "k2")
        assert thumbor_token(path, "k1") != thumbor_token(path + "x", "k1")

    def test_without_key_is_unsafe(self):
        assert thumbor_token("300x200/https://b/a.jpg") == UNSAFE_TOKEN
        assert thumbor_token("300x200/https://b/a.jpg", "") == "unsafe"
