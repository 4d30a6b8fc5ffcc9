"""Tests for URL sanitization."""

from core.security.urls import REDACTED, sanitize_url


class TestSanitizeUrl:
    def test_redacts_presigned_params(self):
        url = (
            "https://s3-us-east-1.amazonaws.com/videos/a.mp4"
            "?X-Amz-Signature=abc123&X-Amz-Expires=60"
        )

        result = sanitize_url(url)

        assert "abc123" not in result
        assert f"X-Amz-Signature={REDACTED}" in result
        assert "X-Amz-Expires=60" in result

    def test_redacts_thumbor_token_segment(self):
        token = "0123456789abcdefghijklmnop_="
        url = f"https://img.example.com/{token}/300x200/https://images/a.jpg"

        result = sanitize_url(url)

        assert result == f"https://img.example.com/{REDACTED}/300x200/https://images/a.jpg"

    def test_keeps_unsafe_marker(self):
        url = "http://thumbor:8888/unsafe/300x200/https://images/a.jpg"

        assert sanitize_url(url) == url

    def test_plain_url_unchanged(self):
        url = "https://s3-eu-west-1.amazonaws.com/videos/a/b.mp4"

        assert sanitize_url(url) == url

    def test_empty(self):
        assert sanitize_url("") == ""
