"""Tests for CacheWarmer against a scripted Thumbor stand-in."""

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer as AiohttpTestServer

from core.errors.exceptions import (
    ConfigurationError,
    FatalTransportError,
    WarmupIncompleteError,
)
from core.security.signing import thumbor_token
from s6_agent.config import ThumborConfig
from s6_agent.schemas.file_ref import FileRef
from s6_agent.warmer import CacheWarmer, cache_miss_retry_policy

REF = FileRef(region="us-east-1", bucket="images-prod", key="a/b.jpg")


def make_warmer(url: str, key: str = "secret", paths=("300x200",)) -> CacheWarmer:
    return CacheWarmer(ThumborConfig(url=url, key=key, paths=tuple(paths)))


class TestCacheWarmerSuccess:
    """Warm-up until the cache reports a hit."""

    @pytest.mark.asyncio
    async def test_misses_then_hit(self, scripted_server, cache_hit, cache_miss):
        async with scripted_server([cache_miss(), cache_miss(), cache_hit()]) as server:
            outcomes = await make_warmer(server.url()).warm(REF)

        assert len(outcomes) == 1
        outcome = outcomes[0]
        assert outcome.success is True
        assert outcome.attempts == 3
        assert outcome.cache_status == "HIT"
        assert outcome.error is None
        assert len(server.requests) == 3
        # Every attempt requests the same signed URL
        assert len(set(server.requests)) == 1

    @pytest.mark.asyncio
    async def test_signed_request_path(self, scripted_server, cache_hit):
        cache_path = "300x200/https://images-prod/a/b.jpg"
        token = thumbor_token(cache_path, "secret")

        async with scripted_server([cache_hit()]) as server:
            base_url = server.url()
            outcomes = await make_warmer(base_url).warm(REF)

        assert outcomes[0].cache_path == cache_path
        assert outcomes[0].token == token
        assert outcomes[0].url == f"{base_url}/{token}/{cache_path}"
        assert server.requests == [f"/{token}/{cache_path}"]

    def test_build_url_joins_base_token_and_path(self):
        warmer = make_warmer("https://img.example.com/")

        url = warmer.build_url("300x200/https://images-prod/a.jpg", "unsafe")

        assert url == "https://img.example.com/unsafe/300x200/https://images-prod/a.jpg"

    @pytest.mark.asyncio
    async def test_unsigned_without_key(self, scripted_server, cache_hit):
        async with scripted_server([cache_hit()]) as server:
            outcomes = await make_warmer(server.url(), key="").warm(REF)

        assert outcomes[0].token == "unsafe"
        assert server.requests[0].startswith("/unsafe/300x200/")

    @pytest.mark.asyncio
    async def test_hit_match_is_prefix_and_case_insensitive(
        self, scripted_server, cache_miss
    ):
        async with scripted_server([cache_miss(header="Hit from cloudfront")]) as server:
            outcomes = await make_warmer(server.url()).warm(REF)

        assert outcomes[0].success is True
        assert outcomes[0].attempts == 1

    @pytest.mark.asyncio
    async def test_paths_warmed_in_order(self, scripted_server, cache_hit):
        paths = ("300x200/smart", "fit-in/640x480")

        async with scripted_server([cache_hit()]) as server:
            outcomes = await make_warmer(server.url(), paths=paths).warm(REF)

        assert [o.path for o in outcomes] == list(paths)
        assert all(o.success for o in outcomes)
        assert "/300x200/smart/" in server.requests[0]
        assert "/fit-in/640x480/" in server.requests[1]


class TestCacheWarmerFailures:
    """Misses, missing headers and transport errors."""

    @pytest.mark.asyncio
    async def test_always_miss_is_incomplete(self, scripted_server, cache_miss):
        async with scripted_server([cache_miss()]) as server:
            outcomes = await make_warmer(server.url()).warm(REF)

        outcome = outcomes[0]
        assert outcome.success is False
        assert isinstance(outcome.error, WarmupIncompleteError)
        assert outcome.attempts == 5
        assert len(server.requests) == 5

    @pytest.mark.asyncio
    async def test_missing_header_counts_as_miss(self, scripted_server, cache_miss):
        async with scripted_server([cache_miss(header=None)]) as server:
            warmer = CacheWarmer(
                ThumborConfig(url=server.url(), key="k", paths=("300x200",)),
                retry_policy=cache_miss_retry_policy(max_attempts=2),
            )
            outcomes = await warmer.warm(REF)

        assert isinstance(outcomes[0].error, WarmupIncompleteError)
        assert outcomes[0].cache_status is None
        assert len(server.requests) == 2

    @pytest.mark.asyncio
    async def test_one_path_failing_does_not_stop_others(
        self, scripted_server, cache_hit, cache_miss
    ):
        paths = ("300x200", "640x480")
        script = [cache_miss()] * 5 + [cache_hit()]

        async with scripted_server(script) as server:
            outcomes = await make_warmer(server.url(), paths=paths).warm(REF)

        assert outcomes[0].success is False
        assert isinstance(outcomes[0].error, WarmupIncompleteError)
        assert outcomes[1].success is True
        assert outcomes[1].attempts == 1
        assert len(server.requests) == 6

    @pytest.mark.asyncio
    async def test_transport_error_is_fatal_for_the_path(self):
        server = AiohttpTestServer(web.Application())
        await server.start_server()
        url = str(server.make_url("/")).rstrip("/")
        await server.close()

        outcomes = await make_warmer(url, paths=("300x200", "640x480")).warm(REF)

        assert len(outcomes) == 2
        for outcome in outcomes:
            assert outcome.success is False
            assert isinstance(outcome.error, FatalTransportError)
            assert outcome.attempts == 1

    @pytest.mark.asyncio
    async def test_missing_url_fails_without_requests(self):
        outcomes = await make_warmer("", paths=("300x200",)).warm(REF)

        assert isinstance(outcomes[0].error, ConfigurationError)
        assert outcomes[0].error_message == "thumbor URL not set"
        assert outcomes[0].attempts == 0

    @pytest.mark.asyncio
    async def test_no_paths_no_requests(self, scripted_server, cache_hit):
        async with scripted_server([cache_hit()]) as server:
            outcomes = await make_warmer(server.url(), paths=()).warm(REF)

        assert outcomes == []
        assert server.requests == []
