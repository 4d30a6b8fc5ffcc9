"""
Image lane: warm the Thumbor result cache.

For every configured transformation path, request the signed Thumbor URL
until the cache reports a hit. A 200 alone proves nothing: on a miss
Thumbor answers 200 while it generates and stores the result, so success
is read from the X-Cache header of a later request.

Paths are independent. A failure on one never stops the others.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

import aiohttp

from core.download.http_client import create_session
from core.errors.exceptions import (
    CacheMissError,
    ConfigurationError,
    FatalTransportError,
    SyncError,
    WarmupIncompleteError,
)
from core.logging.utilities import extract_log_context, log_exception, log_with_context
from core.resilience.retry import RetryPolicy
from core.security.signing import thumbor_token
from s6_agent import metrics
from s6_agent.config import ThumborConfig
from s6_agent.schemas.file_ref import FileRef

logger = logging.getLogger(__name__)

CACHE_HEADER = "X-Cache"


@dataclass
class WarmOutcome:
    """Result of warming one transformation path for one object."""

    path: str
    cache_path: str
    token: str
    url: str
    success: bool = False
    attempts: int = 0
    cache_status: Optional[str] = None
    error: Optional[SyncError] = None

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error else None


def cache_miss_retry_policy(max_attempts: int = 5) -> RetryPolicy:
    """Retry policy for cache misses: no wait, the next request is the nudge."""
    return RetryPolicy(
        max_attempts=max_attempts,
        backoff_seconds=0.0,
        retryable=lambda e: isinstance(e, CacheMissError),
        exhausted_error=WarmupIncompleteError,
        name="warmup",
    )


class CacheWarmer:
    """
    Issues signed warm-up requests for every configured Thumbor path.

    Usage:
        warmer = CacheWarmer(config.thumbor, session=session)
        outcomes = await warmer.warm(ref)
    """

    def __init__(
        self,
        config: ThumborConfig,
        session: Optional[aiohttp.ClientSession] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self._config = config
        self._session = session
        self._retry_policy = retry_policy or cache_miss_retry_policy(
            config.max_attempts
        )

    def cache_path(self, ref: FileRef, path: str) -> str:
        return f"{path}/{ref.public_url}"

    def build_url(self, cache_path: str, token: str) -> str:
        return f"{self._config.url.rstrip('/')}/{token}/{cache_path}"

    async def warm(self, ref: FileRef) -> List[WarmOutcome]:
        """
        Warm every configured path for ref, in configuration order.

        Returns:
            One WarmOutcome per path
        """
        session = self._session
        should_close_session = False

        try:
            if session is None:
                session = create_session()
                should_close_session = True

            outcomes = []
            for path in self._config.paths:
                outcome = await self.warm_path(ref, path, session)
                outcomes.append(outcome)
            return outcomes

        finally:
            if should_close_session and session:
                await session.close()

    async def warm_path(
        self, ref: FileRef, path: str, session: aiohttp.ClientSession
    ) -> WarmOutcome:
        """Warm one transformation path. Never raises for sync failures."""
        cache_path = self.cache_path(ref, path)
        token = thumbor_token(cache_path, self._config.key)
        url = self.build_url(cache_path, token)
        outcome = WarmOutcome(path=path, cache_path=cache_path, token=token, url=url)
        context = dict(transform_path=path, **extract_log_context(ref))

        if not self._config.url:
            outcome.error = ConfigurationError("thumbor URL not set")
            metrics.record_warmup("failed")
            log_exception(
                logger, outcome.error, "Cache warm-up skipped",
                include_traceback=False, **context,
            )
            return outcome

        async def attempt(number: int) -> str:
            outcome.attempts = number
            status = await self._request(session, url, number, context)
            outcome.cache_status = status
            return status

        try:
            await self._retry_policy.run(attempt)
        except WarmupIncompleteError as e:
            outcome.error = e
            metrics.record_warmup("incomplete")
            log_exception(
                logger, e, "Cache warm-up incomplete",
                include_traceback=False, attempts=outcome.attempts, **context,
            )
            return outcome
        except SyncError as e:
            outcome.error = e
            metrics.record_warmup("failed")
            log_exception(
                logger, e, "Cache warm-up failed",
                include_traceback=False, attempts=outcome.attempts, **context,
            )
            return outcome

        outcome.success = True
        metrics.record_warmup("warm")
        log_with_context(
            logger, logging.INFO, "Cache hit", attempts=outcome.attempts, **context
        )
        return outcome

    async def _request(
        self,
        session: aiohttp.ClientSession,
        url: str,
        number: int,
        context: dict,
    ) -> str:
        """
        Single warm-up request.

        Returns:
            The X-Cache value when it reports a hit

        Raises:
            CacheMissError: Header absent or not a hit
            FatalTransportError: The cache service could not be reached
        """
        try:
            async with session.get(url) as response:
                await response.read()
                cache_status = response.headers.get(CACHE_HEADER, "")
                http_status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            metrics.record_warmup_request("error")
            raise FatalTransportError(
                f"error requesting cache: {str(e) or type(e).__name__}", cause=e
            )

        if cache_status.lower().startswith("hit"):
            metrics.record_warmup_request("hit")
            return cache_status

        metrics.record_warmup_request("miss")
        log_with_context(
            logger,
            logging.INFO,
            "Cache not hit",
            attempt=number,
            cache_status=cache_status or None,
            http_status=http_status,
            url=url,
            **context,
        )
        raise CacheMissError(
            f"cache not hit (X-Cache: {cache_status or 'absent'})",
            cache_status=cache_status or None,
        )
