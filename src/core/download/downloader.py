"""
Object downloader with atomic placement.

Provides ObjectDownloader, which orchestrates:
- HTTP GET with a per-request transport timeout
- Bounded retry on the object store's 403 slow-down signal
- Streaming the body into a temporary file beside the destination
- Atomic rename into place, so the destination is either absent or complete

Clean interface: DownloadTask -> DownloadOutcome
"""

import asyncio
import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
import aiohttp

from core.download.http_client import create_session
from core.download.models import DownloadOutcome, DownloadTask
from core.errors.exceptions import (
    FatalTransportError,
    RateLimitedError,
    SyncError,
    classify_http_status,
    ErrorCategory,
)
from core.logging.utilities import log_with_context
from core.resilience.retry import RetryPolicy

logger = logging.getLogger(__name__)

TEMP_PREFIX = "temp-file-"

# Materialized files are world-readable like a plain create under umask 022
FILE_MODE = 0o644


def forbidden_retry_policy(
    max_attempts: int = 5, backoff_seconds: float = 1.0
) -> RetryPolicy:
    """Retry policy that only retries the 403 rate-limit signal."""
    return RetryPolicy(
        max_attempts=max_attempts,
        backoff_seconds=backoff_seconds,
        retryable=lambda e: isinstance(e, RateLimitedError),
        name="download",
    )


class ObjectDownloader:
    """
    Downloads objects to local disk, retrying only on rate limiting.

    Usage:
        downloader = ObjectDownloader()
        task = DownloadTask(
            url="https://s3-us-east-1.amazonaws.com/videos/a/b.mp4",
            destination=Path("/data/a/b.mp4"),
            staging_dir=Path("/data"),
        )
        outcome = await downloader.download(task)

    Session management:
        By default, creates a new session for each download.
        Pass a shared session to the constructor to reuse connections:

        async with create_session() as session:
            downloader = ObjectDownloader(session=session)
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """
        Initialize ObjectDownloader.

        Args:
            session: Optional aiohttp session (None = create per download)
            retry_policy: Policy for the 403 signal (default: 5 attempts, 1s apart)
        """
        self._session = session
        self._retry_policy = retry_policy or forbidden_retry_policy()

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    async def download(self, task: DownloadTask) -> DownloadOutcome:
        """
        Download an object according to task specification.

        Never raises for download failures; the terminal error is carried
        by the returned outcome.

        Args:
            task: Download task specification

        Returns:
            DownloadOutcome with success/failure and attempt count

        Steps:
            1. Create destination directories
            2. GET the source URL, retrying on 403 with fixed backoff
            3. Stream a 200 body into a temp file inside staging_dir
            4. Rename the temp file onto the destination
        """
        attempts = 0

        try:
            await asyncio.to_thread(
                task.destination.parent.mkdir, parents=True, exist_ok=True
            )
        except OSError as e:
            return DownloadOutcome.failure(
                FatalTransportError(f"failed creating dir: {e}", cause=e), attempts
            )

        session = self._session
        should_close_session = False

        try:
            if session is None:
                session = create_session()
                should_close_session = True

            async def attempt(number: int) -> Tuple[int, Optional[str]]:
                nonlocal attempts
                attempts = number
                return await self._attempt(task, session, number)

            bytes_written, content_type = await self._retry_policy.run(attempt)

        except SyncError as e:
            return DownloadOutcome.failure(e, attempts)

        finally:
            if should_close_session and session:
                await session.close()

        return DownloadOutcome.success_outcome(
            file_path=task.destination,
            bytes_downloaded=bytes_written,
            attempts=attempts,
            content_type=content_type,
        )

    async def _attempt(
        self, task: DownloadTask, session: aiohttp.ClientSession, number: int
    ) -> Tuple[int, Optional[str]]:
        """
        Perform a single GET and, on 200, materialize the body.

        Raises:
            RateLimitedError: Source answered 403
            FatalTransportError: Any other failure
        """
        log_with_context(
            logger, logging.INFO, "Start downloading file", attempt=number, url=task.url
        )

        try:
            async with session.get(
                task.url,
                timeout=aiohttp.ClientTimeout(total=task.timeout),
            ) as response:
                status = response.status

                if status != 200:
                    if classify_http_status(status) == ErrorCategory.TRANSIENT:
                        log_with_context(
                            logger,
                            logging.INFO,
                            "Got forbidden",
                            attempt=number,
                            http_status=status,
                        )
                        raise RateLimitedError(
                            f"got {status} when downloading file", status_code=status
                        )
                    raise FatalTransportError(
                        f"got non-OK when downloading file: {status}",
                        status_code=status,
                    )

                bytes_written = await self._stream_to_destination(response, task)
                return bytes_written, response.content_type

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FatalTransportError(
                f"error downloading file: {str(e) or type(e).__name__}", cause=e
            )

    async def _stream_to_destination(
        self, response: aiohttp.ClientResponse, task: DownloadTask
    ) -> int:
        """
        Stream response body to a temp file, then rename it into place.

        The temp file is removed on every failure path, so the destination
        never holds a partial body.
        """
        try:
            fd, temp_name = await asyncio.to_thread(
                tempfile.mkstemp, prefix=TEMP_PREFIX, dir=task.staging_dir
            )
            os.close(fd)
        except OSError as e:
            raise FatalTransportError(f"failed creating file: {e}", cause=e)

        temp_path = Path(temp_name)
        moved = False

        try:
            bytes_written = 0
            async with aiofiles.open(temp_path, "wb") as f:
                async for chunk in response.content.iter_chunked(task.chunk_size):
                    await f.write(chunk)
                    bytes_written += len(chunk)

            # Content-Length counts encoded bytes when the body is compressed
            expected = response.content_length
            encoded = "Content-Encoding" in response.headers
            if expected is not None and not encoded and bytes_written != expected:
                raise FatalTransportError(
                    f"incomplete body: got {bytes_written} of {expected} bytes",
                    status_code=response.status,
                )

            await asyncio.to_thread(os.chmod, temp_path, FILE_MODE)
            await asyncio.to_thread(os.replace, temp_path, task.destination)
            moved = True
            return bytes_written

        except OSError as e:
            raise FatalTransportError(f"failed storing file: {e}", cause=e)

        finally:
            if not moved:
                with contextlib.suppress(FileNotFoundError):
                    temp_path.unlink()


__all__ = ["ObjectDownloader", "forbidden_retry_policy", "TEMP_PREFIX"]
