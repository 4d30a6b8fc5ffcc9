"""
Video lane: materialize an object onto local disk.

Maps a FileRef onto a DownloadTask (source URL, contained local path,
staging directory) and hands it to the core ObjectDownloader.
"""

import logging
import time
from typing import Optional

import aiohttp

from core.download.downloader import ObjectDownloader, forbidden_retry_policy
from core.download.models import DownloadOutcome, DownloadTask
from core.errors.exceptions import PathTraversalError
from core.logging.utilities import extract_log_context, log_with_context
from s6_agent import metrics
from s6_agent.config import AgentConfig
from s6_agent.schemas.file_ref import FileRef

logger = logging.getLogger(__name__)


class Materializer:
    """Downloads a FileRef to {base_dir}/{key}."""

    def __init__(
        self,
        config: AgentConfig,
        session: Optional[aiohttp.ClientSession] = None,
        downloader: Optional[ObjectDownloader] = None,
    ):
        self._config = config
        self._downloader = downloader or ObjectDownloader(
            session=session,
            retry_policy=forbidden_retry_policy(
                max_attempts=config.download.max_attempts,
                backoff_seconds=config.download.backoff_seconds,
            ),
        )

    def source_url(self, ref: FileRef) -> str:
        if self._config.source.endpoint:
            return ref.source_url_at(self._config.source.endpoint)
        return ref.source_url

    def build_task(self, ref: FileRef) -> DownloadTask:
        """
        Raises:
            PathTraversalError: If the key resolves outside base_dir
        """
        base_path = self._config.base_path
        return DownloadTask(
            url=self.source_url(ref),
            destination=ref.local_path(base_path),
            staging_dir=base_path,
            timeout=self._config.download.timeout_seconds,
            chunk_size=self._config.download.chunk_size,
        )

    async def download(self, ref: FileRef) -> DownloadOutcome:
        """Download ref, returning the outcome. Never raises for sync failures."""
        started = time.monotonic()

        try:
            task = self.build_task(ref)
        except PathTraversalError as e:
            outcome = DownloadOutcome.failure(e, attempts=0)
        else:
            outcome = await self._downloader.download(task)

        elapsed = time.monotonic() - started
        metrics.record_download(outcome, elapsed)

        if outcome.success:
            log_with_context(
                logger,
                logging.INFO,
                "Done",
                attempts=outcome.attempts,
                bytes_downloaded=outcome.bytes_downloaded,
                file_path=str(outcome.file_path),
                duration_ms=round(elapsed * 1000),
                **extract_log_context(ref),
            )
        return outcome
