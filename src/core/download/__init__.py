"""
Async download module.

Provides HTTP download logic decoupled from the agent's lanes:
    - DownloadTask -> DownloadOutcome interface
    - Bounded retry on the object store's 403 slow-down signal
    - Streaming writes into a temp file and atomic rename into place
"""

from core.download.downloader import TEMP_PREFIX, ObjectDownloader, forbidden_retry_policy
from core.download.http_client import create_session
from core.download.models import DownloadOutcome, DownloadTask

__all__ = [
    "ObjectDownloader",
    "forbidden_retry_policy",
    "TEMP_PREFIX",
    "create_session",
    "DownloadOutcome",
    "DownloadTask",
]
