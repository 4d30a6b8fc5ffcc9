"""
Download task and outcome models.

DownloadTask describes one object to fetch and where to place it.
DownloadOutcome reports what happened without raising.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from core.errors.exceptions import ErrorCategory, SyncError


@dataclass(frozen=True)
class DownloadTask:
    """
    Specification for a single download.

    Attributes:
        url: Source URL to GET
        destination: Final path; only ever written by an atomic rename
        staging_dir: Directory for the temporary file, must be on the same
            filesystem as destination
        timeout: Total per-request timeout in seconds
        chunk_size: Bytes read from the response per write
    """

    url: str
    destination: Path
    staging_dir: Path
    timeout: float = 300.0
    chunk_size: int = 64 * 1024


@dataclass
class DownloadOutcome:
    """
    Result of a download.

    On success, file_path holds the materialized file. On failure, error
    holds the terminal SyncError and nothing exists at the destination
    from this attempt.
    """

    success: bool
    attempts: int = 0
    file_path: Optional[Path] = None
    bytes_downloaded: int = 0
    status_code: Optional[int] = None
    content_type: Optional[str] = None
    error: Optional[SyncError] = None
    error_message: Optional[str] = None
    error_category: Optional[ErrorCategory] = None

    @classmethod
    def success_outcome(
        cls,
        file_path: Path,
        bytes_downloaded: int,
        attempts: int,
        status_code: int = 200,
        content_type: Optional[str] = None,
    ) -> "DownloadOutcome":
        return cls(
            success=True,
            attempts=attempts,
            file_path=file_path,
            bytes_downloaded=bytes_downloaded,
            status_code=status_code,
            content_type=content_type,
        )

    @classmethod
    def failure(cls, error: SyncError, attempts: int) -> "DownloadOutcome":
        status_code = getattr(error, "status_code", None)
        if status_code is None:
            # Exhausted retries report the status of the last attempt
            status_code = getattr(getattr(error, "last_error", None), "status_code", None)
        return cls(
            success=False,
            attempts=attempts,
            status_code=status_code,
            error=error,
            error_message=str(error),
            error_category=error.category,
        )
