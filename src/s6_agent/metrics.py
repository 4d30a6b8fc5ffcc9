"""
Prometheus metrics for the sync agent.

Provides instrumentation for:
- /sync acceptance by lane
- Download attempts, outcomes, bytes and duration
- Cache warm-up requests and per-path outcomes
- Lane tasks currently running
"""

from prometheus_client import Counter, Gauge, Histogram

from core.download.models import DownloadOutcome
from core.errors.exceptions import RetriesExhaustedError

sync_requests_total = Counter(
    "s6_sync_requests_total",
    "Total /sync requests by lane and result",
    ["lane", "status"],  # status: accepted, rejected, invalid
)

download_attempts_total = Counter(
    "s6_download_attempts_total",
    "Total download HTTP attempts by result",
    ["status"],  # status: ok, rate_limited, failed
)

downloads_total = Counter(
    "s6_downloads_total",
    "Total downloads by terminal outcome",
    ["status"],  # status: success, retries_exhausted, failed
)

download_bytes_total = Counter(
    "s6_download_bytes_total",
    "Total bytes materialized to local disk",
)

download_duration_seconds = Histogram(
    "s6_download_duration_seconds",
    "Wall time of a download including retries",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0),
)

warmup_requests_total = Counter(
    "s6_warmup_requests_total",
    "Total image cache warm-up requests by observed cache status",
    ["cache_status"],  # cache_status: hit, miss, error
)

warmups_total = Counter(
    "s6_warmups_total",
    "Total warm-up results per transformation path",
    ["status"],  # status: warm, incomplete, failed
)

tasks_in_flight = Gauge(
    "s6_tasks_in_flight",
    "Lane tasks currently running",
)


def record_sync_request(lane: str, status: str) -> None:
    sync_requests_total.labels(lane=lane, status=status).inc()


def record_download(outcome: DownloadOutcome, duration_seconds: float) -> None:
    """Record a finished download and the attempts it took."""
    download_duration_seconds.observe(duration_seconds)

    exhausted = isinstance(outcome.error, RetriesExhaustedError)
    rate_limited = outcome.attempts if exhausted else max(outcome.attempts - 1, 0)
    if rate_limited:
        download_attempts_total.labels(status="rate_limited").inc(rate_limited)

    if outcome.success:
        download_attempts_total.labels(status="ok").inc()
        downloads_total.labels(status="success").inc()
        download_bytes_total.inc(outcome.bytes_downloaded)
    elif exhausted:
        downloads_total.labels(status="retries_exhausted").inc()
    else:
        if outcome.attempts:
            download_attempts_total.labels(status="failed").inc()
        downloads_total.labels(status="failed").inc()


def record_warmup_request(cache_status: str) -> None:
    warmup_requests_total.labels(cache_status=cache_status).inc()


def record_warmup(status: str) -> None:
    warmups_total.labels(status=status).inc()


def record_lane_crash(lane: str) -> None:
    """Count a lane task that died unexpectedly as a failed outcome."""
    if lane == "video":
        downloads_total.labels(status="failed").inc()
    elif lane == "image":
        warmups_total.labels(status="failed").inc()
