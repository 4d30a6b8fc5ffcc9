"""Bucket to processing lane classification."""

from enum import Enum
from typing import Collection


class ProcessingLane(str, Enum):
    """Processing path selected for a file reference."""

    IMAGE = "image"
    VIDEO = "video"
    UNKNOWN = "unknown"


def classify(
    bucket: str,
    image_buckets: Collection[str],
    video_buckets: Collection[str],
) -> ProcessingLane:
    """
    Map a bucket to its processing lane.

    Image buckets are checked first. Configuration validation refuses
    overlapping sets, so the order only matters for direct callers.

    Args:
        bucket: Bucket name from the file reference
        image_buckets: Buckets whose objects warm the image cache
        video_buckets: Buckets whose objects are downloaded

    Returns:
        ProcessingLane (UNKNOWN when the bucket is in neither set)
    """
    if bucket in image_buckets:
        return ProcessingLane.IMAGE
    if bucket in video_buckets:
        return ProcessingLane.VIDEO
    return ProcessingLane.UNKNOWN
