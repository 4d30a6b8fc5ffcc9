"""Log context variables propagated across asyncio tasks."""

from contextvars import ContextVar
from typing import Dict, Optional

_lane: ContextVar[Optional[str]] = ContextVar("lane", default=None)
_worker_id: ContextVar[Optional[str]] = ContextVar("worker_id", default=None)
_object_key: ContextVar[Optional[str]] = ContextVar("object_key", default=None)


def set_log_context(
    lane: Optional[str] = None,
    worker_id: Optional[str] = None,
    object_key: Optional[str] = None,
) -> None:
    """
    Set logging context variables.

    Only provided values are updated. Each asyncio task runs in a copy of
    the context it was created from, so values set inside a lane task do
    not leak back into the request handler.
    """
    if lane is not None:
        _lane.set(lane)
    if worker_id is not None:
        _worker_id.set(worker_id)
    if object_key is not None:
        _object_key.set(object_key)


def get_log_context() -> Dict[str, Optional[str]]:
    """Get current logging context."""
    return {
        "lane": _lane.get(),
        "worker_id": _worker_id.get(),
        "object_key": _object_key.get(),
    }


def clear_log_context() -> None:
    """Clear all context variables."""
    _lane.set(None)
    _worker_id.set(None)
    _object_key.set(None)
