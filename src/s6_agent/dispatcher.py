"""
Dispatcher: classify a file reference and launch its lane.

handle() is synchronous and returns as soon as the lane task exists. The
task runs to a terminal outcome on its own; its result is logged and
counted, never raised to the caller. The handle on Accepted, and drain(),
let tests and shutdown await outcomes without changing the HTTP contract.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Set, Union

from core.download.models import DownloadOutcome
from core.errors.exceptions import ClassificationError
from core.logging.context import set_log_context
from core.logging.utilities import extract_log_context, log_exception, log_with_context
from s6_agent import metrics
from s6_agent.classifier import ProcessingLane, classify
from s6_agent.config import AgentConfig
from s6_agent.materializer import Materializer
from s6_agent.schemas.file_ref import FileRef
from s6_agent.warmer import CacheWarmer, WarmOutcome

logger = logging.getLogger(__name__)

LaneResult = Union[DownloadOutcome, List[WarmOutcome], None]


@dataclass(frozen=True)
class Accepted:
    """A lane task was started for the reference."""

    lane: ProcessingLane
    task: "asyncio.Task[LaneResult]"


@dataclass(frozen=True)
class Rejected:
    """No task was started."""

    reason: str
    error: ClassificationError


DispatchResult = Union[Accepted, Rejected]


class Dispatcher:
    """
    Routes file references to the download or cache warm-up lane.

    Must be used from a running event loop.
    """

    def __init__(
        self,
        config: AgentConfig,
        materializer: Materializer,
        warmer: CacheWarmer,
    ):
        self._config = config
        self._materializer = materializer
        self._warmer = warmer
        self._in_flight_tasks: Set["asyncio.Task[LaneResult]"] = set()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight_tasks)

    def classify(self, ref: FileRef) -> ProcessingLane:
        return classify(ref.bucket, self._config.bucket.image, self._config.bucket.video)

    def handle(self, ref: FileRef) -> DispatchResult:
        """
        Classify ref and spawn its lane task.

        Returns:
            Accepted with the task handle, or Rejected for unknown buckets
        """
        lane = self.classify(ref)

        if lane == ProcessingLane.VIDEO:
            return self._spawn(lane, ref, self._run_video)
        if lane == ProcessingLane.IMAGE:
            return self._spawn(lane, ref, self._run_image)

        error = ClassificationError(
            "Unknown bucket", bucket=ref.bucket, context=extract_log_context(ref)
        )
        metrics.record_sync_request(lane.value, "rejected")
        log_with_context(
            logger, logging.WARNING, "Unknown bucket", **extract_log_context(ref)
        )
        return Rejected(reason=error.message, error=error)

    def _spawn(
        self,
        lane: ProcessingLane,
        ref: FileRef,
        runner: Callable[[FileRef], Awaitable[LaneResult]],
    ) -> Accepted:
        task = asyncio.create_task(
            self._guarded(lane, ref, runner),
            name=f"{lane.value}:{ref.bucket}/{ref.key}",
        )
        self._in_flight_tasks.add(task)
        metrics.tasks_in_flight.inc()
        task.add_done_callback(self._task_done)

        metrics.record_sync_request(lane.value, "accepted")
        log_with_context(
            logger, logging.DEBUG, "Accepted", lane=lane.value, **extract_log_context(ref)
        )
        return Accepted(lane=lane, task=task)

    def _task_done(self, task: "asyncio.Task[LaneResult]") -> None:
        self._in_flight_tasks.discard(task)
        metrics.tasks_in_flight.dec()

    async def _guarded(
        self,
        lane: ProcessingLane,
        ref: FileRef,
        runner: Callable[[FileRef], Awaitable[LaneResult]],
    ) -> LaneResult:
        """Run a lane to completion; unexpected errors are logged, not raised."""
        set_log_context(lane=lane.value, object_key=f"{ref.bucket}/{ref.key}")
        try:
            return await runner(ref)
        except Exception as e:
            metrics.record_lane_crash(lane.value)
            log_exception(
                logger, e, "Lane task crashed", lane=lane.value, **extract_log_context(ref)
            )
            return None

    async def _run_video(self, ref: FileRef) -> DownloadOutcome:
        outcome = await self._materializer.download(ref)
        if not outcome.success and outcome.error is not None:
            log_exception(
                logger,
                outcome.error,
                "Download failed",
                include_traceback=False,
                attempts=outcome.attempts,
                http_status=outcome.status_code,
                **extract_log_context(ref),
            )
        return outcome

    async def _run_image(self, ref: FileRef) -> List[WarmOutcome]:
        outcomes = await self._warmer.warm(ref)
        warm = sum(1 for o in outcomes if o.success)
        log_with_context(
            logger,
            logging.INFO if warm == len(outcomes) else logging.WARNING,
            f"Cache warm-up finished: {warm}/{len(outcomes)} paths warm",
            **extract_log_context(ref),
        )
        return outcomes

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for every in-flight lane task.

        Tasks spawned while draining are awaited too. Nothing is cancelled.

        Args:
            timeout: Seconds to wait (None = until all are done)

        Returns:
            True if no tasks remain in flight
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        while self._in_flight_tasks:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                break
            await asyncio.wait(set(self._in_flight_tasks), timeout=remaining)

        if self._in_flight_tasks:
            log_with_context(
                logger,
                logging.WARNING,
                "Drain timed out with lane tasks still running",
                in_flight=len(self._in_flight_tasks),
            )
            return False
        return True
