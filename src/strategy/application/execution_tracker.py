"""Client-side polling state machine for execution runs (and anything else with a status endpoint)."""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from loguru import logger

from src.strategy.domain.exceptions import BackendError, ResourceNotFoundError
from src.strategy.domain.models import ExecutionRun, ExecutionStatus
from src.strategy.domain.protocols import ExecutionApi, PollableSnapshot
from src.strategy.infrastructure.logging import LoggingContext

T = TypeVar("T", bound=PollableSnapshot)

SleepFunc = Callable[[float], Awaitable[None]]
UpdateCallback = Callable[[T], Awaitable[None] | None]
FetchFunc = Callable[[str], Awaitable[T]]


class Observation(Generic[T]):
    """
    Handle on one polling sequence.

    The sequence ends on the first terminal snapshot, when cancelled, or when the
    resource turns out not to exist.
    """

    def __init__(self, resource_id: str):
        self.resource_id = resource_id
        self.latest: T | None = None
        self.requests_issued = 0
        self.error: BaseException | None = None
        self._task: asyncio.Task | None = None

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._task is not None and self._task.cancelled()

    def cancel(self) -> None:
        """Stop polling. The pending follow-up request is never issued."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> T | None:
        """
        Wait for the terminal snapshot.

        Cancelling the waiter does not stop the polling sequence.

        Raises:
            asyncio.CancelledError: If the observation was cancelled
            ResourceNotFoundError: If the resource does not exist
        """
        return await asyncio.shield(self._task)


class StatusTracker(Generic[T]):
    """
    Polls a status endpoint per resource until a terminal snapshot is seen.

    Requests for one resource are strictly sequential: the next request is scheduled
    only after the previous response arrived. Each resource is polled by its own task,
    so resources never block each other. Transport and server failures are logged and
    polling continues on the fixed interval.
    """

    def __init__(
        self,
        fetch_status: FetchFunc,
        interval_seconds: float = 2.0,
        sleep: SleepFunc = asyncio.sleep,
        context_key: str = "run_id",
    ):
        """
        Initialize tracker.

        Args:
            fetch_status: Coroutine function returning the current snapshot for an id
            interval_seconds: Delay between a response and the next request
            sleep: Sleep function (injectable for tests)
            context_key: Logging context key bound while polling
        """
        self.fetch_status = fetch_status
        self.interval_seconds = interval_seconds
        self.sleep = sleep
        self.context_key = context_key
        self._observations: dict[str, Observation[T]] = {}

    def observe(self, resource_id: str, on_update: UpdateCallback | None = None) -> Observation[T]:
        """
        Start polling a resource, or return the live observation if one exists.

        Args:
            resource_id: Id passed to the status endpoint
            on_update: Optional callback invoked with every received snapshot

        Returns:
            A cancellable observation handle
        """
        existing = self._observations.get(resource_id)
        if existing is not None and not existing.done:
            return existing

        observation: Observation[T] = Observation(resource_id)
        observation._task = asyncio.create_task(
            self._poll(observation, on_update), name=f"poll-{self.context_key}-{resource_id}"
        )
        observation._task.add_done_callback(lambda task: self._on_done(observation, task))
        self._observations[resource_id] = observation
        return observation

    def get(self, resource_id: str) -> Observation[T] | None:
        return self._observations.get(resource_id)

    @property
    def active(self) -> list[str]:
        return [rid for rid, obs in self._observations.items() if not obs.done]

    def cancel(self, resource_id: str) -> bool:
        """Cancel polling of a resource. Returns False if it was not being polled."""
        observation = self._observations.get(resource_id)
        if observation is None or observation.done:
            return False

        observation.cancel()
        logger.info(f"⏹️ Stopped polling {self.context_key}={resource_id}")
        return True

    async def aclose(self) -> None:
        """Cancel every live observation and wait for the tasks to unwind."""
        tasks = [obs._task for obs in self._observations.values() if obs._task and not obs._task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._observations.clear()

    def _on_done(self, observation: Observation[T], task: asyncio.Task) -> None:
        if self._observations.get(observation.resource_id) is observation:
            del self._observations[observation.resource_id]

        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            observation.error = error
            with LoggingContext(**{self.context_key: observation.resource_id}):
                logger.error(
                    f"✗ Polling of {self.context_key}={observation.resource_id} ended after "
                    f"{observation.requests_issued} requests: {type(error).__name__}: {error}"
                )

    async def _poll(self, observation: Observation[T], on_update: UpdateCallback | None) -> T | None:
        with LoggingContext(**{self.context_key: observation.resource_id}):
            while True:
                observation.requests_issued += 1
                try:
                    snapshot = await self.fetch_status(observation.resource_id)
                except ResourceNotFoundError:
                    raise
                except BackendError as e:
                    logger.warning(
                        f"Status request #{observation.requests_issued} failed, retrying in "
                        f"{self.interval_seconds}s: {e.message}"
                    )
                else:
                    observation.latest = snapshot
                    if on_update is not None:
                        result = on_update(snapshot)
                        if inspect.isawaitable(result):
                            await result

                    if snapshot.is_terminal:
                        logger.info(
                            f"✓ Terminal status after {observation.requests_issued} requests: "
                            f"{getattr(snapshot, 'status', snapshot)}"
                        )
                        return snapshot

                await self.sleep(self.interval_seconds)


def outcome_message(run: ExecutionRun) -> str:
    """Operator-facing message for a run's current status."""
    if run.status == ExecutionStatus.COMPLETED:
        return f"Execution completed successfully: {run.success_count} of {run.total_processed} actions sent."
    if run.status == ExecutionStatus.PARTIAL:
        return (
            f"Execution partially completed: {run.success_count} succeeded, "
            f"{run.failed_count} failed out of {run.total_processed}."
        )
    if run.status == ExecutionStatus.FAILED:
        reason = f": {run.error_summary}" if run.error_summary else "."
        return f"Execution failed{reason}"
    return f"Execution {run.status.value.lower()}, {run.total_processed} cases processed so far."


class ExecutionTracker(StatusTracker[ExecutionRun]):
    """Creates, attaches to and observes execution runs of rules."""

    def __init__(self, api: ExecutionApi, interval_seconds: float = 2.0, sleep: SleepFunc = asyncio.sleep):
        super().__init__(api.get_execution, interval_seconds=interval_seconds, sleep=sleep, context_key="run_id")
        self.api = api

    async def start_run(
        self, rule_id: str, on_update: UpdateCallback | None = None
    ) -> tuple[ExecutionRun, Observation[ExecutionRun]]:
        """
        Trigger a manual run and start observing it.

        Returns:
            The run as created by the backend and its observation handle
        """
        with LoggingContext(rule_id=rule_id):
            run = await self.api.execute(rule_id)
            logger.info(f"🚀 Started run {run.id} ({run.status.value})")
        return run, self.observe(run.id, on_update)

    def attach(self, execution_id: str, on_update: UpdateCallback | None = None) -> Observation[ExecutionRun]:
        """Observe an existing run, e.g. one created by the backend scheduler."""
        return self.observe(execution_id, on_update)

    async def list_runs(self, rule_id: str | None = None) -> list[ExecutionRun]:
        """Execution log, optionally for one rule, newest first."""
        runs = await self.api.list_executions()
        if rule_id is not None:
            runs = [run for run in runs if run.rule_id == rule_id]
        return sorted(runs, key=lambda run: run.started_at.timestamp() if run.started_at else 0.0, reverse=True)

    async def get_run_detail(self, execution_id: str) -> ExecutionRun:
        return await self.api.get_execution(execution_id)

    async def get_run_details(self, execution_id: str) -> dict[str, Any]:
        """Per-case breakdown of a run (errors, actions), as reported by the backend."""
        return await self.api.get_execution_details(execution_id)
