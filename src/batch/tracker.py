"""Batch status observation, reusing the execution polling state machine."""

import asyncio
from functools import partial

from loguru import logger

from src.batch.client import BatchClient
from src.batch.models import BatchKind, BatchStatus, BatchStatusSnapshot, BatchUploadResult
from src.strategy.application.execution_tracker import Observation, SleepFunc, StatusTracker, UpdateCallback


def batch_outcome_message(snapshot: BatchStatusSnapshot) -> str:
    """Operator-facing message for a batch's current status."""
    if snapshot.status == BatchStatus.COMPLETED:
        return f"Batch processed successfully: {snapshot.successful} of {snapshot.total_cases} records."
    if snapshot.status == BatchStatus.PARTIAL:
        return (
            f"Batch partially processed: {snapshot.successful} succeeded, {snapshot.failed} failed "
            f"out of {snapshot.total_cases}."
        )
    if snapshot.status == BatchStatus.FAILED:
        return f"Batch failed: {snapshot.failed} of {snapshot.total_cases} records rejected."
    return f"Batch is processing ({snapshot.successful + snapshot.failed} of {snapshot.total_cases} done)."


class BatchTracker:
    """Uploads batches and polls their status, one tracker per batch flow."""

    def __init__(self, client: BatchClient, interval_seconds: float = 2.0, sleep: SleepFunc = asyncio.sleep):
        self.client = client
        self._trackers: dict[BatchKind, StatusTracker[BatchStatusSnapshot]] = {
            kind: StatusTracker(
                partial(client.get_status, kind),
                interval_seconds=interval_seconds,
                sleep=sleep,
                context_key="batch_id",
            )
            for kind in BatchKind
        }

    def tracker(self, kind: BatchKind) -> StatusTracker[BatchStatusSnapshot]:
        return self._trackers[BatchKind(kind)]

    async def upload(
        self,
        kind: BatchKind,
        filename: str,
        content: bytes,
        uploaded_by: str | None = None,
        on_update: UpdateCallback | None = None,
    ) -> tuple[BatchUploadResult, Observation[BatchStatusSnapshot]]:
        """Upload a file and start observing the resulting batch."""
        result = await self.client.upload(kind, filename, content, uploaded_by=uploaded_by)
        return result, self.observe(kind, result.batch_id, on_update)

    def observe(
        self, kind: BatchKind, batch_id: str, on_update: UpdateCallback | None = None
    ) -> Observation[BatchStatusSnapshot]:
        return self.tracker(kind).observe(batch_id, on_update)

    def cancel(self, kind: BatchKind, batch_id: str) -> bool:
        return self.tracker(kind).cancel(batch_id)

    async def aclose(self) -> None:
        await asyncio.gather(*(tracker.aclose() for tracker in self._trackers.values()))
        logger.debug("Batch trackers closed")
