"""Tests for batch upload status observation."""

import asyncio

import pytest

from src.batch.models import BatchKind, BatchStatus, BatchStatusSnapshot, BatchUploadResult
from src.batch.tracker import BatchTracker, batch_outcome_message


class ScriptedBatchClient:
    def __init__(self, statuses: list[str]):
        self.statuses = list(statuses)
        self.status_calls: list[tuple[BatchKind, str]] = []

    async def upload(self, kind, filename, content, uploaded_by=None):
        return BatchUploadResult(batch_id="B-1", status="PROCESSING", total_cases=5)

    async def get_status(self, kind, batch_id):
        self.status_calls.append((kind, batch_id))
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return BatchStatusSnapshot(batch_id=batch_id, status=status, total_cases=5, successful=4, failed=1)


async def no_sleep(_seconds: float) -> None:
    await asyncio.sleep(0)


async def never_wake(_seconds: float) -> None:
    await asyncio.Event().wait()


@pytest.mark.asyncio
async def test_upload_polls_until_terminal():
    client = ScriptedBatchClient(["processing", "PROCESSING", "partial"])
    tracker = BatchTracker(client, sleep=no_sleep)

    result, observation = await tracker.upload(BatchKind.ALLOCATION, "cases.csv", b"loan\nL1\n")
    final = await observation.wait()

    assert result.batch_id == "B-1"
    assert final.status == BatchStatus.PARTIAL
    assert client.status_calls == [(BatchKind.ALLOCATION, "B-1")] * 3


@pytest.mark.asyncio
async def test_kinds_are_tracked_separately():
    client = ScriptedBatchClient(["COMPLETED"])
    tracker = BatchTracker(client, sleep=no_sleep)

    await tracker.observe(BatchKind.REALLOCATION, "B-2").wait()

    assert tracker.tracker(BatchKind.ALLOCATION).get("B-2") is None
    assert client.status_calls == [(BatchKind.REALLOCATION, "B-2")]
    await tracker.aclose()


@pytest.mark.asyncio
async def test_cancel_mid_processing_stops_requests():
    client = ScriptedBatchClient(["PROCESSING"])
    tracker = BatchTracker(client, sleep=never_wake)

    _, observation = await tracker.upload(BatchKind.CASE_INTAKE, "cases.csv", b"loan\nL1\n")
    for _ in range(10):
        await asyncio.sleep(0)
    assert client.status_calls == [(BatchKind.CASE_INTAKE, "B-1")]

    assert tracker.cancel(BatchKind.CASE_INTAKE, "B-1") is True
    for _ in range(10):
        await asyncio.sleep(0)

    assert observation.cancelled
    assert client.status_calls == [(BatchKind.CASE_INTAKE, "B-1")]
    assert tracker.cancel(BatchKind.CASE_INTAKE, "B-1") is False


def test_outcome_messages():
    def snapshot(status: str) -> BatchStatusSnapshot:
        return BatchStatusSnapshot(batch_id="B", status=status, total_cases=5, successful=4, failed=1)

    assert batch_outcome_message(snapshot("COMPLETED")).startswith("Batch processed successfully")
    assert "4 succeeded, 1 failed" in batch_outcome_message(snapshot("PARTIAL"))
    assert batch_outcome_message(snapshot("FAILED")) == "Batch failed: 1 of 5 records rejected."
    assert "5 of 5 done" in batch_outcome_message(snapshot("PROCESSING"))
