"""Batch upload collaborators (allocation, reallocation, case intake)."""

from src.batch.client import BatchClient
from src.batch.models import BatchKind, BatchStatus, BatchStatusSnapshot, BatchUploadResult
from src.batch.tracker import BatchTracker, batch_outcome_message

__all__ = [
    "BatchClient",
    "BatchKind",
    "BatchStatus",
    "BatchStatusSnapshot",
    "BatchUploadResult",
    "BatchTracker",
    "batch_outcome_message",
]
