"""API routes for batch CSV uploads and their status."""

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from src.api.domain.exceptions import to_http_exception
from src.api.domain.schemas import BatchStatusResponse, BatchUploadResponse
from src.api.infrastructure.container import get_batch_tracker
from src.batch.models import BatchKind
from src.batch.tracker import BatchTracker
from src.strategy.domain.exceptions import StrategyEngineException

router = APIRouter(prefix="/batches", tags=["batches"])


@router.post("/{kind}/upload", response_model=BatchUploadResponse, status_code=202)
async def upload_batch(
    kind: BatchKind,
    file: UploadFile = File(...),
    uploaded_by: str | None = Form(None),
    tracker: BatchTracker = Depends(get_batch_tracker),
):
    """
    Upload a CSV batch.

    Status polling starts immediately and continues in the background.
    """
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are supported")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    try:
        result, _ = await tracker.upload(kind, file.filename, content, uploaded_by=uploaded_by)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e
    return BatchUploadResponse(batch=result)


@router.get("/{kind}/{batch_id}", response_model=BatchStatusResponse)
async def get_batch_status(kind: BatchKind, batch_id: str, tracker: BatchTracker = Depends(get_batch_tracker)):
    """Get a batch status, from the live observation when one is polling it."""
    observation = tracker.tracker(kind).get(batch_id)
    if observation is not None and observation.latest is not None:
        return BatchStatusResponse.from_snapshot(observation.latest, polling=not observation.done)

    try:
        snapshot = await tracker.client.get_status(kind, batch_id)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e
    return BatchStatusResponse.from_snapshot(snapshot, polling=observation is not None)


@router.delete("/{kind}/{batch_id}/observe")
async def stop_observing(kind: BatchKind, batch_id: str, tracker: BatchTracker = Depends(get_batch_tracker)):
    """Stop polling a batch."""
    return {"batch_id": batch_id, "cancelled": tracker.cancel(kind, batch_id)}
