"""API routes for triggering and observing execution runs."""

from fastapi import APIRouter, Depends, Query

from src.api.domain.exceptions import to_http_exception
from src.api.domain.schemas import ExecutionRunResponse
from src.api.infrastructure.container import get_execution_tracker
from src.strategy.application.execution_tracker import ExecutionTracker
from src.strategy.domain.exceptions import StrategyEngineException

router = APIRouter(prefix="/executions", tags=["executions"])


@router.post("/strategies/{rule_id}", response_model=ExecutionRunResponse, status_code=202)
async def start_run(rule_id: str, tracker: ExecutionTracker = Depends(get_execution_tracker)):
    """
    Trigger a manual run of a rule.

    Status polling starts immediately and continues in the background until the
    run reaches a terminal state.
    """
    try:
        run, _ = await tracker.start_run(rule_id)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e
    return ExecutionRunResponse.from_run(run, polling=True)


@router.get("", response_model=list[ExecutionRunResponse])
async def list_runs(
    rule_id: str | None = Query(None, description="Only runs of this rule"),
    tracker: ExecutionTracker = Depends(get_execution_tracker),
):
    """Execution log, newest first."""
    try:
        runs = await tracker.list_runs(rule_id)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e
    return [ExecutionRunResponse.from_run(run) for run in runs]


@router.get("/{execution_id}", response_model=ExecutionRunResponse)
async def get_run(execution_id: str, tracker: ExecutionTracker = Depends(get_execution_tracker)):
    """Get a run, from the live observation when one is polling it."""
    observation = tracker.get(execution_id)
    if observation is not None and observation.latest is not None:
        return ExecutionRunResponse.from_run(observation.latest, polling=not observation.done)

    try:
        run = await tracker.get_run_detail(execution_id)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e
    return ExecutionRunResponse.from_run(run, polling=observation is not None)


@router.get("/{execution_id}/details")
async def get_run_details(execution_id: str, tracker: ExecutionTracker = Depends(get_execution_tracker)):
    """Per-case breakdown of a run (failed actions, error reasons)."""
    try:
        return await tracker.get_run_details(execution_id)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e


@router.post("/{execution_id}/observe", response_model=ExecutionRunResponse)
async def observe_run(execution_id: str, tracker: ExecutionTracker = Depends(get_execution_tracker)):
    """Start observing an existing run, e.g. one created by the backend scheduler."""
    try:
        run = await tracker.get_run_detail(execution_id)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e

    if run.is_terminal:
        return ExecutionRunResponse.from_run(run)

    tracker.attach(execution_id)
    return ExecutionRunResponse.from_run(run, polling=True)


@router.delete("/{execution_id}/observe")
async def stop_observing(execution_id: str, tracker: ExecutionTracker = Depends(get_execution_tracker)):
    """Stop polling a run. No further status requests are issued for it."""
    return {"execution_id": execution_id, "cancelled": tracker.cancel(execution_id)}
