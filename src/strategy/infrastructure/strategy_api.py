"""REST client for strategy persistence and execution endpoints."""

from typing import Any

from loguru import logger

from src.strategy.domain.models import (
    DashboardSummary,
    ExecutionRun,
    ExecutionStatus,
    Rule,
    RulePayload,
    RuleStatus,
    SimulationResult,
    TriggerType,
)
from src.strategy.infrastructure.http_client import BackendClient

BASE_URL = "/strategies"


def as_list(payload: Any) -> list:
    """Normalize list payloads; some endpoints wrap them in a page object."""
    if payload is None:
        return []
    if isinstance(payload, dict):
        for key in ("content", "items", "data"):
            if isinstance(payload.get(key), list):
                return payload[key]
        return []
    return list(payload)


class StrategyApiClient(BackendClient):
    """Rule repository and execution API over the backend's /strategies resource."""

    async def create(self, payload: RulePayload) -> Rule:
        data = await self._post(f"{BASE_URL}/create", payload.to_wire())
        return self._parse(Rule, data)

    async def update(self, rule_id: str, payload: RulePayload) -> Rule:
        data = await self._put(f"{BASE_URL}/{rule_id}", payload.to_wire())
        return self._parse(Rule, data)

    async def get(self, rule_id: str) -> Rule:
        data = await self._get(f"{BASE_URL}/{rule_id}")
        return self._parse(Rule, data)

    async def list_all(self, status: RuleStatus | None = None) -> list[Rule]:
        params = {"status": status.value} if status else None
        data = await self._get(BASE_URL, params=params)
        return [self._parse(Rule, item) for item in as_list(data)]

    async def delete(self, rule_id: str) -> None:
        await self._delete(f"{BASE_URL}/{rule_id}")

    async def set_status(self, rule_id: str, status: RuleStatus) -> Rule:
        data = await self._patch(f"{BASE_URL}/{rule_id}/status", params={"status": status.value})
        return self._parse(Rule, data)

    async def set_scheduler(self, rule_id: str, enabled: bool) -> Rule:
        data = await self._patch(f"{BASE_URL}/{rule_id}/scheduler", params={"enabled": str(enabled).lower()})
        return self._parse(Rule, data)

    async def simulate(self, rule_id: str) -> SimulationResult:
        data = await self._post(f"{BASE_URL}/{rule_id}/simulate")
        result = self._parse(SimulationResult, data or {})
        if result.rule_id is None:
            result = result.model_copy(update={"rule_id": rule_id})
        return result

    async def get_dashboard(self) -> tuple[DashboardSummary, list[Rule]]:
        data = await self._get(f"{BASE_URL}/dashboard") or {}
        summary = self._parse(DashboardSummary, data.get("summary") or {})
        rules = [self._parse(Rule, item) for item in as_list(data.get("strategies"))]
        return summary, rules

    async def execute(self, rule_id: str) -> ExecutionRun:
        """
        Trigger a manual run.

        The backend acknowledges with a partial run record; fields it leaves out are
        filled from what is known locally.
        """
        data = dict(await self._post(f"{BASE_URL}/{rule_id}/execute") or {})
        data.setdefault("strategyId", rule_id)
        data.setdefault("triggerType", TriggerType.MANUAL.value)
        data.setdefault("status", ExecutionStatus.INITIATED.value)
        run = self._parse(ExecutionRun, data)
        logger.debug(f"Execution {run.id} acknowledged for rule {rule_id}")
        return run

    async def get_execution(self, execution_id: str) -> ExecutionRun:
        data = await self._get(f"{BASE_URL}/executions/{execution_id}")
        return self._parse(ExecutionRun, data)

    async def get_execution_details(self, execution_id: str) -> dict[str, Any]:
        """Detailed run info including per-case errors, passed through untyped."""
        return await self._get(f"{BASE_URL}/executions/{execution_id}/details") or {}

    async def list_executions(self) -> list[ExecutionRun]:
        data = await self._get(f"{BASE_URL}/executions")
        return [self._parse(ExecutionRun, item) for item in as_list(data)]
