"""Tests for the backend REST clients against an httpx mock transport."""

import asyncio
import json

import httpx
import pytest

from src.batch.client import BatchClient
from src.batch.models import BatchKind, BatchStatus
from src.batch.tracker import BatchTracker
from src.strategy.application.execution_tracker import ExecutionTracker
from src.strategy.domain.exceptions import (
    BackendError,
    BackendUnavailableError,
    MalformedResponseError,
    ResourceNotFoundError,
)
from src.strategy.domain.models import (
    Channel,
    ChannelBinding,
    ExecutionStatus,
    FilterCondition,
    FilterType,
    Frequency,
    Operator,
    RulePayload,
    RuleStatus,
    Schedule,
    TriggerType,
)
from src.strategy.infrastructure.field_catalog import FIELD_DEFINITIONS, FieldCatalogLoader
from src.strategy.infrastructure.http_client import create_http_client, unwrap_envelope
from src.strategy.infrastructure.master_data import MasterDataClient
from src.strategy.infrastructure.strategy_api import StrategyApiClient
from src.strategy.infrastructure.template_api import TemplateClient

BASE_URL = "http://backend.test/api/v1"
ENUMERATED_FIELDS = sum(1 for f in FIELD_DEFINITIONS if f.is_enumerated)


def ok(payload, key: str = "payload") -> httpx.Response:
    return httpx.Response(200, json={"status": "success", "message": "OK", key: payload})


class RecordingBackend:
    """Routes requests to canned responses and records them."""

    def __init__(self, routes: dict[tuple[str, str], object]):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api/v1")
        response = self.routes.get((request.method, path))
        if response is None:
            return httpx.Response(404, json={"status": "failure", "message": f"No route {path}"})
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        return response

    def client(self) -> httpx.AsyncClient:
        return create_http_client(BASE_URL, api_token="secret", transport=httpx.MockTransport(self))


def stored_rule(**overrides) -> dict:
    rule = {
        "strategyId": 42,
        "strategyName": "Early bucket SMS",
        "status": "ACTIVE",
        "priority": 1,
        "channel": {"type": "SMS", "templateId": "T-100", "templateName": "Soft reminder"},
        "filters": [{"field": "DPD", "filterType": "NUMERIC", "operator": ">=", "value1": "30"}],
        "schedule": {"frequency": "DAILY", "time": "09:30", "days": ["MONDAY"]},
        "successCount": 3,
        "failureCount": 1,
    }
    rule.update(overrides)
    return rule


class TestEnvelope:
    def test_payload(self):
        assert unwrap_envelope({"status": "SUCCESS", "payload": [1]}) == [1]

    def test_data_fallback(self):
        assert unwrap_envelope({"status": "success", "data": {"a": 1}}) == {"a": 1}

    def test_failure(self):
        with pytest.raises(BackendError, match="Duplicate name"):
            unwrap_envelope({"status": "Failure", "message": "Duplicate name"})

    def test_bare_body(self):
        assert unwrap_envelope([{"a": 1}]) == [{"a": 1}]


class TestBackendClient:
    @pytest.mark.asyncio
    async def test_sends_bearer_token(self):
        backend = RecordingBackend({("GET", "/strategies/42"): ok(stored_rule())})
        api = StrategyApiClient(backend.client())

        await api.get("42")

        assert backend.requests[0].headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_not_found(self):
        api = StrategyApiClient(RecordingBackend({}).client())

        with pytest.raises(ResourceNotFoundError):
            await api.get("missing")

    @pytest.mark.asyncio
    async def test_http_error_uses_body_message(self):
        backend = RecordingBackend(
            {("GET", "/strategies"): httpx.Response(500, json={"status": "failure", "message": "DB down"})}
        )
        api = StrategyApiClient(backend.client())

        with pytest.raises(BackendError) as exc_info:
            await api.list_all()

        assert exc_info.value.message == "DB down"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_failure_envelope_with_200(self):
        backend = RecordingBackend(
            {("POST", "/strategies/42/simulate"): httpx.Response(200, json={"status": "failure", "message": "Nope"})}
        )
        api = StrategyApiClient(backend.client())

        with pytest.raises(BackendError, match="Nope"):
            await api.simulate("42")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        request = httpx.Request("GET", f"{BASE_URL}/strategies/executions/E1")
        backend = RecordingBackend(
            {("GET", "/strategies/executions/E1"): httpx.ConnectError("refused", request=request)}
        )
        api = StrategyApiClient(backend.client())

        with pytest.raises(BackendUnavailableError):
            await api.get_execution("E1")


class TestStrategyApi:
    @pytest.mark.asyncio
    async def test_create_posts_wire_payload(self):
        backend = RecordingBackend({("POST", "/strategies/create"): ok(stored_rule())})
        api = StrategyApiClient(backend.client())
        payload = RulePayload(
            name="Early bucket SMS",
            status=RuleStatus.ACTIVE,
            priority=1,
            channel=ChannelBinding(type=Channel.SMS, template_id="T-100", template_name="Soft reminder"),
            filters=(FilterCondition(field="DPD", filter_type=FilterType.NUMERIC, operator=Operator.GTE, value1="30"),),
            schedule=Schedule(frequency=Frequency.MONTHLY, time="09:30", day_of_month=5),
        )

        rule = await api.create(payload)

        body = json.loads(backend.requests[0].content)
        assert body["strategyName"] == "Early bucket SMS"
        assert body["filters"][0] == {"field": "DPD", "filterType": "NUMERIC", "operator": ">=", "value1": "30"}
        assert body["schedule"] == {"frequency": "MONTHLY", "time": "09:30", "dayOfMonth": 5}
        assert rule.id == "42"
        assert rule.success_count == 3

    @pytest.mark.asyncio
    async def test_update_is_full_replace(self):
        backend = RecordingBackend({("PUT", "/strategies/42"): ok(stored_rule(strategyName="Renamed"))})
        api = StrategyApiClient(backend.client())
        payload = RulePayload(
            name="Renamed",
            status=RuleStatus.INACTIVE,
            priority=2,
            channel=ChannelBinding(type=Channel.IVR, template_id="T-9"),
            schedule=Schedule(frequency=Frequency.DAILY, time="10:00"),
        )

        rule = await api.update("42", payload)

        assert backend.requests[0].method == "PUT"
        assert json.loads(backend.requests[0].content)["filters"] == []
        assert rule.name == "Renamed"

    @pytest.mark.asyncio
    async def test_list_by_status(self):
        backend = RecordingBackend({("GET", "/strategies"): ok([stored_rule(), stored_rule(strategyId=43)])})
        api = StrategyApiClient(backend.client())

        rules = await api.list_all(RuleStatus.ACTIVE)

        assert [r.id for r in rules] == ["42", "43"]
        assert backend.requests[0].url.params["status"] == "ACTIVE"

    @pytest.mark.asyncio
    async def test_status_and_scheduler_use_query_params(self):
        backend = RecordingBackend(
            {
                ("PATCH", "/strategies/42/status"): ok(stored_rule(status="INACTIVE")),
                ("PATCH", "/strategies/42/scheduler"): ok(stored_rule()),
            }
        )
        api = StrategyApiClient(backend.client())

        rule = await api.set_status("42", RuleStatus.INACTIVE)
        await api.set_scheduler("42", False)

        assert rule.status == RuleStatus.INACTIVE
        assert backend.requests[0].url.params["status"] == "INACTIVE"
        assert backend.requests[1].url.params["enabled"] == "false"

    @pytest.mark.asyncio
    async def test_rule_with_summary_filters(self):
        backend = RecordingBackend(
            {("GET", "/strategies/42"): ok(stored_rule(filters={"dpdRange": ">= 30", "estimatedCasesMatched": 10}))}
        )
        rule = await StrategyApiClient(backend.client()).get("42")
        assert rule.filters == []

    @pytest.mark.asyncio
    async def test_execute_fills_missing_fields(self):
        backend = RecordingBackend({("POST", "/strategies/42/execute"): ok({"executionId": "E-9"})})
        api = StrategyApiClient(backend.client())

        run = await api.execute("42")

        assert run.id == "E-9"
        assert run.rule_id == "42"
        assert run.trigger_type == TriggerType.MANUAL
        assert run.status == ExecutionStatus.INITIATED

    @pytest.mark.asyncio
    async def test_dashboard(self):
        dashboard = {
            "summary": {"activeStrategies": 2, "totalExecutions": 11, "overallSuccessRate": 87.5},
            "strategies": [stored_rule(nextRun="2026-03-02T09:30:00")],
        }
        backend = RecordingBackend({("GET", "/strategies/dashboard"): ok(dashboard)})

        summary, rules = await StrategyApiClient(backend.client()).get_dashboard()

        assert summary.active_strategies == 2
        assert summary.overall_success_rate == 87.5
        assert rules[0].next_run_at.day == 2

    @pytest.mark.asyncio
    async def test_executions(self):
        run = {
            "executionId": "E1",
            "strategyId": 42,
            "strategyName": "Early bucket SMS",
            "status": "completed",
            "totalCasesProcessed": 100,
            "successfulActions": 98,
            "failedActions": 2,
            "startedAt": "2026-03-01T09:00:00",
            "completedAt": "2026-03-01T09:02:00",
        }
        backend = RecordingBackend(
            {("GET", "/strategies/executions"): ok([run]), ("GET", "/strategies/executions/E1"): ok(run, key="data")}
        )
        api = StrategyApiClient(backend.client())

        runs = await api.list_executions()
        single = await api.get_execution("E1")

        assert runs[0].status == ExecutionStatus.COMPLETED
        assert runs[0].duration_seconds == 120
        assert single.success_count == 98


class TestCatalogCollaborators:
    @pytest.mark.asyncio
    async def test_master_data_by_type(self):
        items = [{"code": "HI", "value": "Hindi", "isActive": True}]
        backend = RecordingBackend({("GET", "/master-data"): ok(items)})

        result = await MasterDataClient(backend.client()).get_by_type("LANGUAGE")

        assert result[0].code == "HI"
        assert backend.requests[0].url.params["type"] == "LANGUAGE"

    @pytest.mark.asyncio
    async def test_templates(self):
        backend = RecordingBackend(
            {
                ("GET", "/templates/dropdown/WHATSAPP"): ok([{"id": 5, "templateName": "Nudge", "language": "EN"}]),
                ("GET", "/templates/5"): ok({"id": 5, "templateName": "Nudge", "variables": [{"name": "amount"}]}),
            }
        )
        templates = TemplateClient(backend.client())

        listed = await templates.list_for_channel(Channel.WHATSAPP)
        detail = await templates.get_detail("5")

        assert listed[0].id == "5"
        assert detail.variables == [{"name": "amount"}]

    @pytest.mark.asyncio
    async def test_field_catalog_keeps_active_options(self):
        def master_data(request: httpx.Request) -> httpx.Response:
            category = request.url.params["type"]
            return ok(
                [
                    {"code": f"{category}-1", "value": "One", "isActive": True},
                    {"code": f"{category}-2", "value": "Two", "isActive": False},
                ]
            )

        backend = RecordingBackend({("GET", "/master-data"): master_data})
        loader = FieldCatalogLoader(MasterDataClient(backend.client()))

        catalog = await loader.load()
        again = await loader.load()

        assert again is catalog
        assert [o.code for o in catalog.get("LANGUAGE").options] == ["LANGUAGE-1"]
        assert catalog.get("DPD").type == FilterType.NUMERIC
        assert len(catalog) == 28
        assert len(backend.requests) == ENUMERATED_FIELDS

        loader.invalidate()
        await loader.load()
        assert len(backend.requests) == 2 * ENUMERATED_FIELDS

    @pytest.mark.asyncio
    async def test_failed_category_is_fetched_again(self):
        state_up = False

        def master_data(request: httpx.Request) -> httpx.Response:
            category = request.url.params["type"]
            if category == "STATE" and not state_up:
                return httpx.Response(503, json={"status": "failure", "message": "unavailable"})
            return ok([{"code": f"{category}-1", "value": "One", "isActive": True}])

        backend = RecordingBackend({("GET", "/master-data"): master_data})
        loader = FieldCatalogLoader(MasterDataClient(backend.client()))

        degraded = await loader.load()
        assert degraded.get("STATE").options == ()
        assert loader.degraded == ["STATE"]

        state_up = True
        recovered = await loader.load()

        assert [o.code for o in recovered.get("STATE").options] == ["STATE-1"]
        assert [o.code for o in recovered.get("LANGUAGE").options] == ["LANGUAGE-1"]
        assert loader.degraded == []
        assert len(backend.requests) == ENUMERATED_FIELDS + 1
        assert await loader.load() is recovered

    @pytest.mark.asyncio
    async def test_field_catalog_expires(self):
        now = [0.0]
        backend = RecordingBackend({("GET", "/master-data"): lambda request: ok([])})
        loader = FieldCatalogLoader(MasterDataClient(backend.client()), ttl_seconds=60, clock=lambda: now[0])

        first = await loader.load()
        now[0] = 59.0
        assert await loader.load() is first

        now[0] = 61.0
        assert await loader.load() is not first
        assert len(backend.requests) == 2 * ENUMERATED_FIELDS


class TestBatchClient:
    @pytest.mark.asyncio
    async def test_upload_and_status(self):
        backend = RecordingBackend(
            {
                ("POST", "/reallocations/upload"): ok({"batchId": "B1", "totalCases": 20, "status": "processing"}),
                ("GET", "/case/source/B2/status"): ok(
                    {"batchId": "B2", "totalCases": 5, "validCases": 4, "invalidCases": 1, "status": "PARTIAL"}
                ),
            }
        )
        client = BatchClient(backend.client())

        uploaded = await client.upload(BatchKind.REALLOCATION, "cases.csv", b"loan_id\n1\n")
        snapshot = await client.get_status(BatchKind.CASE_INTAKE, "B2")

        assert uploaded.batch_id == "B1"
        assert uploaded.status == BatchStatus.PROCESSING
        assert b'filename="cases.csv"' in backend.requests[0].content
        assert (snapshot.successful, snapshot.failed) == (4, 1)
        assert snapshot.is_terminal


def scripted(*responses: httpx.Response):
    """Route handler answering successive requests with the given responses."""
    remaining = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        return remaining.pop(0) if len(remaining) > 1 else remaining[0]

    return handler


async def no_sleep(_seconds: float) -> None:
    await asyncio.sleep(0)


class TestStatusPollingOverHttp:
    @pytest.mark.asyncio
    async def test_malformed_status_response_is_retried(self):
        run = {"executionId": "E1", "strategyId": 42}
        backend = RecordingBackend(
            {
                ("GET", "/strategies/executions/E1"): scripted(
                    ok({**run, "status": "RUNNING"}),
                    httpx.Response(200),
                    ok({**run, "status": "COMPLETED"}),
                )
            }
        )
        tracker = ExecutionTracker(StrategyApiClient(backend.client()), sleep=no_sleep)

        final = await tracker.attach("E1").wait()

        assert final.status == ExecutionStatus.COMPLETED
        assert len(backend.requests) == 3

    @pytest.mark.asyncio
    async def test_unknown_batch_status_is_retried(self):
        backend = RecordingBackend(
            {
                ("GET", "/allocations/B1/status"): scripted(
                    ok({"batchId": "B1", "status": "QUEUED"}),
                    ok({"batchId": "B1", "status": "COMPLETED", "totalCases": 2, "successful": 2}),
                )
            }
        )
        tracker = BatchTracker(BatchClient(backend.client()), sleep=no_sleep)

        final = await tracker.observe(BatchKind.ALLOCATION, "B1").wait()

        assert final.status == BatchStatus.COMPLETED
        assert len(backend.requests) == 2

    @pytest.mark.asyncio
    async def test_malformed_payload_raises_backend_error(self):
        backend = RecordingBackend({("GET", "/strategies/executions/E1"): ok(None)})

        with pytest.raises(MalformedResponseError) as exc_info:
            await StrategyApiClient(backend.client()).get_execution("E1")

        assert isinstance(exc_info.value, BackendError)
        assert "ExecutionRun" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_execution_details(self):
        details = {"executionId": "E1", "failedCases": [{"loanId": "L1", "reason": "Invalid mobile"}]}
        backend = RecordingBackend({("GET", "/strategies/executions/E1/details"): ok(details)})
        tracker = ExecutionTracker(StrategyApiClient(backend.client()), sleep=no_sleep)

        result = await tracker.get_run_details("E1")

        assert result["failedCases"][0]["reason"] == "Invalid mobile"
