"""API routes for rule (strategy) authoring and management."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from src.api.domain.exceptions import to_http_exception
from src.api.domain.schemas import RuleDraftSchema, SchedulerToggle, StageValidationResponse
from src.api.infrastructure.container import (
    get_field_catalog,
    get_rule_compiler,
    get_rule_service,
    get_templates,
)
from src.strategy.application.rule_compiler import RuleCompiler, parse_channel
from src.strategy.application.rule_service import RuleService
from src.strategy.domain.exceptions import StrategyEngineException
from src.strategy.domain.models import (
    FilterField,
    Rule,
    RuleStatus,
    SimulationResult,
    StrategyEngineStats,
    TemplateSummary,
    WizardStage,
)
from src.strategy.infrastructure.field_catalog import FieldCatalogLoader
from src.strategy.infrastructure.template_api import TemplateClient

router = APIRouter(prefix="/strategies", tags=["strategies"])


@router.get("/fields", response_model=list[FilterField])
async def list_filter_fields(catalog_loader: FieldCatalogLoader = Depends(get_field_catalog)):
    """Get the filter field catalog, with option lists for enumerated fields."""
    try:
        catalog = await catalog_loader.load()
    except StrategyEngineException as e:
        raise to_http_exception(e) from e
    return list(catalog)


@router.get("/templates/{channel}", response_model=list[TemplateSummary])
async def list_templates(channel: str, templates: TemplateClient = Depends(get_templates)):
    """Get templates usable with a channel (accepts labels like "WhatsApp")."""
    resolved = parse_channel(channel)
    if resolved is None:
        raise HTTPException(status_code=422, detail=f"Unknown channel '{channel}'")

    try:
        return await templates.list_for_channel(resolved)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e


@router.post("/validate/{stage}", response_model=StageValidationResponse)
async def validate_stage(
    stage: WizardStage,
    draft: RuleDraftSchema,
    compiler: RuleCompiler = Depends(get_rule_compiler),
    catalog_loader: FieldCatalogLoader = Depends(get_field_catalog),
):
    """
    Validate a single wizard stage.

    Always answers 200; the errors are keyed by field name.
    """
    try:
        catalog = await catalog_loader.load()
    except StrategyEngineException as e:
        raise to_http_exception(e) from e

    errors = compiler.validate_stage(stage, draft.to_draft(), catalog)
    return StageValidationResponse(stage=stage, valid=not errors, errors=errors)


@router.post("/compile")
async def compile_rule(
    draft: RuleDraftSchema,
    compiler: RuleCompiler = Depends(get_rule_compiler),
    catalog_loader: FieldCatalogLoader = Depends(get_field_catalog),
):
    """Compile a draft into the backend payload without submitting it."""
    try:
        catalog = await catalog_loader.load()
        payload = compiler.compile(draft.to_draft(), catalog)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e
    return payload.to_wire()


@router.post("", response_model=Rule, status_code=201)
async def create_rule(draft: RuleDraftSchema, service: RuleService = Depends(get_rule_service)):
    """Compile and create a new rule."""
    try:
        return await service.submit(draft.to_draft())
    except StrategyEngineException as e:
        raise to_http_exception(e) from e


@router.get("", response_model=list[Rule])
async def list_rules(
    status: RuleStatus | None = Query(None, description="Only rules with this status"),
    search: str | None = Query(None, description="Case-insensitive match on name or channel"),
    service: RuleService = Depends(get_rule_service),
):
    """List rules."""
    try:
        return await service.list_rules(status=status, search=search)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e


@router.get("/stats", response_model=StrategyEngineStats)
async def get_stats(service: RuleService = Depends(get_rule_service)):
    """Get dashboard counters and the next scheduled run."""
    try:
        return await service.get_stats()
    except StrategyEngineException as e:
        raise to_http_exception(e) from e


@router.get("/{rule_id}", response_model=Rule)
async def get_rule(rule_id: str, service: RuleService = Depends(get_rule_service)):
    """Get a rule by id."""
    try:
        return await service.get_rule(rule_id)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e


@router.get("/{rule_id}/draft", response_model=RuleDraftSchema)
async def get_rule_draft(rule_id: str, service: RuleService = Depends(get_rule_service)):
    """Get a stored rule as editable wizard state."""
    try:
        draft = await service.load_draft(rule_id)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e
    return RuleDraftSchema.from_draft(draft)


@router.put("/{rule_id}", response_model=Rule)
async def update_rule(rule_id: str, draft: RuleDraftSchema, service: RuleService = Depends(get_rule_service)):
    """Compile a draft and fully replace an existing rule."""
    try:
        return await service.submit(draft.to_draft(), rule_id=rule_id)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e


@router.delete("/{rule_id}", status_code=204)
async def delete_rule(rule_id: str, service: RuleService = Depends(get_rule_service)):
    """Delete a rule. This cannot be undone."""
    try:
        await service.delete_rule(rule_id)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e
    return Response(status_code=204)


@router.post("/{rule_id}/toggle", response_model=Rule)
async def toggle_rule_status(rule_id: str, service: RuleService = Depends(get_rule_service)):
    """Switch a rule between ACTIVE and INACTIVE."""
    try:
        return await service.toggle_status(rule_id)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e


@router.patch("/{rule_id}/scheduler", response_model=Rule)
async def set_scheduler(
    rule_id: str,
    toggle: SchedulerToggle,
    service: RuleService = Depends(get_rule_service),
):
    """Enable or disable the backend scheduler for a rule."""
    try:
        return await service.set_scheduler(rule_id, toggle.enabled)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e


@router.post("/{rule_id}/simulate", response_model=SimulationResult)
async def simulate_rule(rule_id: str, service: RuleService = Depends(get_rule_service)):
    """Preview how many cases a rule currently matches."""
    try:
        return await service.simulate(rule_id)
    except StrategyEngineException as e:
        raise to_http_exception(e) from e
