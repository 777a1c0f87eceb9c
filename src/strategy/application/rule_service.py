"""Rule service: compiles drafts and drives the remote rule lifecycle."""

from dataclasses import replace

from loguru import logger

from src.strategy.application.rule_compiler import RuleCompiler, parse_channel
from src.strategy.domain.exceptions import BackendError, SubmissionError
from src.strategy.domain.models import (
    Rule,
    RuleDraft,
    RuleStatus,
    SimulationResult,
    StrategyEngineStats,
)
from src.strategy.domain.protocols import FieldCatalogSource, RuleRepository, TemplateCatalog
from src.strategy.infrastructure.logging import LoggingContext


class RuleService:
    """Application service for creating, editing and managing rules."""

    def __init__(
        self,
        repository: RuleRepository,
        compiler: RuleCompiler,
        catalog_source: FieldCatalogSource,
        templates: TemplateCatalog,
    ):
        self.repository = repository
        self.compiler = compiler
        self.catalog_source = catalog_source
        self.templates = templates

    async def submit(self, draft: RuleDraft, rule_id: str | None = None) -> Rule:
        """
        Compile a draft and create a rule, or fully replace an existing one.

        Args:
            draft: Wizard state
            rule_id: Id of the rule being edited, None to create

        Returns:
            The rule as stored by the backend

        Raises:
            RuleValidationError: If the draft is invalid; nothing is sent
            SubmissionError: If the backend rejects the create/update
        """
        with LoggingContext(rule_id=rule_id or "new"):
            catalog = await self.catalog_source.load()
            self.compiler.validate(draft, catalog)

            if draft.template_id and not draft.template_name:
                draft = replace(draft, template_name=await self._resolve_template_name(draft))

            payload = self.compiler.compile(draft, catalog)

            try:
                if rule_id:
                    rule = await self.repository.update(rule_id, payload)
                    logger.info(f"✓ Updated rule '{rule.name}'")
                else:
                    rule = await self.repository.create(payload)
                    logger.info(f"✓ Created rule '{rule.name}' ({rule.id})")
            except BackendError as e:
                logger.error(f"✗ Rule submission rejected: {e.message}")
                raise SubmissionError(rule_id, e) from e

            return rule

    async def _resolve_template_name(self, draft: RuleDraft) -> str | None:
        channel = parse_channel(draft.channel)
        try:
            templates = await self.templates.list_for_channel(channel)
        except BackendError as e:
            logger.warning(f"Could not load templates for {channel.value}, using default name: {e.message}")
            return None

        template_id = str(draft.template_id).strip()
        match = next((t for t in templates if t.id == template_id), None)
        if match is None:
            logger.warning(f"Template {template_id} not listed for {channel.value}, using default name")
            return None
        return match.template_name

    async def get_rule(self, rule_id: str) -> Rule:
        return await self.repository.get(rule_id)

    async def load_draft(self, rule_id: str) -> RuleDraft:
        """Load a stored rule as editable wizard state."""
        rule = await self.repository.get(rule_id)
        catalog = await self.catalog_source.load()
        return self.compiler.to_draft(rule, catalog)

    async def list_rules(self, status: RuleStatus | None = None, search: str | None = None) -> list[Rule]:
        """
        List rules, optionally by status and a case-insensitive search on name or channel.
        """
        rules = await self.repository.list_all(status)
        if not search or not search.strip():
            return rules

        needle = search.strip().casefold()
        return [
            rule
            for rule in rules
            if needle in rule.name.casefold() or needle in rule.channel.type.value.casefold()
        ]

    async def delete_rule(self, rule_id: str) -> None:
        await self.repository.delete(rule_id)
        logger.info(f"🗑️ Deleted rule {rule_id}")

    async def toggle_status(self, rule_id: str) -> Rule:
        """Switch an ACTIVE rule to INACTIVE, anything else to ACTIVE."""
        rule = await self.repository.get(rule_id)
        new_status = RuleStatus.INACTIVE if rule.status == RuleStatus.ACTIVE else RuleStatus.ACTIVE
        updated = await self.repository.set_status(rule_id, new_status)
        logger.info(f"Rule {rule_id} status {rule.status.value} → {new_status.value}")
        return updated

    async def set_scheduler(self, rule_id: str, enabled: bool) -> Rule:
        return await self.repository.set_scheduler(rule_id, enabled)

    async def simulate(self, rule_id: str) -> SimulationResult:
        return await self.repository.simulate(rule_id)

    async def get_stats(self) -> StrategyEngineStats:
        """Dashboard counters plus the earliest upcoming run among active rules."""
        summary, rules = await self.repository.get_dashboard()

        upcoming = [
            rule.effective_next_run_at
            for rule in rules
            if rule.status == RuleStatus.ACTIVE and rule.effective_next_run_at is not None
        ]

        return StrategyEngineStats(
            active_rules=summary.active_strategies,
            total_executions=summary.total_executions,
            success_rate=summary.overall_success_rate,
            next_scheduled_run=min(upcoming) if upcoming else None,
        )
