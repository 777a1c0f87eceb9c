"""Rule compiler: validates wizard state stage by stage and assembles the submission payload."""

import re

from loguru import logger

from src.strategy.application.condition_normalizer import ConditionNormalizer
from src.strategy.application.schedule_normalizer import ScheduleNormalizer
from src.strategy.domain.catalog import FieldCatalog
from src.strategy.domain.exceptions import RuleValidationError, ValidationException
from src.strategy.domain.models import (
    Channel,
    ChannelBinding,
    FilterCondition,
    FilterType,
    Operator,
    Rule,
    RuleDraft,
    RulePayload,
    ScheduleSelection,
    WizardStage,
)

DPD_FIELD = "DPD"

CHANNEL_ALIASES: dict[str, Channel] = {
    "sms": Channel.SMS,
    "email": Channel.EMAIL,
    "whatsapp": Channel.WHATSAPP,
    "ivr": Channel.IVR,
    "notice": Channel.NOTICE,
    "pushnotification": Channel.NOTICE,
}


def parse_channel(value: Channel | str | None) -> Channel | None:
    """Map a channel label ("Email", "WhatsApp", "PushNotification", "SMS") to a Channel."""
    if isinstance(value, Channel):
        return value
    if not value:
        return None
    return CHANNEL_ALIASES.get(re.sub(r"[\s_-]", "", str(value)).casefold())


class RuleCompiler:
    """
    Five-stage validation pipeline mirroring the rule wizard.

    Stages are checked in order (basic info, channel, filters, template, schedule) and
    validation stops at the first failing stage. Compilation is all-or-nothing.
    """

    def __init__(
        self,
        condition_normalizer: ConditionNormalizer,
        schedule_normalizer: ScheduleNormalizer,
        default_priority: int = 1,
        default_template_name: str = "Default Template",
    ):
        self.condition_normalizer = condition_normalizer
        self.schedule_normalizer = schedule_normalizer
        self.default_priority = default_priority
        self.default_template_name = default_template_name

    def validate_stage(self, stage: WizardStage, draft: RuleDraft, catalog: FieldCatalog) -> dict[str, str]:
        """
        Validate a single wizard stage.

        Returns:
            Errors keyed by field name; empty if the stage is valid
        """
        errors: dict[str, str] = {}

        if stage == WizardStage.BASIC_INFO:
            if not draft.name or not draft.name.strip():
                errors["name"] = "Rule name is required"

        elif stage == WizardStage.CHANNEL:
            if parse_channel(draft.channel) is None:
                allowed = ", ".join(c.value for c in Channel)
                errors["channel"] = (
                    f"Unknown channel '{draft.channel}' (allowed: {allowed})"
                    if draft.channel
                    else "Channel is required"
                )

        elif stage == WizardStage.FILTERS:
            # An empty filter set is valid and matches all eligible cases
            for criterion in draft.criteria:
                try:
                    self.condition_normalizer.normalize(criterion, catalog)
                except ValidationException as e:
                    errors.update(e.errors)
            if draft.dpd_trigger is not None and draft.dpd_trigger < 0:
                errors["dpdTrigger"] = "DPD trigger must not be negative"

        elif stage == WizardStage.TEMPLATE:
            if not draft.template_id or not str(draft.template_id).strip():
                errors["templateId"] = "Template is required"

        elif stage == WizardStage.SCHEDULE:
            errors.update(self.schedule_normalizer.validate(draft.schedule))

        return errors

    def validate(self, draft: RuleDraft, catalog: FieldCatalog) -> None:
        """
        Validate all stages in wizard order.

        Raises:
            RuleValidationError: For the first stage with errors
        """
        for stage in WizardStage:
            errors = self.validate_stage(stage, draft, catalog)
            if errors:
                logger.debug(f"Rule draft '{draft.name}' failed at stage {stage.value}: {errors}")
                raise RuleValidationError(stage, errors)

    def compile_filters(self, draft: RuleDraft, catalog: FieldCatalog) -> tuple[FilterCondition, ...]:
        """Normalize all criteria in order, then append the DPD trigger if no DPD condition exists."""
        filters = []
        for criterion in draft.criteria:
            condition = self.condition_normalizer.normalize(criterion, catalog)
            if condition is not None:
                filters.append(condition)

        if draft.dpd_trigger is not None and not any(c.field == DPD_FIELD for c in filters):
            filters.append(
                FilterCondition(
                    field=DPD_FIELD,
                    filter_type=FilterType.NUMERIC,
                    operator=Operator.GTE,
                    value1=str(draft.dpd_trigger),
                )
            )

        return tuple(filters)

    def compile(self, draft: RuleDraft, catalog: FieldCatalog) -> RulePayload:
        """
        Validate a draft and build its submission payload.

        Args:
            draft: Wizard state
            catalog: Field catalog of the editing session

        Returns:
            Immutable payload ready for create or full-replace update

        Raises:
            RuleValidationError: If any stage is invalid
        """
        self.validate(draft, catalog)

        payload = RulePayload(
            name=draft.name.strip(),
            description=(draft.description or "").strip() or None,
            status=draft.status,
            priority=draft.priority if draft.priority is not None else self.default_priority,
            channel=ChannelBinding(
                type=parse_channel(draft.channel),
                template_id=str(draft.template_id).strip(),
                template_name=draft.template_name or self.default_template_name,
            ),
            filters=self.compile_filters(draft, catalog),
            schedule=self.schedule_normalizer.normalize(draft.schedule),
        )

        logger.debug(
            f"Compiled rule '{payload.name}': {len(payload.filters)} filters, "
            f"{payload.schedule.frequency.value} at {payload.schedule.time}"
        )
        return payload

    def to_draft(self, rule: Rule, catalog: FieldCatalog) -> RuleDraft:
        """Turn a stored rule back into editable wizard state."""
        criteria = [
            self.condition_normalizer.to_criterion(condition, catalog.find(condition.field))
            for condition in rule.filters
        ]
        schedule = (
            self.schedule_normalizer.to_selection(rule.schedule) if rule.schedule else ScheduleSelection()
        )

        return RuleDraft(
            name=rule.name,
            description=rule.description or "",
            channel=rule.channel.type,
            template_id=rule.channel.template_id or "",
            template_name=rule.channel.template_name,
            status=rule.status,
            priority=rule.priority,
            criteria=criteria,
            schedule=schedule,
        )
