"""Pydantic schemas for API request/response validation."""

from pydantic import BaseModel, ConfigDict, Field

from src.batch.models import BatchStatusSnapshot, BatchUploadResult
from src.batch.tracker import batch_outcome_message
from src.strategy.application.execution_tracker import outcome_message
from src.strategy.domain.models import (
    ExecutionRun,
    RawCriterion,
    RuleDraft,
    RuleStatus,
    ScheduleSelection,
    WizardStage,
)


# Rule drafts
class CriterionSchema(BaseModel):
    """One criterion as entered in the rule wizard."""

    field_id: str
    sign_label: str = ""
    min_value: str | None = None
    max_value: str | None = None
    exact_value: str | None = None
    selected_codes: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True, coerce_numbers_to_str=True)


class ScheduleSchema(BaseModel):
    """Schedule choices as selected in the rule wizard."""

    frequency: str = "DAILY"
    time: str = "09:00"
    days: list[str] = Field(default_factory=list)
    day_of_month: int | None = None


class RuleDraftSchema(BaseModel):
    """Full rule wizard state."""

    name: str = ""
    description: str = ""
    channel: str | None = None
    template_id: str = ""
    template_name: str | None = None
    status: RuleStatus = RuleStatus.ACTIVE
    priority: int | None = None
    criteria: list[CriterionSchema] = Field(default_factory=list)
    schedule: ScheduleSchema = Field(default_factory=ScheduleSchema)
    dpd_trigger: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(coerce_numbers_to_str=True)

    def to_draft(self) -> RuleDraft:
        return RuleDraft(
            name=self.name,
            description=self.description,
            channel=self.channel,
            template_id=self.template_id,
            template_name=self.template_name,
            status=self.status,
            priority=self.priority,
            criteria=[RawCriterion(**c.model_dump()) for c in self.criteria],
            schedule=ScheduleSelection(
                frequency=self.schedule.frequency,
                time=self.schedule.time,
                days=list(self.schedule.days),
                day_of_month=self.schedule.day_of_month,
            ),
            dpd_trigger=self.dpd_trigger,
        )

    @classmethod
    def from_draft(cls, draft: RuleDraft) -> "RuleDraftSchema":
        channel = getattr(draft.channel, "value", draft.channel)
        return cls(
            name=draft.name,
            description=draft.description,
            channel=channel,
            template_id=draft.template_id,
            template_name=draft.template_name,
            status=draft.status,
            priority=draft.priority,
            criteria=[CriterionSchema.model_validate(c) for c in draft.criteria],
            schedule=ScheduleSchema(
                frequency=getattr(draft.schedule.frequency, "value", draft.schedule.frequency),
                time=draft.schedule.time,
                days=[getattr(d, "value", d) for d in draft.schedule.days],
                day_of_month=draft.schedule.day_of_month,
            ),
            dpd_trigger=draft.dpd_trigger,
        )


class StageValidationResponse(BaseModel):
    """Result of validating one wizard stage."""

    stage: WizardStage
    valid: bool
    errors: dict[str, str] = Field(default_factory=dict)


class SchedulerToggle(BaseModel):
    """Request to enable or disable a rule's backend scheduler."""

    enabled: bool


# Execution runs
class ExecutionRunResponse(BaseModel):
    """Execution run with its operator message."""

    run: ExecutionRun
    message: str
    duration_seconds: int | None = None
    polling: bool = False

    @classmethod
    def from_run(cls, run: ExecutionRun, polling: bool = False) -> "ExecutionRunResponse":
        return cls(run=run, message=outcome_message(run), duration_seconds=run.duration_seconds, polling=polling)


# Batches
class BatchUploadResponse(BaseModel):
    """Acknowledgement of an uploaded batch; status polling starts immediately."""

    batch: BatchUploadResult
    polling: bool = True


class BatchStatusResponse(BaseModel):
    """Latest known status of a batch."""

    snapshot: BatchStatusSnapshot
    message: str
    polling: bool = False

    @classmethod
    def from_snapshot(cls, snapshot: BatchStatusSnapshot, polling: bool = False) -> "BatchStatusResponse":
        return cls(snapshot=snapshot, message=batch_outcome_message(snapshot), polling=polling)
