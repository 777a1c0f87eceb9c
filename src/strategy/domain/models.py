"""Domain models for the strategy (rule) definition engine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class FilterType(str, Enum):
    """Type of a filterable case attribute."""

    NUMERIC = "NUMERIC"
    TEXT = "TEXT"
    DATE = "DATE"


class Operator(str, Enum):
    """Canonical comparison operator of a filter condition."""

    EQ = "="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    RANGE = "RANGE"
    BETWEEN = "BETWEEN"
    IN = "IN"

    @property
    def is_range(self) -> bool:
        return self in (Operator.RANGE, Operator.BETWEEN)


LEGAL_OPERATORS: dict[FilterType, frozenset[Operator]] = {
    FilterType.NUMERIC: frozenset(
        {Operator.EQ, Operator.GT, Operator.GTE, Operator.LT, Operator.LTE, Operator.RANGE}
    ),
    FilterType.DATE: frozenset({Operator.GTE, Operator.LTE, Operator.BETWEEN}),
    FilterType.TEXT: frozenset({Operator.IN}),
}


class Channel(str, Enum):
    """Communication channel a rule dispatches through."""

    SMS = "SMS"
    EMAIL = "EMAIL"
    WHATSAPP = "WHATSAPP"
    IVR = "IVR"
    NOTICE = "NOTICE"


class RuleStatus(str, Enum):
    """Lifecycle status of a rule."""

    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Frequency(str, Enum):
    """How often a rule is scheduled to run."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class Weekday(str, Enum):
    """Day of the week as understood by the backend scheduler."""

    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


class TriggerType(str, Enum):
    """What started an execution run."""

    MANUAL = "manual"
    SCHEDULED = "scheduled"


class ExecutionStatus(str, Enum):
    """Status of an execution run."""

    INITIATED = "INITIATED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"  # Terminal
    FAILED = "FAILED"  # Terminal
    PARTIAL = "PARTIAL"  # Terminal

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED, ExecutionStatus.PARTIAL)


class IncompleteConditionPolicy(str, Enum):
    """What the compiler does with a criterion that lacks a required operand."""

    DROP = "drop"  # Omit the criterion from the payload
    REJECT = "reject"  # Fail validation of the filters stage


class WizardStage(str, Enum):
    """Rule wizard stages, in validation order."""

    BASIC_INFO = "basic_info"
    CHANNEL = "channel"
    FILTERS = "filters"
    TEMPLATE = "template"
    SCHEDULE = "schedule"


class WireModel(BaseModel):
    """Base for models exchanged with the backend (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        """Serialize with backend field names, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# Filter field catalog
class FilterOption(BaseModel):
    """One enumerated value of a TEXT field: internal code and display value."""

    model_config = ConfigDict(frozen=True)

    code: str
    value: str


class FilterField(BaseModel):
    """A filterable case attribute."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    type: FilterType
    options: tuple[FilterOption, ...] = ()
    options_category: str | None = None  # Master-data category backing the options

    @property
    def is_enumerated(self) -> bool:
        return self.type == FilterType.TEXT and self.options_category is not None


# Compiled rule contract
class FilterCondition(WireModel):
    """One atomic comparison contributing to a rule's eligibility expression."""

    model_config = ConfigDict(frozen=True)

    field: str
    filter_type: FilterType = Field(alias="filterType")
    operator: Operator
    value1: str | None = None
    value2: str | None = None
    values: tuple[str, ...] | None = None

    @model_validator(mode="after")
    def _check_operands(self) -> "FilterCondition":
        if self.operator not in LEGAL_OPERATORS[self.filter_type]:
            raise ValueError(f"Operator {self.operator.value} is not legal for {self.filter_type.value} filters")
        if self.operator == Operator.IN:
            if not self.values:
                raise ValueError("IN condition requires at least one value")
        elif self.operator.is_range:
            if not self.value1 or not self.value2:
                raise ValueError(f"{self.operator.value} condition requires both bounds")
        elif not self.value1:
            raise ValueError(f"{self.operator.value} condition requires a value")
        return self


class Schedule(WireModel):
    """Canonical schedule descriptor."""

    model_config = ConfigDict(frozen=True)

    frequency: Frequency
    time: str
    days: tuple[Weekday, ...] | None = None
    day_of_month: int | None = Field(default=None, alias="dayOfMonth")
    next_run_at: datetime | None = Field(default=None, alias="nextRunAt")  # Response only


class ChannelBinding(WireModel):
    """Channel type plus the bound template."""

    model_config = ConfigDict(frozen=True)

    type: Channel
    template_id: str | None = Field(default=None, alias="templateId")
    template_name: str | None = Field(default=None, alias="templateName")


class RulePayload(WireModel):
    """Immutable submission payload produced by the rule compiler."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(alias="strategyName")
    description: str | None = None
    status: RuleStatus
    priority: int
    channel: ChannelBinding
    filters: tuple[FilterCondition, ...] = ()
    schedule: Schedule


class Rule(WireModel):
    """A persisted rule (strategy) as returned by the backend."""

    id: str = Field(alias="strategyId")
    name: str = Field(alias="strategyName")
    description: str | None = None
    status: RuleStatus = RuleStatus.DRAFT
    priority: int | None = None
    channel: ChannelBinding
    filters: list[FilterCondition] = Field(default_factory=list)
    schedule: Schedule | None = None
    success_count: int = Field(default=0, alias="successCount")
    failure_count: int = Field(default=0, alias="failureCount")
    last_run_at: datetime | None = Field(default=None, alias="lastRunAt")
    next_run_at: datetime | None = Field(
        default=None, alias="nextRunAt", validation_alias=AliasChoices("nextRunAt", "nextRun")
    )
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @field_validator("filters", mode="before")
    @classmethod
    def _filters_as_list(cls, value: Any) -> Any:
        # Older backends return a summary object instead of the condition list
        if isinstance(value, dict):
            return value.get("conditions", [])
        return value or []

    @property
    def effective_next_run_at(self) -> datetime | None:
        if self.next_run_at:
            return self.next_run_at
        return self.schedule.next_run_at if self.schedule else None


class ExecutionRun(WireModel):
    """One instance of a rule being evaluated and acted upon."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(alias="executionId")
    rule_id: str | None = Field(default=None, alias="strategyId")
    rule_name: str | None = Field(default=None, alias="strategyName")
    trigger_type: TriggerType | None = Field(default=None, alias="triggerType")
    status: ExecutionStatus
    total_processed: int = Field(default=0, alias="totalCasesProcessed")
    success_count: int = Field(default=0, alias="successfulActions")
    failed_count: int = Field(default=0, alias="failedActions")
    started_at: datetime | None = Field(default=None, alias="startedAt")
    completed_at: datetime | None = Field(default=None, alias="completedAt")
    error_summary: str | None = Field(default=None, alias="errorSummary")

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("trigger_type", mode="before")
    @classmethod
    def _lower_trigger(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def duration_seconds(self) -> int | None:
        if self.started_at is None or self.completed_at is None:
            return None
        return int((self.completed_at - self.started_at).total_seconds())


class DashboardSummary(WireModel):
    """Aggregate counters reported by the backend dashboard."""

    active_strategies: int = Field(default=0, alias="activeStrategies")
    total_executions: int = Field(default=0, alias="totalExecutions")
    overall_success_rate: float = Field(default=0.0, alias="overallSuccessRate")


class StrategyEngineStats(BaseModel):
    """Operator-facing summary of the strategy engine."""

    active_rules: int
    total_executions: int
    success_rate: float
    next_scheduled_run: datetime | None = None


class SimulationResult(WireModel):
    """Preview of the cases a rule would currently match."""

    rule_id: str | None = Field(default=None, alias="strategyId")
    matched_cases: int = Field(default=0, alias="estimatedCasesMatched")
    details: dict[str, Any] = Field(default_factory=dict)


# Master data and templates
class MasterDataItem(WireModel):
    """One entry of a master-data category."""

    code: str
    value: str
    is_active: bool = Field(default=True, alias="isActive")


class TemplateSummary(WireModel):
    """Template entry as listed for a channel."""

    id: str
    template_name: str = Field(alias="templateName")
    language: str | None = None


class TemplateDetail(WireModel):
    """Full template body and variables."""

    id: str
    template_name: str = Field(alias="templateName")
    template_code: str | None = Field(default=None, alias="templateCode")
    channel: str | None = None
    language: str | None = None
    contents: list[dict[str, Any]] = Field(default_factory=list)
    variables: list[dict[str, Any]] = Field(default_factory=list)


# Editing state (what the operator typed, before compilation)
@dataclass
class RawCriterion:
    """A single user-entered criterion, prior to normalization."""

    field_id: str
    sign_label: str = ""  # Human-readable comparison label from master data
    min_value: str | None = None
    max_value: str | None = None
    exact_value: str | None = None
    selected_codes: list[str] = field(default_factory=list)  # TEXT multi-select


@dataclass
class ScheduleSelection:
    """Frequency, day and time choices as selected in the wizard."""

    frequency: Frequency | str = Frequency.DAILY
    time: str = "09:00"
    days: list[Weekday | str] = field(default_factory=list)
    day_of_month: int | None = None


@dataclass
class RuleDraft:
    """In-progress rule edit state across all wizard stages."""

    name: str = ""
    description: str = ""
    channel: Channel | str | None = None
    template_id: str = ""
    template_name: str | None = None
    status: RuleStatus = RuleStatus.ACTIVE
    priority: int | None = None
    criteria: list[RawCriterion] = field(default_factory=list)
    schedule: ScheduleSelection = field(default_factory=ScheduleSelection)
    dpd_trigger: int | None = None  # Adds DPD >= trigger unless a DPD criterion exists
