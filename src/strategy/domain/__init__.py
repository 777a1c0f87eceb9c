"""Domain layer for the strategy engine."""

from src.strategy.domain.exceptions import (
    BackendError,
    BackendUnavailableError,
    ConditionError,
    ResourceNotFoundError,
    RuleValidationError,
    ScheduleValidationError,
    StrategyEngineException,
    SubmissionError,
    UnknownFieldError,
)
from src.strategy.domain.models import (
    Channel,
    ExecutionRun,
    ExecutionStatus,
    FilterCondition,
    FilterField,
    FilterOption,
    FilterType,
    Frequency,
    IncompleteConditionPolicy,
    Operator,
    RawCriterion,
    Rule,
    RuleDraft,
    RulePayload,
    RuleStatus,
    Schedule,
    ScheduleSelection,
    Weekday,
    WizardStage,
)

__all__ = [
    "BackendError",
    "BackendUnavailableError",
    "ConditionError",
    "ResourceNotFoundError",
    "RuleValidationError",
    "ScheduleValidationError",
    "StrategyEngineException",
    "SubmissionError",
    "UnknownFieldError",
    "Channel",
    "ExecutionRun",
    "ExecutionStatus",
    "FilterCondition",
    "FilterField",
    "FilterOption",
    "FilterType",
    "Frequency",
    "IncompleteConditionPolicy",
    "Operator",
    "RawCriterion",
    "Rule",
    "RuleDraft",
    "RulePayload",
    "RuleStatus",
    "Schedule",
    "ScheduleSelection",
    "Weekday",
    "WizardStage",
]
