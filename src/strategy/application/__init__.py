"""Application layer for the strategy engine."""

from src.strategy.application.condition_normalizer import ConditionNormalizer, classify_sign
from src.strategy.application.execution_tracker import (
    ExecutionTracker,
    Observation,
    StatusTracker,
    outcome_message,
)
from src.strategy.application.rule_compiler import RuleCompiler, parse_channel
from src.strategy.application.rule_service import RuleService
from src.strategy.application.schedule_normalizer import ScheduleNormalizer
from src.strategy.application.value_resolver import MultiValueResolver

__all__ = [
    "ConditionNormalizer",
    "classify_sign",
    "ExecutionTracker",
    "Observation",
    "StatusTracker",
    "outcome_message",
    "RuleCompiler",
    "parse_channel",
    "RuleService",
    "ScheduleNormalizer",
    "MultiValueResolver",
]
