"""Shared fixtures: a small field catalog and the compiler pipeline built on it."""

import pytest

from src.strategy.application.condition_normalizer import ConditionNormalizer
from src.strategy.application.rule_compiler import RuleCompiler
from src.strategy.application.schedule_normalizer import ScheduleNormalizer
from src.strategy.application.value_resolver import MultiValueResolver
from src.strategy.domain.catalog import FieldCatalog
from src.strategy.domain.models import (
    FilterField,
    FilterOption,
    FilterType,
    IncompleteConditionPolicy,
    RawCriterion,
    RuleDraft,
    ScheduleSelection,
    Weekday,
)

WORKING_DAYS = [Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY]


def make_catalog() -> FieldCatalog:
    return FieldCatalog(
        [
            FilterField(id="DPD", display_name="Days Past Due", type=FilterType.NUMERIC),
            FilterField(id="OVERDUE_AMOUNT", display_name="Overdue Amount", type=FilterType.NUMERIC),
            FilterField(id="DUE_DATE", display_name="Due Date", type=FilterType.DATE),
            FilterField(
                id="LANGUAGE",
                display_name="Language",
                type=FilterType.TEXT,
                options_category="LANGUAGE",
                options=(
                    FilterOption(code="HI", value="Hindi"),
                    FilterOption(code="EN", value="English"),
                    FilterOption(code="MR", value="Marathi"),
                ),
            ),
            FilterField(
                id="STATE",
                display_name="State",
                type=FilterType.TEXT,
                options_category="STATE",
                options=(
                    FilterOption(code="27", value="Maharashtra"),
                    FilterOption(code="29", value="Karnataka"),
                ),
            ),
            FilterField(id="CITY", display_name="City", type=FilterType.TEXT),
        ]
    )


@pytest.fixture
def catalog() -> FieldCatalog:
    return make_catalog()


@pytest.fixture
def resolver() -> MultiValueResolver:
    return MultiValueResolver()


@pytest.fixture
def normalizer(resolver) -> ConditionNormalizer:
    return ConditionNormalizer(resolver, IncompleteConditionPolicy.DROP)


@pytest.fixture
def schedule_normalizer() -> ScheduleNormalizer:
    return ScheduleNormalizer(WORKING_DAYS)


@pytest.fixture
def compiler(normalizer, schedule_normalizer) -> RuleCompiler:
    return RuleCompiler(normalizer, schedule_normalizer)


def make_draft(**overrides) -> RuleDraft:
    """A draft that passes every wizard stage."""
    values = dict(
        name="Early bucket SMS",
        description="Reminder for early delinquency",
        channel="SMS",
        template_id="T-100",
        template_name="Soft reminder",
        criteria=[RawCriterion(field_id="DPD", sign_label="Greater Than or Equal to", min_value="30")],
        schedule=ScheduleSelection(frequency="DAILY", time="09:30"),
    )
    values.update(overrides)
    return RuleDraft(**values)


@pytest.fixture
def draft() -> RuleDraft:
    return make_draft()
