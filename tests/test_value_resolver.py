"""Tests for the code <-> display value resolver."""

import pytest

from src.strategy.application.value_resolver import (
    ExactCodeMatcher,
    MultiValueResolver,
    NumericMatcher,
    SubstringMatcher,
)
from src.strategy.domain.models import FilterField, FilterOption, FilterType

OPTIONS = (
    FilterOption(code="HI", value="Hindi"),
    FilterOption(code="EN", value="English"),
    FilterOption(code="MR", value="Marathi"),
    FilterOption(code="7", value="Bucket 7"),
)


@pytest.fixture
def field() -> FilterField:
    return FilterField(id="LANGUAGE", display_name="Language", type=FilterType.TEXT, options=OPTIONS)


@pytest.fixture
def bare_field() -> FilterField:
    return FilterField(id="CITY", display_name="City", type=FilterType.TEXT)


class TestEncode:
    def test_codes_map_to_display_values(self, resolver, field):
        assert resolver.encode(field, ["EN", "HI"]) == ["English", "Hindi"]

    def test_unknown_code_passes_through(self, resolver, field):
        assert resolver.encode(field, ["EN", "XX"]) == ["English", "XX"]

    def test_duplicates_removed_in_order(self, resolver, field):
        assert resolver.encode(field, ["MR", "EN", "MR"]) == ["Marathi", "English"]


class TestDecode:
    @pytest.mark.parametrize(
        "codes",
        [["HI"], ["EN", "MR"], ["MR", "HI", "EN"], ["7"], ["HI", "7"], []],
    )
    def test_round_trip(self, resolver, field, codes):
        assert resolver.decode(field, resolver.encode(field, codes)) == codes

    @pytest.mark.parametrize("values", [["anything"], ["Hindi", "42"], []])
    def test_identity_without_options(self, resolver, bare_field, values):
        assert resolver.decode(bare_field, values) == values

    def test_case_insensitive_code(self, resolver, field):
        assert resolver.decode(field, ["en"]) == ["EN"]

    def test_case_insensitive_value(self, resolver, field):
        assert resolver.decode(field, ["MARATHI"]) == ["MR"]

    def test_numeric_value(self, resolver, field):
        assert resolver.decode(field, ["007"]) == ["7"]

    def test_substring_either_way(self, resolver, field):
        # Stored value contains the option, and option contains the stored value
        assert resolver.decode(field, ["Hindi (India)"]) == ["HI"]
        assert resolver.decode(field, ["engl"]) == ["EN"]

    def test_each_value_resolved_independently(self, resolver, field):
        assert resolver.decode(field, ["hi", "English", "unknown"]) == ["HI", "EN", "unknown"]

    def test_unmatched_value_kept_verbatim(self, resolver, field):
        assert resolver.decode(field, ["Swahili"]) == ["Swahili"]


class TestMatchers:
    def test_code_match_wins_over_value_match(self):
        options = (FilterOption(code="A", value="B"), FilterOption(code="B", value="C"))
        assert MultiValueResolver().resolve("b", options) == "B"

    def test_custom_matcher_order(self):
        options = (FilterOption(code="X1", value="Karnataka"),)
        resolver = MultiValueResolver(matchers=[ExactCodeMatcher()])

        # Substring matching is not configured, so nothing matches
        assert resolver.resolve("Karnat", options) == "Karnat"

    def test_numeric_matcher_ignores_text(self):
        assert NumericMatcher().match("abc", OPTIONS) is None

    def test_substring_matcher_ignores_blank(self):
        assert SubstringMatcher().match("   ", OPTIONS) is None
