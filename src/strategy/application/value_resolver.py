"""Mapping between internal selection codes and backend display values for enumerated TEXT filters."""

import re
from collections.abc import Iterable, Sequence
from decimal import Decimal, InvalidOperation
from typing import Protocol

from loguru import logger

from src.strategy.domain.models import FilterField, FilterOption

_NUMERIC_PATTERN = re.compile(r"^\s*-?\d+(\.\d+)?\s*$")


class OptionMatcher(Protocol):
    """One strategy for resolving a stored display value back to an option."""

    name: str

    def match(self, search: str, options: Sequence[FilterOption]) -> FilterOption | None:
        """Return the first matching option, or None."""
        ...


class ExactCodeMatcher:
    """Case-insensitive equality against the option code."""

    name = "exact_code"

    def match(self, search: str, options: Sequence[FilterOption]) -> FilterOption | None:
        needle = search.strip().casefold()
        return next((o for o in options if o.code.casefold() == needle), None)


class ExactValueMatcher:
    """Case-insensitive equality against the option display value."""

    name = "exact_value"

    def match(self, search: str, options: Sequence[FilterOption]) -> FilterOption | None:
        needle = search.strip().casefold()
        return next((o for o in options if o.value.casefold() == needle), None)


class NumericMatcher:
    """Numeric equality against code or value, so that "007" finds code "7"."""

    name = "numeric"

    def match(self, search: str, options: Sequence[FilterOption]) -> FilterOption | None:
        if not _NUMERIC_PATTERN.match(search):
            return None

        target = Decimal(search.strip())
        for option in options:
            for candidate in (option.code, option.value):
                if _NUMERIC_PATTERN.match(candidate) and _to_decimal(candidate) == target:
                    return option
        return None


class SubstringMatcher:
    """Case-insensitive containment between stored value and option display value, either way round."""

    name = "substring"

    def match(self, search: str, options: Sequence[FilterOption]) -> FilterOption | None:
        needle = search.strip().casefold()
        if not needle:
            return None

        for option in options:
            haystack = option.value.strip().casefold()
            if haystack and (needle in haystack or haystack in needle):
                return option
        return None


DEFAULT_MATCHERS: tuple[OptionMatcher, ...] = (
    ExactCodeMatcher(),
    ExactValueMatcher(),
    NumericMatcher(),
    SubstringMatcher(),
)


def _to_decimal(value: str) -> Decimal | None:
    try:
        return Decimal(value.strip())
    except InvalidOperation:
        return None


class MultiValueResolver:
    """
    Keeps UI selection codes and backend display values consistent in both directions.

    Encoding looks codes up in the field's option list and is fail-open: unknown codes
    pass through unchanged. Decoding tries each matcher in order, independently per value,
    and falls back to the stored value when nothing matches or no options are loaded.
    """

    def __init__(self, matchers: Sequence[OptionMatcher] | None = None):
        self.matchers: tuple[OptionMatcher, ...] = tuple(matchers) if matchers is not None else DEFAULT_MATCHERS

    def encode(self, field: FilterField, codes: Iterable[str]) -> list[str]:
        """Convert selected codes to the display values the backend stores."""
        by_code = {option.code: option.value for option in field.options}
        values = []
        for code in _unique(codes):
            if code not in by_code:
                logger.debug(f"Code '{code}' not in current options of {field.id}, passing through")
            values.append(by_code.get(code, code))
        return values

    def decode(self, field: FilterField, values: Iterable[str]) -> list[str]:
        """Convert stored display values back to selection codes."""
        if not field.options:
            return list(values)

        return [self.resolve(value, field.options, field_id=field.id) for value in values]

    def resolve(self, value: str, options: Sequence[FilterOption], field_id: str = "") -> str:
        """Resolve one stored value to an option code using the matcher chain."""
        for matcher in self.matchers:
            option = matcher.match(value, options)
            if option is not None:
                if matcher.name != "exact_code":
                    logger.debug(f"Resolved '{value}' on {field_id} to '{option.code}' via {matcher.name}")
                return option.code

        logger.warning(f"No option of {field_id} matches stored value '{value}', keeping it verbatim")
        return value


def _unique(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result
