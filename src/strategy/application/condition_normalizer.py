"""Conversion of one user-entered criterion into a canonical filter condition."""

from loguru import logger
from pydantic import ValidationError

from src.strategy.application.value_resolver import MultiValueResolver
from src.strategy.domain.catalog import FieldCatalog
from src.strategy.domain.exceptions import ConditionError
from src.strategy.domain.models import (
    LEGAL_OPERATORS,
    FilterCondition,
    FilterField,
    FilterType,
    IncompleteConditionPolicy,
    Operator,
    RawCriterion,
)

# Ordered, first match wins. Labels come from master data and vary by deployment.
SIGN_KEYWORDS: tuple[tuple[tuple[str, ...], Operator], ...] = (
    (("greater", "equal"), Operator.GTE),
    (("greater",), Operator.GT),
    (("less", "equal"), Operator.LTE),
    (("less",), Operator.LT),
    (("equal",), Operator.EQ),
    (("range",), Operator.RANGE),
    (("between",), Operator.RANGE),
)

# Labels used when a stored condition is turned back into an editable criterion
SIGN_LABELS: dict[Operator, str] = {
    Operator.GTE: "Greater Than or Equal",
    Operator.GT: "Greater Than",
    Operator.LTE: "Less Than or Equal",
    Operator.LT: "Less Than",
    Operator.EQ: "Equal",
    Operator.RANGE: "Range",
    Operator.BETWEEN: "Between",
}


def classify_sign(label: str | None) -> Operator | None:
    """
    Classify a human-readable comparison label by keyword.

    Args:
        label: Label such as "Greater Than or Equal to" (any case)

    Returns:
        The canonical operator, or None if no keyword matches
    """
    if not label:
        return None

    text = label.casefold()
    for keywords, operator in SIGN_KEYWORDS:
        if all(keyword in text for keyword in keywords):
            return operator
    return None


def sign_label_for(operator: Operator) -> str:
    return SIGN_LABELS.get(operator, "")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class ConditionNormalizer:
    """Turns raw criteria into FilterConditions, applying the incomplete-condition policy."""

    def __init__(
        self,
        resolver: MultiValueResolver | None = None,
        policy: IncompleteConditionPolicy = IncompleteConditionPolicy.DROP,
    ):
        self.resolver = resolver or MultiValueResolver()
        self.policy = IncompleteConditionPolicy(policy)

    def normalize(self, criterion: RawCriterion, catalog: FieldCatalog) -> FilterCondition | None:
        """
        Normalize one criterion.

        Args:
            criterion: The criterion as entered in the form
            catalog: Field catalog of the current editing session

        Returns:
            Exactly one condition, or None when an operand is missing under the drop policy

        Raises:
            UnknownFieldError: If the field is not in the catalog
            ConditionError: If the operator is illegal for the field type, or an operand
                is missing under the reject policy
        """
        field = catalog.get(criterion.field_id)

        if field.type == FilterType.TEXT:
            return self._normalize_text(criterion, field)
        return self._normalize_comparison(criterion, field)

    def _normalize_text(self, criterion: RawCriterion, field: FilterField) -> FilterCondition | None:
        codes = [c for c in (_clean(code) for code in criterion.selected_codes) if c]
        if not codes and _clean(criterion.exact_value):
            # Free-text fields without an option list accept comma separated input
            codes = [c for c in (_clean(part) for part in criterion.exact_value.split(",")) if c]

        if not codes:
            return self._incomplete(field, "at least one value must be selected")

        values = self.resolver.encode(field, codes)
        return FilterCondition(
            field=field.id,
            filter_type=field.type,
            operator=Operator.IN,
            values=tuple(values),
        )

    def _normalize_comparison(self, criterion: RawCriterion, field: FilterField) -> FilterCondition | None:
        operator = classify_sign(criterion.sign_label)
        if operator is None:
            return self._incomplete(field, f"unrecognised comparison '{criterion.sign_label}'")

        if field.type == FilterType.DATE and operator == Operator.RANGE:
            operator = Operator.BETWEEN

        if operator not in LEGAL_OPERATORS[field.type]:
            raise ConditionError(
                field.id, f"operator {operator.value} is not allowed for {field.type.value} fields"
            )

        minimum = _clean(criterion.min_value)
        maximum = _clean(criterion.max_value)
        exact = _clean(criterion.exact_value)

        if operator.is_range:
            if minimum is None or maximum is None:
                return self._incomplete(field, f"{operator.value} requires both a minimum and a maximum")
            value1, value2 = minimum, maximum
        elif operator in (Operator.GT, Operator.GTE):
            value1, value2 = minimum, None
        elif operator in (Operator.LT, Operator.LTE):
            value1, value2 = maximum, None
        else:
            value1, value2 = exact, None

        if value1 is None:
            return self._incomplete(field, f"{operator.value} requires a value")

        try:
            return FilterCondition(
                field=field.id,
                filter_type=field.type,
                operator=operator,
                value1=value1,
                value2=value2,
            )
        except ValidationError as e:
            raise ConditionError(field.id, e.errors()[0]["msg"]) from e

    def _incomplete(self, field: FilterField, reason: str) -> None:
        if self.policy == IncompleteConditionPolicy.REJECT:
            raise ConditionError(field.id, reason)

        logger.debug(f"Dropping incomplete criterion on {field.id}: {reason}")
        return None

    def to_criterion(self, condition: FilterCondition, field: FilterField | None = None) -> RawCriterion:
        """
        Turn a stored condition back into an editable criterion.

        TEXT values are decoded to option codes when the field's options are known.
        """
        criterion = RawCriterion(field_id=condition.field, sign_label=sign_label_for(condition.operator))

        if condition.operator == Operator.IN:
            values = list(condition.values or ())
            criterion.selected_codes = self.resolver.decode(field, values) if field else values
        elif condition.operator.is_range:
            criterion.min_value = condition.value1
            criterion.max_value = condition.value2
        elif condition.operator in (Operator.GT, Operator.GTE):
            criterion.min_value = condition.value1
        elif condition.operator in (Operator.LT, Operator.LTE):
            criterion.max_value = condition.value1
        else:
            criterion.exact_value = condition.value1

        return criterion
