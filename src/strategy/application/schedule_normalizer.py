"""Conversion of wizard schedule choices into a canonical schedule descriptor."""

import re
from collections.abc import Iterable, Sequence

from src.strategy.domain.exceptions import ScheduleValidationError
from src.strategy.domain.models import Frequency, Schedule, ScheduleSelection, Weekday

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

# "Mon" and "MONDAY" style names, any case
WEEKDAY_ALIASES: dict[str, Weekday] = {
    **{day.value.casefold(): day for day in Weekday},
    **{day.value[:3].casefold(): day for day in Weekday},
}


def parse_weekday(value: Weekday | str) -> Weekday | None:
    if isinstance(value, Weekday):
        return value
    return WEEKDAY_ALIASES.get(str(value).strip().casefold())


def parse_frequency(value: Frequency | str | None) -> Frequency | None:
    if isinstance(value, Frequency):
        return value
    if not value:
        return None
    try:
        return Frequency(str(value).strip().upper())
    except ValueError:
        return None


def normalize_time(value: str | None) -> str | None:
    """Normalize "9:05", "09:05" or "09:05:00" to "09:05". Returns None if invalid."""
    if not value:
        return None

    match = _TIME_PATTERN.match(value.strip())
    if not match:
        return None

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def clamp_day_of_month(day: int) -> int:
    return min(max(int(day), 1), 31)


class ScheduleNormalizer:
    """
    Builds Schedule descriptors from a ScheduleSelection.

    Only the field relevant to the frequency is emitted: DAILY carries the working-day set,
    WEEKLY the selected days, MONTHLY a clamped day of month. The inactive field is ignored
    even when populated.
    """

    def __init__(self, working_days: Sequence[Weekday | str]):
        days = _unique_days(working_days)
        if not days:
            raise ValueError("working_days must contain at least one valid weekday")
        self.working_days: tuple[Weekday, ...] = days

    def validate(self, selection: ScheduleSelection) -> dict[str, str]:
        """
        Validate a selection without building it.

        Returns:
            Errors keyed by field name; empty if the selection is valid
        """
        errors: dict[str, str] = {}

        if normalize_time(selection.time) is None:
            errors["time"] = "A valid run time (HH:MM) is required" if selection.time else "Run time is required"

        frequency = parse_frequency(selection.frequency)
        if frequency is None:
            errors["frequency"] = f"Unknown frequency '{selection.frequency}'"
        elif frequency == Frequency.WEEKLY:
            unknown = [str(d) for d in selection.days if parse_weekday(d) is None]
            if unknown:
                errors["days"] = f"Unknown weekday(s): {', '.join(unknown)}"
            elif not selection.days:
                errors["days"] = "Select at least one day for a weekly schedule"
        elif frequency == Frequency.MONTHLY and selection.day_of_month is None:
            errors["dayOfMonth"] = "Select a day of the month for a monthly schedule"

        return errors

    def normalize(self, selection: ScheduleSelection) -> Schedule:
        """
        Build the canonical schedule.

        Raises:
            ScheduleValidationError: If the selection is invalid
        """
        errors = self.validate(selection)
        if errors:
            raise ScheduleValidationError(errors)

        frequency = parse_frequency(selection.frequency)
        time = normalize_time(selection.time)

        if frequency == Frequency.DAILY:
            return Schedule(frequency=frequency, time=time, days=self.working_days)
        if frequency == Frequency.WEEKLY:
            return Schedule(frequency=frequency, time=time, days=_unique_days(selection.days))
        return Schedule(frequency=frequency, time=time, day_of_month=clamp_day_of_month(selection.day_of_month))

    def to_selection(self, schedule: Schedule) -> ScheduleSelection:
        """Turn a stored schedule back into wizard choices."""
        return ScheduleSelection(
            frequency=schedule.frequency,
            time=normalize_time(schedule.time) or schedule.time,
            days=list(schedule.days or ()) if schedule.frequency == Frequency.WEEKLY else [],
            day_of_month=schedule.day_of_month if schedule.frequency == Frequency.MONTHLY else None,
        )


def _unique_days(days: Iterable[Weekday | str]) -> tuple[Weekday, ...]:
    result: list[Weekday] = []
    for value in days:
        day = parse_weekday(value)
        if day is not None and day not in result:
            result.append(day)
    return tuple(result)
