"""Typed recurrence rules built from the flat recurrence fields of a template.

A stored template carries every frequency-specific parameter as an optional
column, so contradictory combinations are representable (for example a
MONTHLY template with both a day-of-month and a week-of-month). The patterns
below hold exactly one interpretation each; ``RecurrenceRule.from_template``
picks it once, so expansion never has to re-resolve field priority.

MONTHLY priority when several modes are filled in:

1. ``recurrence_day_of_month`` (non-zero) -> ``MonthlyByDayPattern``
2. ``recurrence_week_of_month`` (non-zero) and ``recurrence_day_of_week`` -> ``MonthlyByWeekdayPattern``
3. otherwise -> ``MonthlyPattern``
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from .lite_models import EventTemplate, RecurrenceFrequency


def _normalize_interval(raw: Optional[int]) -> int:
    # unset, zero and negative steps all behave as 1
    if not raw or raw < 1:
        return 1
    return int(raw)


@dataclass(frozen=True)
class NoRecurrence:
    """One-off event."""


@dataclass(frozen=True)
class DailyPattern:
    interval: int = 1


@dataclass(frozen=True)
class WeeklyPattern:
    """Weekly rule; ``days`` uses 0=Sunday .. 6=Saturday.

    With a non-empty ``days`` set the rule walks to the next listed weekday and
    ``interval`` is not applied.
    """

    interval: int = 1
    days: frozenset[int] = frozenset()


@dataclass(frozen=True)
class MonthlyByDayPattern:
    interval: int
    day_of_month: int


@dataclass(frozen=True)
class MonthlyByWeekdayPattern:
    """Nth weekday of the month, e.g. ``week_of_month=2, day_of_week=1`` is the 2nd Monday."""

    interval: int
    week_of_month: int
    day_of_week: int


@dataclass(frozen=True)
class MonthlyPattern:
    interval: int = 1


@dataclass(frozen=True)
class YearlyPattern:
    interval: int = 1


RecurrencePattern = Union[
    NoRecurrence,
    DailyPattern,
    WeeklyPattern,
    MonthlyByDayPattern,
    MonthlyByWeekdayPattern,
    MonthlyPattern,
    YearlyPattern,
]


@dataclass(frozen=True)
class RecurrenceRule:
    """A recurrence pattern plus the bounds that terminate the series.

    Attributes:
        pattern: How the cursor advances between occurrences.
        end_date: No occurrence starting after this instant is produced.
        count: Total occurrences counted from the template's own start, or None.
    """

    pattern: RecurrencePattern
    end_date: Optional[datetime] = None
    count: Optional[int] = None

    @property
    def is_recurring(self) -> bool:
        return not isinstance(self.pattern, NoRecurrence)

    @classmethod
    def from_template(cls, template: EventTemplate) -> RecurrenceRule:
        """Build the rule for ``template``.

        Never raises for inconsistent recurrence fields; they fall through to
        the plain stepping pattern of their frequency.
        """
        frequency = RecurrenceFrequency(template.recurrence_frequency)
        interval = _normalize_interval(template.recurrence_interval)

        pattern: RecurrencePattern
        if frequency == RecurrenceFrequency.DAILY:
            pattern = DailyPattern(interval=interval)
        elif frequency == RecurrenceFrequency.WEEKLY:
            days = frozenset(d for d in (template.recurrence_days or ()) if 0 <= d <= 6)
            pattern = WeeklyPattern(interval=interval, days=days)
        elif frequency == RecurrenceFrequency.MONTHLY:
            pattern = _monthly_pattern(template, interval)
        elif frequency == RecurrenceFrequency.YEARLY:
            pattern = YearlyPattern(interval=interval)
        else:
            pattern = NoRecurrence()

        # a zero count means "no count cap"
        count = template.recurrence_count or None
        return cls(pattern=pattern, end_date=template.recurrence_end_date, count=count)


def _monthly_pattern(template: EventTemplate, interval: int) -> RecurrencePattern:
    if template.recurrence_day_of_month:
        return MonthlyByDayPattern(interval=interval, day_of_month=template.recurrence_day_of_month)
    if template.recurrence_week_of_month and template.recurrence_day_of_week is not None:
        return MonthlyByWeekdayPattern(
            interval=interval,
            week_of_month=template.recurrence_week_of_month,
            day_of_week=template.recurrence_day_of_week,
        )
    return MonthlyPattern(interval=interval)
