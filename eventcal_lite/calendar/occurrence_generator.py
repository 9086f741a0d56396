"""Recurrence expansion for eventcal_lite.

Turns one event template into the concrete occurrences that start inside a
query window. Expansion is a forward scan from the template's own start date:
the cursor advances one step at a time, occurrences before the window are
counted but not emitted, and the scan stops at the window end, the rule's end
date, the rule's count, or the safety cap, whichever comes first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from dateutil.relativedelta import relativedelta

from eventcal_lite.domain.candidate_selector import overlaps

from .lite_models import EventTemplate, Occurrence, weekday_of
from .recurrence import (
    DailyPattern,
    MonthlyByDayPattern,
    MonthlyByWeekdayPattern,
    MonthlyPattern,
    NoRecurrence,
    RecurrencePattern,
    RecurrenceRule,
    WeeklyPattern,
    YearlyPattern,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_OCCURRENCES = 1000


@dataclass
class ExpansionConfig:
    """Configuration for recurrence expansion.

    ``max_occurrences`` bounds the number of cursor steps per template per call,
    independent of the rule's own count, so rules that never reach the window
    end still terminate.
    """

    max_occurrences: int = DEFAULT_MAX_OCCURRENCES

    @classmethod
    def from_settings(cls, settings: Any) -> ExpansionConfig:
        """Extract expansion configuration from a settings object or mapping."""
        if isinstance(settings, dict):
            raw = settings.get("max_occurrences", DEFAULT_MAX_OCCURRENCES)
        else:
            raw = getattr(settings, "max_occurrences", DEFAULT_MAX_OCCURRENCES)
        return cls(max_occurrences=int(raw))


def _nth_weekday_of_month(month_anchor: datetime, week_of_month: int, day_of_week: int) -> datetime:
    """Return the ``week_of_month``-th ``day_of_week`` of ``month_anchor``'s month.

    The result is at midnight, so only the first occurrence of such a series
    keeps the template's time of day. A fifth weekday that does not exist
    spills into the following month.
    """
    first_of_month = month_anchor.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    first_weekday = weekday_of(first_of_month)
    offset_days = (day_of_week - first_weekday + 7) % 7 + (week_of_month - 1) * 7
    return first_of_month + timedelta(days=offset_days)


def _next_weekly(pattern: WeeklyPattern, cursor: datetime) -> datetime:
    if not pattern.days:
        return cursor + timedelta(weeks=pattern.interval)

    candidate = cursor
    for _ in range(7):
        candidate = candidate + timedelta(days=1)
        if weekday_of(candidate) in pattern.days:
            return candidate
    # unreachable while days only holds 0..6
    return cursor + timedelta(weeks=pattern.interval)


def next_occurrence(pattern: RecurrencePattern, cursor: datetime) -> datetime:
    """Return the occurrence following ``cursor`` under ``pattern``.

    Args:
        pattern: Recurrence pattern of the template
        cursor: Start of the current occurrence

    Returns:
        Start of the next occurrence. ``NoRecurrence`` returns ``cursor``
        unchanged; callers bound such loops with the safety cap.
    """
    if isinstance(pattern, DailyPattern):
        return cursor + timedelta(days=pattern.interval)
    if isinstance(pattern, WeeklyPattern):
        return _next_weekly(pattern, cursor)
    if isinstance(pattern, MonthlyByDayPattern):
        # calendar clamping only; day_of_month is not re-applied
        return cursor + relativedelta(months=pattern.interval)
    if isinstance(pattern, MonthlyByWeekdayPattern):
        next_month = cursor + relativedelta(months=pattern.interval)
        return _nth_weekday_of_month(next_month, pattern.week_of_month, pattern.day_of_week)
    if isinstance(pattern, MonthlyPattern):
        return cursor + relativedelta(months=pattern.interval)
    if isinstance(pattern, YearlyPattern):
        return cursor + relativedelta(years=pattern.interval)
    return cursor


def generate_occurrences(
    template: EventTemplate,
    window_start: datetime,
    window_end: datetime,
    config: Optional[ExpansionConfig] = None,
    rule: Optional[RecurrenceRule] = None,
) -> list[Occurrence]:
    """Expand ``template`` into the occurrences starting inside the window.

    Args:
        template: Stored event template
        window_start: Inclusive window start
        window_end: Inclusive window end
        config: Expansion limits (defaults to ``ExpansionConfig()``)
        rule: Pre-built rule; derived from ``template`` when omitted

    Returns:
        Chronological occurrences for a recurring template; for a one-off
        template, the template itself if it overlaps the window, else nothing.
    """
    config = config or ExpansionConfig()
    rule = rule or RecurrenceRule.from_template(template)

    if isinstance(rule.pattern, NoRecurrence):
        if overlaps(template.start_date, template.end_date, window_start, window_end):
            return [Occurrence.from_template(template)]
        return []

    occurrences: list[Occurrence] = []
    cursor = template.start_date
    generated = 0

    while (
        cursor <= window_end
        and (rule.count is None or generated < rule.count)
        and generated < config.max_occurrences
    ):
        if rule.end_date is not None and cursor > rule.end_date:
            break

        if cursor >= window_start:
            occurrences.append(Occurrence.from_template(template, cursor, expanded=True))

        cursor = next_occurrence(rule.pattern, cursor)
        generated += 1

    if generated >= config.max_occurrences and (rule.count is None or rule.count > generated):
        logger.warning(
            "Expansion of event %s stopped at safety cap (%d steps, %d in window)",
            template.id,
            config.max_occurrences,
            len(occurrences),
        )

    logger.debug(
        "Expanded event %s: %d steps, %d occurrences in window",
        template.id,
        generated,
        len(occurrences),
    )
    return occurrences
