"""
Unit tests for eventcal_lite.calendar.occurrence_generator

Covers:
- one-off window overlap
- DAILY / WEEKLY / MONTHLY / YEARLY stepping
- count, end-date and safety-cap termination
"""

from datetime import datetime, timedelta

import pytest

from eventcal_lite.calendar.lite_models import weekday_of
from eventcal_lite.calendar.occurrence_generator import (
    ExpansionConfig,
    generate_occurrences,
    next_occurrence,
)
from eventcal_lite.calendar.recurrence import (
    MonthlyByWeekdayPattern,
    NoRecurrence,
    WeeklyPattern,
)

pytestmark = pytest.mark.unit

FAR_FUTURE = datetime(2100, 1, 1)


def _starts(occurrences):
    return [o.start_date for o in occurrences]


class TestOneOffEvents:
    WINDOW = (datetime(2025, 1, 10), datetime(2025, 1, 20))

    @pytest.mark.parametrize(
        ("start", "end", "expected"),
        [
            (datetime(2025, 1, 12), datetime(2025, 1, 13), True),  # inside
            (datetime(2025, 1, 8), datetime(2025, 1, 11), True),  # ends inside
            (datetime(2025, 1, 19), datetime(2025, 1, 25), True),  # starts inside
            (datetime(2025, 1, 1), datetime(2025, 1, 31), True),  # spans window
            (datetime(2025, 1, 1), datetime(2025, 1, 10), True),  # ends on window start
            (datetime(2025, 1, 20), datetime(2025, 1, 21), True),  # starts on window end
            (datetime(2025, 1, 1), datetime(2025, 1, 9), False),  # before
            (datetime(2025, 1, 21), datetime(2025, 1, 22), False),  # after
        ],
    )
    def test_included_iff_overlapping(self, make_template, start, end, expected):
        template = make_template(start=start, duration=end - start)
        result = generate_occurrences(template, *self.WINDOW)
        assert (len(result) == 1) is expected

    def test_one_off_result_keeps_template_dates(self, make_template):
        template = make_template(start=datetime(2025, 1, 12, 9), title="Dentist")
        (occurrence,) = generate_occurrences(template, *self.WINDOW)

        assert occurrence.start_date == template.start_date
        assert occurrence.end_date == template.end_date
        assert occurrence.title == "Dentist"
        assert occurrence.template_id == template.id
        assert occurrence.is_expanded_instance is False


class TestDaily:
    def test_interval_two(self, make_template):
        template = make_template(
            start=datetime(2025, 1, 1), recurrence_frequency="daily", recurrence_interval=2
        )
        result = generate_occurrences(template, datetime(2025, 1, 1), datetime(2025, 1, 10))
        assert [d.day for d in _starts(result)] == [1, 3, 5, 7, 9]

    def test_occurrences_before_window_are_skipped(self, make_template):
        template = make_template(start=datetime(2025, 1, 1, 9), recurrence_frequency="daily")
        result = generate_occurrences(
            template, datetime(2025, 1, 10), datetime(2025, 1, 12, 23, 59)
        )
        assert _starts(result) == [
            datetime(2025, 1, 10, 9),
            datetime(2025, 1, 11, 9),
            datetime(2025, 1, 12, 9),
        ]

    def test_count_is_measured_from_template_start(self, make_template):
        template = make_template(
            start=datetime(2025, 1, 1, 9), recurrence_frequency="daily", recurrence_count=10
        )
        result = generate_occurrences(
            template, datetime(2025, 1, 10), datetime(2025, 1, 12, 23, 59)
        )
        assert _starts(result) == [datetime(2025, 1, 10, 9)]

    def test_end_date_is_inclusive(self, make_template):
        template = make_template(
            start=datetime(2025, 1, 1, 9),
            recurrence_frequency="daily",
            recurrence_end_date=datetime(2025, 1, 5, 9),
        )
        result = generate_occurrences(template, datetime(2025, 1, 1), FAR_FUTURE)
        assert [d.day for d in _starts(result)] == [1, 2, 3, 4, 5]


def test_count_yields_exactly_n_with_constant_duration(make_template):
    duration = timedelta(minutes=90)
    template = make_template(
        start=datetime(2025, 1, 1, 9),
        duration=duration,
        recurrence_frequency="daily",
        recurrence_count=5,
    )
    result = generate_occurrences(template, datetime(2025, 1, 1), FAR_FUTURE)

    assert len(result) == 5
    starts = _starts(result)
    assert starts == sorted(starts)
    assert len(set(starts)) == 5
    assert all(o.end_date - o.start_date == duration for o in result)
    assert all(o.is_expanded_instance and o.template_id == template.id for o in result)


class TestWeekly:
    def test_monday_wednesday_friday_over_two_weeks(self, make_template):
        template = make_template(
            start=datetime(2025, 1, 6, 9),  # Monday
            recurrence_frequency="weekly",
            recurrence_days=[1, 3, 5],
        )
        result = generate_occurrences(
            template, datetime(2025, 1, 6), datetime(2025, 1, 19, 23, 59)
        )

        assert len(result) == 6
        assert all(weekday_of(s) in {1, 3, 5} for s in _starts(result))
        assert [d.day for d in _starts(result)] == [6, 8, 10, 13, 15, 17]

    def test_without_days_steps_by_interval_weeks(self, make_template):
        template = make_template(
            start=datetime(2025, 1, 1), recurrence_frequency="weekly", recurrence_interval=2
        )
        result = generate_occurrences(template, datetime(2025, 1, 1), datetime(2025, 2, 1))
        assert [d.day for d in _starts(result)] == [1, 15, 29]

    def test_next_match_is_strictly_after_cursor(self):
        monday = datetime(2025, 1, 6, 9)
        pattern = WeeklyPattern(days=frozenset({1}))
        assert next_occurrence(pattern, monday) == monday + timedelta(days=7)


class TestMonthly:
    def test_second_monday_january_through_june(self, make_template):
        template = make_template(
            start=datetime(2025, 1, 13, 10),  # 2nd Monday of January
            recurrence_frequency="monthly",
            recurrence_week_of_month=2,
            recurrence_day_of_week=1,
        )
        result = generate_occurrences(
            template, datetime(2025, 1, 1), datetime(2025, 6, 30, 23, 59)
        )

        # later occurrences fall at midnight of the computed day
        assert _starts(result) == [
            datetime(2025, 1, 13, 10),
            datetime(2025, 2, 10),
            datetime(2025, 3, 10),
            datetime(2025, 4, 14),
            datetime(2025, 5, 12),
            datetime(2025, 6, 9),
        ]
        assert all(weekday_of(s) == 1 for s in _starts(result))
        assert all(o.end_date - o.start_date == timedelta(hours=1) for o in result)

    def test_nth_weekday_midnight_is_compared_against_end_date(self, make_template):
        template = make_template(
            start=datetime(2025, 1, 13, 10),
            recurrence_frequency="monthly",
            recurrence_week_of_month=2,
            recurrence_day_of_week=1,
            recurrence_end_date=datetime(2025, 2, 10, 5),
        )
        result = generate_occurrences(template, datetime(2025, 1, 1), datetime(2025, 12, 31))
        assert _starts(result) == [datetime(2025, 1, 13, 10), datetime(2025, 2, 10)]

    def test_missing_fifth_weekday_spills_into_next_month(self):
        pattern = MonthlyByWeekdayPattern(interval=1, week_of_month=5, day_of_week=1)
        # February 2025 has no fifth Monday
        assert next_occurrence(pattern, datetime(2025, 1, 27)) == datetime(2025, 3, 3)

    def test_day_of_month_clamps_and_carries_forward(self, make_template):
        template = make_template(
            start=datetime(2025, 1, 31, 8),
            recurrence_frequency="monthly",
            recurrence_day_of_month=31,
        )
        result = generate_occurrences(template, datetime(2025, 1, 1), datetime(2025, 4, 30))
        assert _starts(result) == [
            datetime(2025, 1, 31, 8),
            datetime(2025, 2, 28, 8),
            datetime(2025, 3, 28, 8),
            datetime(2025, 4, 28, 8),
        ]

    def test_plain_monthly_interval(self, make_template):
        template = make_template(
            start=datetime(2025, 1, 15), recurrence_frequency="monthly", recurrence_interval=3
        )
        result = generate_occurrences(template, datetime(2025, 1, 1), datetime(2025, 12, 31))
        assert [d.month for d in _starts(result)] == [1, 4, 7, 10]


def test_yearly_leap_day_clamps_to_february_28(make_template):
    template = make_template(start=datetime(2024, 2, 29, 12), recurrence_frequency="yearly")
    result = generate_occurrences(template, datetime(2024, 1, 1), datetime(2026, 12, 31))
    assert _starts(result) == [
        datetime(2024, 2, 29, 12),
        datetime(2025, 2, 28, 12),
        datetime(2026, 2, 28, 12),
    ]


class TestSafetyCap:
    def test_unbounded_rule_stops_at_default_cap(self, make_template):
        template = make_template(start=datetime(2000, 1, 1), recurrence_frequency="daily")
        result = generate_occurrences(template, datetime(2000, 1, 1), FAR_FUTURE)

        assert len(result) == 1000
        assert result[-1].start_date == datetime(2000, 1, 1) + timedelta(days=999)

    def test_rule_that_never_reaches_window_end_is_capped(self, make_template):
        # A negative week ordinal walks the cursor backwards, so the window end
        # never stops the scan.
        template = make_template(
            start=datetime(2025, 1, 13),
            recurrence_frequency="monthly",
            recurrence_week_of_month=-10,
            recurrence_day_of_week=1,
        )
        result = generate_occurrences(template, datetime(1700, 1, 1), FAR_FUTURE)
        assert len(result) == 1000

    def test_cap_is_injectable(self, make_template):
        template = make_template(start=datetime(2025, 1, 1), recurrence_frequency="daily")
        result = generate_occurrences(
            template, datetime(2025, 1, 1), FAR_FUTURE, ExpansionConfig(max_occurrences=5)
        )
        assert len(result) == 5

    def test_cap_logs_warning(self, make_template, caplog):
        template = make_template(start=datetime(2025, 1, 1), recurrence_frequency="daily")
        with caplog.at_level("WARNING"):
            generate_occurrences(
                template, datetime(2025, 1, 1), FAR_FUTURE, ExpansionConfig(max_occurrences=3)
            )
        assert "safety cap" in caplog.text

    def test_count_below_cap_does_not_warn(self, make_template, caplog):
        template = make_template(
            start=datetime(2025, 1, 1), recurrence_frequency="daily", recurrence_count=3
        )
        with caplog.at_level("WARNING"):
            generate_occurrences(
                template, datetime(2025, 1, 1), FAR_FUTURE, ExpansionConfig(max_occurrences=3)
            )
        assert "safety cap" not in caplog.text


def test_no_recurrence_pattern_does_not_advance():
    cursor = datetime(2025, 1, 1)
    assert next_occurrence(NoRecurrence(), cursor) == cursor


def test_expansion_config_from_settings():
    assert ExpansionConfig.from_settings({"max_occurrences": "50"}).max_occurrences == 50
    assert ExpansionConfig.from_settings(object()).max_occurrences == 1000
