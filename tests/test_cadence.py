"""Tests for the cadence calculator and monthly normalization."""

from datetime import date, datetime

import pytest

from cadence.calculator import (
    is_schedulable,
    iter_occurrences,
    next_occurrence,
    previous_occurrence,
    resolve_stride,
)
from cadence.normalize import count_completed_monthly_cycles, to_monthly_amount
from core.schema import Cadence, CustomUnit, RecurrenceRule


def rule(cadence, anchor, **kwargs):
    return RecurrenceRule(cadence=cadence, anchor_date=anchor, **kwargs)


class TestNextOccurrence:

    def test_idempotent(self):
        r = rule(Cadence.BIWEEKLY, date(2024, 1, 5))
        ref = date(2024, 6, 17)
        assert next_occurrence(r, ref) == next_occurrence(r, ref)

    @pytest.mark.parametrize("year,expected", [(2024, date(2024, 2, 29)), (2023, date(2023, 2, 28))])
    def test_monthly_day_31_clamps_in_february(self, year, expected):
        r = rule(Cadence.MONTHLY, date(year, 1, 31), day_of_month=31)
        nxt = next_occurrence(r, date(year, 2, 1))
        assert nxt == expected
        assert nxt.month == 2

    def test_custom_one_month_clamps_to_leap_day(self):
        r = rule(
            Cadence.CUSTOM,
            date(2024, 1, 31),
            day_of_month=31,
            custom_interval=1,
            custom_unit=CustomUnit.MONTHS,
        )
        assert next_occurrence(r, date(2024, 2, 1)) == date(2024, 2, 29)

    def test_clamped_month_does_not_drift(self):
        r = rule(Cadence.MONTHLY, date(2024, 1, 31), day_of_month=31)
        assert next_occurrence(r, date(2024, 3, 1)) == date(2024, 3, 31)

    def test_reference_on_due_day_is_returned(self):
        r = rule(Cadence.MONTHLY, date(2024, 1, 10), day_of_month=10)
        assert next_occurrence(r, date(2024, 4, 10)) == date(2024, 4, 10)

    def test_day_of_month_defaults_to_anchor_day(self):
        r = rule(Cadence.MONTHLY, date(2024, 1, 12))
        assert next_occurrence(r, date(2024, 3, 13)) == date(2024, 4, 12)

    def test_day_of_month_out_of_range_is_clamped(self):
        r = rule(Cadence.MONTHLY, date(2024, 1, 1), day_of_month=45)
        assert next_occurrence(r, date(2024, 4, 2)) == date(2024, 4, 30)

    def test_weekly_steps_from_anchor(self):
        r = rule(Cadence.WEEKLY, date(2024, 3, 4))
        assert next_occurrence(r, date(2024, 3, 15)) == date(2024, 3, 18)

    def test_future_anchor_is_first_occurrence(self):
        r = rule(Cadence.WEEKLY, date(2024, 5, 1))
        assert next_occurrence(r, date(2024, 3, 15)) == date(2024, 5, 1)

    def test_quarterly_counts_from_anchor_month(self):
        r = rule(Cadence.QUARTERLY, date(2024, 1, 15), day_of_month=15)
        assert next_occurrence(r, date(2024, 2, 1)) == date(2024, 4, 15)
        assert next_occurrence(r, date(2024, 4, 16)) == date(2024, 7, 15)

    def test_yearly(self):
        r = rule(Cadence.YEARLY, date(2020, 2, 29), day_of_month=29)
        assert next_occurrence(r, date(2023, 1, 1)) == date(2023, 2, 28)

    def test_custom_days(self):
        r = rule(Cadence.CUSTOM, date(2024, 1, 1), custom_interval=10, custom_unit=CustomUnit.DAYS)
        assert next_occurrence(r, date(2024, 1, 15)) == date(2024, 1, 21)

    def test_one_time(self):
        r = rule(Cadence.ONE_TIME, date(2024, 3, 20))
        assert next_occurrence(r, date(2024, 3, 15)) == date(2024, 3, 20)
        assert next_occurrence(r, date(2024, 3, 20)) == date(2024, 3, 20)
        assert next_occurrence(r, date(2024, 3, 21)) is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"custom_interval": 0, "custom_unit": CustomUnit.DAYS},
            {"custom_interval": None, "custom_unit": CustomUnit.MONTHS},
            {"custom_interval": 2, "custom_unit": None},
            {"custom_interval": 1.5, "custom_unit": CustomUnit.WEEKS},
        ],
    )
    def test_degenerate_custom_rule_returns_none(self, kwargs):
        r = rule(Cadence.CUSTOM, date(2024, 1, 1), **kwargs)
        assert next_occurrence(r, date(2024, 3, 1)) is None
        assert not is_schedulable(r)
        assert resolve_stride(r) is None

    def test_unknown_cadence_string_returns_none(self):
        r = rule("fortnightly-ish", date(2024, 1, 1))
        assert next_occurrence(r, date(2024, 3, 1)) is None

    def test_accepts_datetime_and_epoch_millis(self):
        r = rule(Cadence.MONTHLY, 1704067200000, day_of_month=5)  # 2024-01-01T00:00:00Z
        assert next_occurrence(r, datetime(2024, 3, 6, 18, 30)) == date(2024, 4, 5)


class TestPreviousOccurrence:

    def test_latest_on_or_before_reference(self):
        r = rule(Cadence.MONTHLY, date(2024, 1, 1), day_of_month=20)
        assert previous_occurrence(r, date(2024, 3, 15)) == date(2024, 2, 20)
        assert previous_occurrence(r, date(2024, 3, 20)) == date(2024, 3, 20)

    def test_before_anchor_is_none(self):
        r = rule(Cadence.WEEKLY, date(2024, 3, 4))
        assert previous_occurrence(r, date(2024, 3, 1)) is None

    def test_weekly(self):
        r = rule(Cadence.WEEKLY, date(2024, 3, 4))
        assert previous_occurrence(r, date(2024, 3, 15)) == date(2024, 3, 11)


class TestCustomStrides:

    @pytest.mark.parametrize(
        "anchor,interval,unit,previous,upcoming",
        [
            (date(2024, 3, 1), 10, CustomUnit.DAYS, date(2024, 3, 11), date(2024, 3, 21)),
            (date(2024, 1, 5), 3, CustomUnit.WEEKS, date(2024, 3, 8), date(2024, 3, 29)),
            (date(2024, 1, 31), 2, CustomUnit.MONTHS, date(2024, 1, 31), date(2024, 3, 31)),
            (date(2023, 11, 30), 3, CustomUnit.MONTHS, date(2024, 2, 29), date(2024, 5, 30)),
            (date(2022, 6, 10), 2, CustomUnit.YEARS, date(2022, 6, 10), date(2024, 6, 10)),
            (date(2020, 2, 29), 1, CustomUnit.YEARS, date(2024, 2, 29), date(2025, 2, 28)),
        ],
    )
    def test_previous_and_next(self, anchor, interval, unit, previous, upcoming):
        r = rule(Cadence.CUSTOM, anchor, custom_interval=interval, custom_unit=unit)
        assert previous_occurrence(r, date(2024, 3, 15)) == previous
        assert next_occurrence(r, date(2024, 3, 15)) == upcoming

    @pytest.mark.parametrize(
        "anchor,reference,expected",
        [
            (date(2024, 1, 31), date(2024, 3, 15), date(2024, 2, 29)),
            (date(2023, 1, 31), date(2023, 3, 15), date(2023, 2, 28)),
        ],
    )
    def test_previous_clamps_day_31_in_february(self, anchor, reference, expected):
        assert previous_occurrence(rule(Cadence.MONTHLY, anchor, day_of_month=31), reference) == expected
        custom = rule(Cadence.CUSTOM, anchor, custom_interval=1, custom_unit=CustomUnit.MONTHS)
        assert previous_occurrence(custom, reference) == expected


class TestIterOccurrences:

    def test_successive_dates(self):
        r = rule(Cadence.MONTHLY, date(2024, 1, 31), day_of_month=31)
        got = list(iter_occurrences(r, date(2024, 1, 1), limit=4))
        assert got == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30)]

    def test_limit_bounds_work(self):
        r = rule(Cadence.CUSTOM, date(2024, 1, 1), custom_interval=1, custom_unit=CustomUnit.DAYS)
        assert len(list(iter_occurrences(r, date(2024, 1, 1), limit=24))) == 24

    def test_one_time_yields_once(self):
        r = rule(Cadence.ONE_TIME, date(2024, 4, 1))
        assert list(iter_occurrences(r, date(2024, 3, 1), limit=24)) == [date(2024, 4, 1)]


class TestMonthlyNormalization:

    @pytest.mark.parametrize(
        "cadence,expected",
        [
            (Cadence.WEEKLY, 52 / 12 * 100),
            (Cadence.BIWEEKLY, 26 / 12 * 100),
            (Cadence.MONTHLY, 100.0),
            (Cadence.QUARTERLY, 100 / 3),
            (Cadence.YEARLY, 100 / 12),
            (Cadence.ONE_TIME, 0.0),
        ],
    )
    def test_fixed_cadences(self, cadence, expected):
        assert to_monthly_amount(100, cadence) == pytest.approx(expected)

    def test_custom_units(self):
        assert to_monthly_amount(100, Cadence.CUSTOM, 2, CustomUnit.MONTHS) == pytest.approx(50)
        assert to_monthly_amount(120, Cadence.CUSTOM, 1, CustomUnit.YEARS) == pytest.approx(10)
        assert to_monthly_amount(100, Cadence.CUSTOM, 7, CustomUnit.DAYS) == pytest.approx(
            to_monthly_amount(100, Cadence.CUSTOM, 1, CustomUnit.WEEKS)
        )

    def test_degenerate_custom_is_zero(self):
        assert to_monthly_amount(100, Cadence.CUSTOM, 0, CustomUnit.DAYS) == 0.0
        assert to_monthly_amount(float("nan"), Cadence.MONTHLY) == 0.0


class TestCompletedCycles:

    def test_counts_whole_months(self):
        assert count_completed_monthly_cycles(date(2024, 1, 15), date(2024, 4, 14)) == 2
        assert count_completed_monthly_cycles(date(2024, 1, 15), date(2024, 4, 15)) == 3

    def test_future_start_is_zero(self):
        assert count_completed_monthly_cycles(date(2024, 5, 1), date(2024, 4, 1)) == 0
