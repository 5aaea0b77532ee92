"""
Cadence calculator: next/previous occurrence of a recurrence rule.

Leaf of the projection pipeline: every other component asks this module when
something is due.

Two stride families:
  - day strides:   weekly (7), biweekly (14), custom days/weeks
  - month strides: monthly (1), quarterly (3), yearly (12), custom months/years
Month strides count from the anchor's month and pin the rule's day-of-month,
clamped to the target month's length (day 31 in February is Feb 28/29, never
March 2/3).

Everything compares at day granularity. A rule that cannot be scheduled
(custom with no unit, non-positive interval, unknown cadence) returns None,
which callers treat as "leave this out of time-based views".
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator, Optional

from core.logging_setup import get_logger
from core.schema import Cadence, CustomUnit, RecurrenceRule
from core.utils import add_months, clamp, clamped_date, finite_or_zero, month_start, months_between, to_day

_logger = get_logger("hearth.cadence.calculator")

_DAY_STRIDES = {Cadence.WEEKLY: 7, Cadence.BIWEEKLY: 14}
_MONTH_STRIDES = {Cadence.MONTHLY: 1, Cadence.QUARTERLY: 3, Cadence.YEARLY: 12}


@dataclass(frozen=True)
class Stride:
    """Distance between occurrences: exactly one of days/months is non-zero."""

    days: int = 0
    months: int = 0


def _coerce_cadence(value) -> Optional[Cadence]:
    try:
        return Cadence(value)
    except ValueError:
        return None


def _coerce_unit(value) -> Optional[CustomUnit]:
    if value is None:
        return None
    try:
        return CustomUnit(value)
    except ValueError:
        return None


def _positive_int(value) -> Optional[int]:
    v = finite_or_zero(value)
    if v <= 0 or v != int(v):
        return None
    return int(v)


def resolve_stride(rule: RecurrenceRule) -> Optional[Stride]:
    """Stride for a repeating rule; None for one-time or degenerate rules."""
    cadence = _coerce_cadence(rule.cadence)
    if cadence is None or cadence == Cadence.ONE_TIME:
        return None
    if cadence in _DAY_STRIDES:
        return Stride(days=_DAY_STRIDES[cadence])
    if cadence in _MONTH_STRIDES:
        return Stride(months=_MONTH_STRIDES[cadence])

    interval = _positive_int(rule.custom_interval)
    unit = _coerce_unit(rule.custom_unit)
    if interval is None or unit is None:
        return None
    if unit == CustomUnit.DAYS:
        return Stride(days=interval)
    if unit == CustomUnit.WEEKS:
        return Stride(days=interval * 7)
    if unit == CustomUnit.MONTHS:
        return Stride(months=interval)
    return Stride(months=interval * 12)


def is_schedulable(rule: RecurrenceRule) -> bool:
    return _coerce_cadence(rule.cadence) == Cadence.ONE_TIME or resolve_stride(rule) is not None


def rule_day(rule: RecurrenceRule, anchor: date) -> int:
    """Day-of-month a month-stride rule pins to, clamped to [1, 31]."""
    if rule.day_of_month is None:
        return anchor.day
    return int(clamp(int(finite_or_zero(rule.day_of_month)), 1, 31))


def _month_candidate(base: date, offset: int, day: int) -> date:
    target = add_months(base, offset)
    return clamped_date(target.year, target.month, day)


def _next_by_month_cycle(day: int, cycle_months: int, anchor: date, ref: date) -> Optional[date]:
    base = month_start(anchor)
    offset = max(months_between(base, ref), 0)
    k = -(-offset // cycle_months) * cycle_months
    # The candidate in ref's own month may already be behind ref; the next
    # cycle month is then strictly ahead, so two probes always suffice.
    for _ in range(2):
        candidate = _month_candidate(base, k, day)
        if candidate >= ref:
            return candidate
        k += cycle_months
    return None


def _previous_by_month_cycle(day: int, cycle_months: int, anchor: date, ref: date) -> Optional[date]:
    base = month_start(anchor)
    diff = months_between(base, ref)
    if diff < 0:
        return None
    k = (diff // cycle_months) * cycle_months
    while k >= 0:
        candidate = _month_candidate(base, k, day)
        if candidate <= ref:
            return candidate
        k -= cycle_months
    return None


def next_occurrence(rule: RecurrenceRule, reference) -> Optional[date]:
    """
    First occurrence on or after ``reference``.

    Parameters
    ----------
    rule : RecurrenceRule
        Recurrence definition; ``anchor_date`` may be any date-like value.
    reference : date-like
        Usually "today". Time of day is ignored.

    Returns
    -------
    date or None
        None when the rule cannot be scheduled or a one-time date has passed.
    """
    ref = to_day(reference)
    anchor = to_day(rule.anchor_date)

    if _coerce_cadence(rule.cadence) == Cadence.ONE_TIME:
        return anchor if anchor >= ref else None

    stride = resolve_stride(rule)
    if stride is None:
        _logger.debug("unschedulable rule %r", rule)
        return None

    if stride.days:
        if anchor >= ref:
            return anchor
        steps = -(-(ref - anchor).days // stride.days)
        return anchor + timedelta(days=steps * stride.days)

    return _next_by_month_cycle(rule_day(rule, anchor), stride.months, anchor, ref)


def previous_occurrence(rule: RecurrenceRule, reference) -> Optional[date]:
    """Last occurrence on or before ``reference``; None if there is none."""
    ref = to_day(reference)
    anchor = to_day(rule.anchor_date)

    if _coerce_cadence(rule.cadence) == Cadence.ONE_TIME:
        return anchor if anchor <= ref else None

    stride = resolve_stride(rule)
    if stride is None:
        _logger.debug("unschedulable rule %r", rule)
        return None

    if stride.days:
        if anchor > ref:
            return None
        steps = (ref - anchor).days // stride.days
        return anchor + timedelta(days=steps * stride.days)

    return _previous_by_month_cycle(rule_day(rule, anchor), stride.months, anchor, ref)


def iter_occurrences(rule: RecurrenceRule, start, *, limit: int) -> Iterator[date]:
    """Yield up to ``limit`` successive occurrences on or after ``start``."""
    cursor = to_day(start)
    for _ in range(max(int(limit), 0)):
        nxt = next_occurrence(rule, cursor)
        if nxt is None:
            return
        yield nxt
        cursor = nxt + timedelta(days=1)
