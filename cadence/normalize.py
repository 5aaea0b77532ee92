"""
Cadence normalization: express any recurring amount as a monthly figure, and
count how many monthly rollovers have happened since a date.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Union

from core.schema import Cadence, CustomUnit, RecurrenceRule
from core.utils import add_months, finite_or_zero, to_day

DAYS_PER_YEAR = 365.2425


def to_monthly_amount(
    amount: float,
    cadence: Union[Cadence, str],
    custom_interval: Optional[int] = None,
    custom_unit: Union[CustomUnit, str, None] = None,
) -> float:
    """
    Average monthly equivalent of a per-occurrence ``amount``.

    One-time amounts and unschedulable custom rules contribute 0.
    """
    amount = finite_or_zero(amount)
    try:
        cadence = Cadence(cadence)
    except ValueError:
        return 0.0

    if cadence == Cadence.WEEKLY:
        return amount * 52 / 12
    if cadence == Cadence.BIWEEKLY:
        return amount * 26 / 12
    if cadence == Cadence.MONTHLY:
        return amount
    if cadence == Cadence.QUARTERLY:
        return amount / 3
    if cadence == Cadence.YEARLY:
        return amount / 12
    if cadence == Cadence.ONE_TIME:
        return 0.0

    interval = finite_or_zero(custom_interval)
    if interval <= 0 or custom_unit is None:
        return 0.0
    try:
        unit = CustomUnit(custom_unit)
    except ValueError:
        return 0.0
    if unit == CustomUnit.DAYS:
        return amount * DAYS_PER_YEAR / (interval * 12)
    if unit == CustomUnit.WEEKS:
        return amount * DAYS_PER_YEAR / (interval * 7 * 12)
    if unit == CustomUnit.MONTHS:
        return amount / interval
    return amount / (interval * 12)


def monthly_amount_for(rule: RecurrenceRule, amount: float) -> float:
    return to_monthly_amount(amount, rule.cadence, rule.custom_interval, rule.custom_unit)


def count_completed_monthly_cycles(since, today, *, cap: int = 600) -> int:
    """
    Whole monthly rollovers from ``since`` up to and including ``today``.

    The marker keeps its day where the month allows and is clamped otherwise,
    so a Jan 31 start rolls to Feb 29 and then Mar 29.
    """
    end: date = to_day(today)
    marker: date = to_day(since)
    cycles = 0
    for _ in range(cap):
        nxt = add_months(marker, 1)
        if nxt > end:
            break
        marker = nxt
        cycles += 1
    return cycles
