"""
Envelope budget performance for one month.

Spend is summed per category (pandas groupby, with split purchases counted
under their split categories) and compared with each
envelope's effective target (target + carryover):

  variance  = effective_target - spent
  over      variance < 0
  warning   variance < effective_target * 0.10
  on_track  otherwise

``projected_month_end`` extrapolates the spend rate linearly to the month's
length; for past months the full month counts as elapsed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from core.config import EngineConfig
from core.schema import BudgetEnvelope, BudgetStatus, SpendEntry, SpendSplit
from core.utils import cycle_key, days_in_month, finite_or_zero, parse_cycle_key, round2, to_day


@dataclass(frozen=True)
class BudgetPerformance:
    envelope_id: str
    category: str
    target_amount: float
    carryover_amount: float
    effective_target: float
    spent: float
    variance: float
    projected_month_end: float
    rollover_enabled: bool
    suggested_rollover: float
    status: BudgetStatus


def budget_status(variance: float, effective_target: float, config: EngineConfig = EngineConfig()) -> BudgetStatus:
    if variance < 0:
        return BudgetStatus.OVER
    if variance < effective_target * config.budget_warning_buffer:
        return BudgetStatus.WARNING
    return BudgetStatus.ON_TRACK


def spend_frame(spend: Iterable[SpendEntry]) -> pd.DataFrame:
    """One row per category allocation; a split purchase contributes one row per split."""
    rows = []
    for s in spend:
        spent_on = pd.Timestamp(s.spent_on)
        parts = s.splits or (SpendSplit(s.category, s.amount),)
        for part in parts:
            rows.append({
                "category": part.category,
                "item": s.item,
                "amount": finite_or_zero(part.amount),
                "spent_on": spent_on,
            })
    return pd.DataFrame(rows, columns=["category", "item", "amount", "spent_on"])


def category_totals(spend: Iterable[SpendEntry], month_key: str) -> pd.Series:
    """Spend per category for ``month_key`` ("YYYY-MM")."""
    df = spend_frame(spend)
    if df.empty:
        return pd.Series(dtype=float)
    in_month = df[df["spent_on"].dt.strftime("%Y-%m") == month_key]
    return in_month.groupby("category")["amount"].sum()


def budget_performance(
    envelopes: Sequence[BudgetEnvelope],
    spend: Iterable[SpendEntry],
    *,
    month_key: Optional[str] = None,
    today,
    config: EngineConfig = EngineConfig(),
) -> List[BudgetPerformance]:
    """
    Per-envelope performance, sorted by amount spent (largest first).

    Parameters
    ----------
    envelopes : sequence of BudgetEnvelope
    spend : iterable of SpendEntry
        Actuals; only entries in ``month_key`` count.
    month_key : str, optional
        "YYYY-MM"; defaults to today's month.
    today : date-like
        Determines elapsed days when ``month_key`` is the current month.
    """
    day = to_day(today)
    month_key = month_key or cycle_key(day)
    parsed = parse_cycle_key(month_key)
    if parsed is None:
        raise ValueError(f"Invalid month key: {month_key!r}")
    month_days = days_in_month(*parsed)
    elapsed = max(day.day, 1) if month_key == cycle_key(day) else month_days

    totals = category_totals(spend, month_key)

    out: List[BudgetPerformance] = []
    for env in envelopes:
        spent = round2(float(totals.get(env.category, 0.0)))
        effective = round2(env.effective_target)
        variance = round2(effective - spent)
        out.append(
            BudgetPerformance(
                envelope_id=env.id,
                category=env.category,
                target_amount=round2(finite_or_zero(env.target_amount)),
                carryover_amount=round2(finite_or_zero(env.carryover_amount)),
                effective_target=effective,
                spent=spent,
                variance=variance,
                projected_month_end=round2(spent / elapsed * month_days),
                rollover_enabled=bool(env.rollover_enabled),
                suggested_rollover=round2(max(variance, 0.0)) if env.rollover_enabled else 0.0,
                status=budget_status(variance, effective, config),
            )
        )

    out.sort(key=lambda p: -p.spent)
    return out


def top_category_share(spend: Iterable[SpendEntry], month_key: str) -> float:
    """Largest category's share of the month's spend, in percent (0 with no spend)."""
    totals = category_totals(spend, month_key)
    total = float(totals.sum()) if not totals.empty else 0.0
    if total <= 0:
        return 0.0
    return round2(float(totals.max()) / total * 100)


def month_spend_total(spend: Iterable[SpendEntry], month: date) -> float:
    totals = category_totals(spend, cycle_key(month))
    return round2(float(totals.sum())) if not totals.empty else 0.0
