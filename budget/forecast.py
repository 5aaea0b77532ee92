"""
Cash-flow forecast windows and income smoothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from cadence.normalize import monthly_amount_for
from core.config import EngineConfig
from core.schema import ForecastRisk, IncomePaymentCheck, IncomeStream, PaymentCheckStatus, SpendEntry
from core.utils import finite_or_zero, lookback_cycle_keys, non_negative, round2, to_day

DEFAULT_SMOOTHING_MONTHS = 6


@dataclass(frozen=True)
class ForecastWindow:
    days: int
    projected_income: float
    projected_commitments: float
    projected_spend: float
    projected_net: float
    projected_cash: float
    coverage_months: float
    risk: ForecastRisk


def forecast_risk(projected_cash: float, coverage_months: float) -> ForecastRisk:
    if projected_cash < 0:
        return ForecastRisk.CRITICAL
    if coverage_months < 1:
        return ForecastRisk.WARNING
    return ForecastRisk.HEALTHY


def forecast_windows(
    current_liquidity: float,
    monthly_income: float,
    monthly_commitments: float,
    *,
    monthly_spend: float = 0.0,
    windows: Optional[Sequence[int]] = None,
    config: EngineConfig = EngineConfig(),
) -> List[ForecastWindow]:
    """
    Project cash at the end of each window.

    Monthly figures scale by ``days / 30``. Coverage divides by
    ``max(monthly_commitments, 1)`` so an empty commitment list never divides
    by zero.

    Parameters
    ----------
    current_liquidity : float
        Starting cash (liquid reserves).
    monthly_income : float
        Monthly income, typically the smoothed figure.
    monthly_commitments : float
        Cadence-normalized monthly obligations.
    monthly_spend : float, default 0
        Discretionary spend estimate, treated as an extra outflow.
    windows : sequence of int, optional
        Window lengths in days; defaults to ``config.forecast_windows``.

    Returns
    -------
    list of ForecastWindow
    """
    windows = config.forecast_windows if windows is None else windows
    liquidity = finite_or_zero(current_liquidity)
    income = finite_or_zero(monthly_income)
    commitments = non_negative(monthly_commitments)
    spend = non_negative(monthly_spend)

    out: List[ForecastWindow] = []
    for days in windows:
        if days < 0:
            raise ValueError("Forecast windows must be non-negative.")
        factor = days / 30
        income_w = round2(income * factor)
        commitments_w = round2(commitments * factor)
        spend_w = round2(spend * factor)
        net = round2(income_w - commitments_w - spend_w)
        cash = round2(liquidity + net)
        coverage = cash / max(commitments, 1.0)
        out.append(
            ForecastWindow(
                days=int(days),
                projected_income=income_w,
                projected_commitments=commitments_w,
                projected_spend=spend_w,
                projected_net=net,
                projected_cash=cash,
                coverage_months=round2(coverage),
                risk=forecast_risk(cash, coverage),
            )
        )
    return out


def average_monthly_spend(spend: Iterable[SpendEntry], *, today, lookback_days: int = 90) -> float:
    """Daily spend rate over the lookback, scaled to a 30-day month."""
    end = to_day(today)
    start = end - timedelta(days=lookback_days)
    total = sum(finite_or_zero(s.amount) for s in spend if start <= s.spent_on <= end)
    return round2(total / max(lookback_days, 1) * 30)


def clamp_smoothing_months(value) -> int:
    months = int(round(finite_or_zero(value)))
    return months if 2 <= months <= 24 else DEFAULT_SMOOTHING_MONTHS


def latest_checks_by_month(checks: Iterable[IncomePaymentCheck], income_id: str) -> Dict[str, IncomePaymentCheck]:
    out: Dict[str, IncomePaymentCheck] = {}
    for check in checks:
        if check.income_id != income_id:
            continue
        existing = out.get(check.cycle_month)
        if existing is None or check.updated_at > existing.updated_at:
            out[check.cycle_month] = check
    return out


def _check_cycle_amount(check: IncomePaymentCheck, fallback: float) -> float:
    if check.status == PaymentCheckStatus.MISSED:
        return 0.0
    if check.received_amount is not None:
        return non_negative(check.received_amount)
    if check.expected_amount is not None:
        return non_negative(check.expected_amount)
    return non_negative(fallback)


def smoothed_monthly_income(
    income: IncomeStream,
    checks: Iterable[IncomePaymentCheck],
    *,
    anchor_month: str,
) -> float:
    """
    Monthly income for forecasting.

    Without smoothing this is the cadence-normalized amount. With smoothing it
    is the average over the last N months (2..24, default 6) ending at
    ``anchor_month``: a missed month counts as 0, a received or expected amount
    replaces the baseline, and a month with no check keeps the baseline.
    """
    baseline_cycle = finite_or_zero(income.amount)
    baseline_monthly = round2(monthly_amount_for(income.recurrence, baseline_cycle))
    if not income.smoothing_enabled:
        return baseline_monthly

    months = clamp_smoothing_months(income.smoothing_months)
    by_month: Mapping[str, IncomePaymentCheck] = latest_checks_by_month(checks, income.id)
    total = 0.0
    for key in lookback_cycle_keys(anchor_month, months):
        check = by_month.get(key)
        if check is None:
            total += baseline_monthly
        else:
            total += monthly_amount_for(income.recurrence, _check_cycle_amount(check, baseline_cycle))
    return round2(total / months)


def monthly_income_total(
    incomes: Sequence[IncomeStream],
    checks: Sequence[IncomePaymentCheck],
    *,
    anchor_month: str,
) -> float:
    return round2(sum(smoothed_monthly_income(i, checks, anchor_month=anchor_month) for i in incomes))
