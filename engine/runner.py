"""
Projection runner: one pass of every component over a finance snapshot.

  snapshot ──► cadence ──► credit cycles ──► liquidity timeline
                                     └──► health (accounts, autopay, household)
                                     └──► budget (envelopes, forecast, recurring)

The run is a pure function of (snapshot, today, config). ``use_cache=True``
routes it through an explicit LRU so repeated dashboard refreshes over an
unchanged snapshot are free; nothing is cached otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Tuple

import pandas as pd

from budget.forecast import ForecastWindow, average_monthly_spend, forecast_windows, monthly_income_total
from budget.performance import BudgetPerformance, budget_performance, month_spend_total, top_category_share
from budget.recurring import RecurringCandidate, detect_recurring_purchases
from core.cache import memoize
from core.config import EngineConfig
from core.logging_setup import get_logger
from core.schema import (
    AccountBalances,
    AutopayRisk,
    BudgetEnvelope,
    CreditAccountState,
    Goal,
    IncomePaymentCheck,
    IncomeStream,
    LiquidAccount,
    LoanState,
    Obligation,
    ReconciliationRecord,
    SpendEntry,
    TimelineEvent,
)
from core.utils import cycle_key, finite_or_zero, non_negative, to_day
from credit.simulator import CycleProjection, project_cycle
from health.autopay import AutopayRiskAlert, assess_autopay_risk
from health.household import HouseholdInputs, HouseholdScore, Insight, build_insights, score_household
from health.reconciliation import ReconciliationIndex
from health.scoring import AccountScore, score_accounts

from .events import CashEvent, OverdueObligation, find_overdue_obligations, upcoming_cash_events
from .timeline import TimelineRun, liquidity_pool, monthly_obligation_baseline, simulate_timeline

_logger = get_logger("hearth.engine.runner")


@dataclass(frozen=True)
class FinanceSnapshot:
    """Everything a projection reads. Collections are tuples so a snapshot can be cache-keyed."""

    obligations: Tuple[Obligation, ...] = ()
    accounts: Tuple[LiquidAccount, ...] = ()
    balances: Mapping[str, AccountBalances] = field(default_factory=dict)
    credit_accounts: Tuple[CreditAccountState, ...] = ()
    loans: Tuple[LoanState, ...] = ()
    reconciliations: Tuple[ReconciliationRecord, ...] = ()
    envelopes: Tuple[BudgetEnvelope, ...] = ()
    spend: Tuple[SpendEntry, ...] = ()
    incomes: Tuple[IncomeStream, ...] = ()
    income_checks: Tuple[IncomePaymentCheck, ...] = ()
    goals: Tuple[Goal, ...] = ()


@dataclass(frozen=True)
class ProjectionReport:
    today: date
    monthly_income: float
    monthly_commitments: float
    timeline: TimelineRun
    window_events: Tuple[TimelineEvent, ...]
    card_cycles: Mapping[str, CycleProjection]
    account_scores: Mapping[str, AccountScore]
    autopay_alerts: Tuple[AutopayRiskAlert, ...]
    budget: Tuple[BudgetPerformance, ...]
    forecasts: Tuple[ForecastWindow, ...]
    upcoming: Tuple[CashEvent, ...]
    overdue: Tuple[OverdueObligation, ...]
    household: HouseholdScore
    insights: Tuple[Insight, ...]
    recurring: Tuple[RecurringCandidate, ...]

    def summary_table(self) -> pd.DataFrame:
        """Headline figures, one row per metric."""
        shortfall = self.timeline.first_shortfall
        rows = [
            {"Metric": "As Of", "Value": self.today.isoformat(), "Unit": ""},
            {"Metric": "Liquidity Pool", "Value": self.timeline.starting_pool, "Unit": "currency"},
            {"Metric": "Monthly Income", "Value": self.monthly_income, "Unit": "currency"},
            {"Metric": "Monthly Commitments", "Value": self.monthly_commitments, "Unit": "currency"},
            {"Metric": "Ending Balance (lookahead)", "Value": self.timeline.ending_balance, "Unit": "currency"},
            {
                "Metric": "First Shortfall",
                "Value": shortfall.due_date.isoformat() if shortfall else "none",
                "Unit": "",
            },
            {"Metric": "Household Score", "Value": self.household.score, "Unit": "points"},
            {"Metric": "Savings Rate", "Value": self.household.savings_rate_percent, "Unit": "%"},
            {"Metric": "Card Utilization", "Value": self.household.utilization_percent, "Unit": "%"},
            {"Metric": "Runway", "Value": self.household.runway_months, "Unit": "months"},
            {
                "Metric": "Critical Autopay Alerts",
                "Value": sum(1 for a in self.autopay_alerts if a.risk == AutopayRisk.CRITICAL),
                "Unit": "count",
            },
            {"Metric": "Overdue Obligations", "Value": len(self.overdue), "Unit": "count"},
        ]
        for window in self.forecasts:
            rows.append({
                "Metric": f"Projected Cash {window.days}d",
                "Value": window.projected_cash,
                "Unit": "currency",
            })
        return pd.DataFrame(rows)

    def timeline_frame(self) -> pd.DataFrame:
        return self.timeline.to_dataframe(window_days=None)


def _household_inputs(
    snapshot: FinanceSnapshot,
    monthly_income: float,
    monthly_commitments: float,
    month: date,
) -> HouseholdInputs:
    cards = snapshot.credit_accounts
    card_used = sum(non_negative(c.current_balance) for c in cards)
    loan_balance = sum(non_negative(loan.balance) for loan in snapshot.loans)

    total_assets = 0.0
    account_debts = 0.0
    liquid_reserves = 0.0
    for a in snapshot.accounts:
        bal = finite_or_zero(a.balance)
        if a.is_debt:
            account_debts += abs(bal)
            continue
        total_assets += max(bal, 0.0)
        if bal < 0:
            account_debts += abs(bal)
        if a.is_liquid:
            liquid_reserves += max(bal, 0.0)

    return HouseholdInputs(
        monthly_income=monthly_income,
        monthly_commitments=monthly_commitments,
        total_loan_balance=loan_balance,
        card_used_total=card_used,
        card_limit_total=sum(non_negative(c.credit_limit) for c in cards),
        liquid_reserves=liquid_reserves,
        total_assets=total_assets,
        total_liabilities=account_debts + card_used + loan_balance,
        purchases_this_month=month_spend_total(snapshot.spend, month),
    )


def _run(snapshot: FinanceSnapshot, config: EngineConfig, today: date) -> ProjectionReport:
    month_key = cycle_key(today)
    reconciliations = ReconciliationIndex.build(snapshot.reconciliations)

    monthly_income = monthly_income_total(snapshot.incomes, snapshot.income_checks, anchor_month=month_key)
    monthly_commitments = monthly_obligation_baseline(snapshot.obligations)

    timeline = simulate_timeline(
        snapshot.obligations,
        snapshot.accounts,
        today=today,
        config=config,
        lookahead_days=max(config.timeline_window_days, config.timeline_lookahead_days),
        monthly_baseline=monthly_commitments,
    )

    card_cycles = {
        (c.id or f"card-{i}"): project_cycle(c, today, config)
        for i, c in enumerate(snapshot.credit_accounts)
    }

    household = score_household(
        _household_inputs(snapshot, monthly_income, monthly_commitments, today),
        snapshot.goals,
    )

    return ProjectionReport(
        today=today,
        monthly_income=monthly_income,
        monthly_commitments=monthly_commitments,
        timeline=timeline,
        window_events=tuple(timeline.window(config.timeline_window_days)),
        card_cycles=MappingProxyType(card_cycles),
        account_scores=MappingProxyType(
            score_accounts(
                list(snapshot.accounts),
                reconciliations,
                today=today,
                balances=snapshot.balances,
            )
        ),
        autopay_alerts=tuple(
            assess_autopay_risk(snapshot.obligations, snapshot.accounts, today=today, config=config)
        ),
        budget=tuple(
            budget_performance(snapshot.envelopes, snapshot.spend, month_key=month_key, today=today, config=config)
        ),
        forecasts=tuple(
            forecast_windows(
                liquidity_pool(snapshot.accounts),
                monthly_income,
                monthly_commitments,
                monthly_spend=average_monthly_spend(snapshot.spend, today=today),
                config=config,
            )
        ),
        upcoming=tuple(upcoming_cash_events(snapshot.incomes, snapshot.obligations, today=today, config=config)),
        overdue=tuple(
            find_overdue_obligations(
                snapshot.obligations,
                today=today,
                reconciliations=reconciliations,
                config=config,
            )
        ),
        household=household,
        insights=tuple(build_insights(household, monthly_income, top_category_share(snapshot.spend, month_key))),
        recurring=tuple(detect_recurring_purchases(snapshot.spend, today=today)),
    )


_cached_runs: Dict[int, Callable[..., ProjectionReport]] = {}


def _cached_run(maxsize: int) -> Callable[..., ProjectionReport]:
    """The memoized run for one cache size; built on first use."""
    if maxsize not in _cached_runs:
        _cached_runs[maxsize] = memoize(maxsize=maxsize)(_run)
    return _cached_runs[maxsize]


def run_projection(
    snapshot: FinanceSnapshot,
    config: EngineConfig = EngineConfig(),
    *,
    today,
    use_cache: bool = False,
) -> ProjectionReport:
    """
    Run every projection component over one snapshot.

    Parameters
    ----------
    snapshot : FinanceSnapshot
        Read-only inputs.
    config : EngineConfig
        Policy constants.
    today : date-like
        The caller's "now"; the engine never reads a clock.
    use_cache : bool, default False
        Serve repeated identical runs from the explicit LRU, one per
        ``config.cache_size``. Cached reports hold only tuples and read-only
        mappings, so callers share them safely.

    Returns
    -------
    ProjectionReport
    """
    if not isinstance(snapshot, FinanceSnapshot):
        raise ValueError("run_projection expects a FinanceSnapshot.")
    day = to_day(today)

    if use_cache:
        report = _cached_run(config.cache_size)(snapshot, config, day)
    else:
        report = _run(snapshot, config, day)

    _logger.info(
        "projection %s: %d obligations, %d timeline events, pool %.2f -> %.2f, household score %d",
        day.isoformat(),
        len(snapshot.obligations),
        len(report.timeline.events),
        report.timeline.starting_pool,
        report.timeline.ending_balance,
        report.household.score,
    )
    return report
