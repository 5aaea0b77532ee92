"""
Liquidity timeline projector: one shared cash pool walked through every
upcoming obligation in due order.

Model:
  - The pool is the sum of balances over liquid accounts only.
  - Each obligation contributes its successive occurrences (capped per
    obligation) from today out to the lookahead horizon.
  - Same-day ordering: autopay first, then larger amounts, then by name.
    Automatic deductions hitting before manual ones is the conservative
    (worst-case) assumption for shortfall risk.
  - The running balance always covers the full lookahead; the caller's display
    window is applied afterwards, so a short window never hides depletion
    caused by events earlier in the sequence.

Severity per event:
  critical  after < 0
  warning   after < max(amount * 1.25, monthly_baseline * 0.25)
  good      otherwise
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from cadence.calculator import iter_occurrences, next_occurrence
from cadence.normalize import monthly_amount_for
from core.config import EngineConfig
from core.logging_setup import get_logger
from core.schema import LiquidAccount, Obligation, RiskLevel, TimelineEvent
from core.utils import finite_or_zero, non_negative, round2, to_day

_logger = get_logger("hearth.engine.timeline")


@dataclass(frozen=True)
class TimelineRun:
    """Full-lookahead liquidity walk. ``events`` are in processing order."""

    today: date
    starting_pool: float
    ending_balance: float
    monthly_baseline: float
    lookahead_days: int
    events: Tuple[TimelineEvent, ...]
    excluded_obligation_ids: Tuple[str, ...] = ()

    def window(self, window_days: int) -> List[TimelineEvent]:
        return [e for e in self.events if e.days_away <= window_days]

    @property
    def first_shortfall(self) -> Optional[TimelineEvent]:
        return next((e for e in self.events if e.severity == RiskLevel.CRITICAL), None)

    def to_dataframe(self, window_days: Optional[int] = None) -> pd.DataFrame:
        events = self.events if window_days is None else self.window(window_days)
        return timeline_to_dataframe(events)


def timeline_to_dataframe(events: Iterable[TimelineEvent]) -> pd.DataFrame:
    columns = [
        "obligation_id", "name", "kind", "due_date", "amount", "days_away",
        "autopay", "before_balance", "after_balance", "severity",
    ]
    rows = [
        {
            "obligation_id": e.obligation_id,
            "name": e.name,
            "kind": e.kind.value,
            "due_date": pd.Timestamp(e.due_date),
            "amount": e.amount,
            "days_away": e.days_away,
            "autopay": e.autopay,
            "before_balance": e.before_balance,
            "after_balance": e.after_balance,
            "severity": e.severity.value,
        }
        for e in events
    ]
    return pd.DataFrame(rows, columns=columns)


def liquidity_pool(accounts: Iterable[LiquidAccount]) -> float:
    return round2(sum(finite_or_zero(a.balance) for a in accounts if a.is_liquid))


def monthly_obligation_baseline(obligations: Iterable[Obligation]) -> float:
    """Cadence-normalized monthly total of all obligations."""
    return round2(sum(monthly_amount_for(o.recurrence, non_negative(o.amount)) for o in obligations))


def classify_severity(
    after: float,
    amount: float,
    monthly_baseline: float,
    config: EngineConfig = EngineConfig(),
) -> RiskLevel:
    if after < 0:
        return RiskLevel.CRITICAL
    if after < max(amount * config.warning_multiplier, monthly_baseline * config.baseline_fraction):
        return RiskLevel.WARNING
    return RiskLevel.GOOD


def timeline_sort_key(due_date: date, autopay: bool, amount: float, name: str) -> tuple:
    return (due_date, 0 if autopay else 1, -amount, name.casefold())


def simulate_timeline(
    obligations: Sequence[Obligation],
    liquid_accounts: Sequence[LiquidAccount],
    *,
    today,
    config: EngineConfig = EngineConfig(),
    lookahead_days: Optional[int] = None,
    monthly_baseline: Optional[float] = None,
) -> TimelineRun:
    """
    Walk the shared liquidity pool through every occurrence in the lookahead.

    Parameters
    ----------
    obligations : sequence of Obligation
        Bills, card payments and loan payments. Unschedulable ones are excluded.
    liquid_accounts : sequence of LiquidAccount
        Only ``is_liquid`` accounts fund the pool.
    today : date-like
        Day zero of the projection.
    lookahead_days : int, optional
        Simulation horizon; defaults to ``config.timeline_lookahead_days``.
    monthly_baseline : float, optional
        Monthly commitment level for the warning threshold; defaults to the
        cadence-normalized monthly total of ``obligations``.
    """
    start = to_day(today)
    horizon = config.timeline_lookahead_days if lookahead_days is None else int(lookahead_days)
    if horizon < 0:
        raise ValueError("lookahead_days must be non-negative.")
    baseline = monthly_obligation_baseline(obligations) if monthly_baseline is None else finite_or_zero(monthly_baseline)

    pending = []
    excluded = []
    for ob in obligations:
        amount = round2(non_negative(ob.amount))
        n = 0
        for due in iter_occurrences(ob.recurrence, start, limit=config.max_occurrences):
            days_away = (due - start).days
            if days_away < 0:
                continue
            if days_away > horizon:
                break
            pending.append((due, days_away, amount, ob))
            n += 1
        if n == 0 and next_occurrence(ob.recurrence, start) is None:
            excluded.append(ob.id)
        elif n == config.max_occurrences:
            _logger.debug("obligation %s hit the %d-occurrence cap", ob.id, config.max_occurrences)

    pending.sort(key=lambda p: timeline_sort_key(p[0], p[3].autopay, p[2], p[3].label))

    pool = liquidity_pool(liquid_accounts)
    balance = pool
    events: List[TimelineEvent] = []
    for due, days_away, amount, ob in pending:
        before = balance
        after = round2(before - amount)
        events.append(
            TimelineEvent(
                obligation_id=ob.id,
                name=ob.label,
                kind=ob.kind,
                due_date=due,
                amount=amount,
                days_away=days_away,
                autopay=bool(ob.autopay),
                before_balance=before,
                after_balance=after,
                severity=classify_severity(after, amount, baseline, config),
            )
        )
        balance = after

    if excluded:
        _logger.debug("excluded unschedulable obligations: %s", excluded)

    return TimelineRun(
        today=start,
        starting_pool=pool,
        ending_balance=balance,
        monthly_baseline=baseline,
        lookahead_days=horizon,
        events=tuple(events),
        excluded_obligation_ids=tuple(excluded),
    )


def project_timeline(
    obligations: Sequence[Obligation],
    liquid_accounts: Sequence[LiquidAccount],
    window_days: int,
    *,
    today,
    config: EngineConfig = EngineConfig(),
    monthly_baseline: Optional[float] = None,
) -> List[TimelineEvent]:
    """
    Timeline events due within ``window_days`` of today.

    The running balance is simulated over ``max(window_days,
    config.timeline_lookahead_days)`` and only then filtered to the window.
    """
    if window_days < 0:
        raise ValueError("window_days must be non-negative.")
    run = simulate_timeline(
        obligations,
        liquid_accounts,
        today=today,
        config=config,
        lookahead_days=max(int(window_days), config.timeline_lookahead_days),
        monthly_baseline=monthly_baseline,
    )
    return run.window(window_days)
