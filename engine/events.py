"""
Near-term cash events and the overdue heuristic.

``upcoming_cash_events`` is the dashboard's short list: the next occurrence of
every income (+) and obligation (-) inside a horizon.

``find_overdue_obligations`` infers "overdue" from cadence rollovers because
the storage layer keeps no paid/unpaid flag: a manual obligation whose most
recent due date has passed (within a lookback) and whose cycle has no
reconciled record is reported. Autopay obligations are assumed to settle
themselves. This is a heuristic, not settlement truth.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Sequence

from cadence.calculator import next_occurrence, previous_occurrence
from core.config import EngineConfig
from core.schema import IncomeStream, Obligation, ObligationKind
from core.utils import cycle_key, finite_or_zero, non_negative, round2, to_day
from health.reconciliation import ReconciliationIndex


@dataclass(frozen=True)
class CashEvent:
    id: str
    label: str
    event_type: str  # "income", "bill", "card" or "loan"
    due_date: date
    amount: float  # signed: income positive, outflows negative
    days_away: int


@dataclass(frozen=True)
class OverdueObligation:
    obligation_id: str
    name: str
    due_date: date
    cycle_key: str
    days_overdue: int
    amount: float


def upcoming_cash_events(
    incomes: Sequence[IncomeStream],
    obligations: Sequence[Obligation],
    *,
    today,
    config: EngineConfig = EngineConfig(),
    horizon_days: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[CashEvent]:
    start = to_day(today)
    horizon = config.upcoming_events_horizon_days if horizon_days is None else horizon_days
    limit = config.upcoming_events_limit if limit is None else limit

    events: List[CashEvent] = []
    for income in incomes:
        nxt = next_occurrence(income.recurrence, start)
        if nxt is None or (nxt - start).days > horizon:
            continue
        events.append(
            CashEvent(
                id=f"income-{income.id}",
                label=income.source,
                event_type="income",
                due_date=nxt,
                amount=round2(finite_or_zero(income.amount)),
                days_away=(nxt - start).days,
            )
        )

    for ob in obligations:
        nxt = next_occurrence(ob.recurrence, start)
        if nxt is None or (nxt - start).days > horizon:
            continue
        label = f"{ob.label} payment" if ob.kind == ObligationKind.LOAN else ob.label
        events.append(
            CashEvent(
                id=f"{ob.kind.value}-{ob.id}",
                label=label,
                event_type=ob.kind.value,
                due_date=nxt,
                amount=-round2(non_negative(ob.amount)),
                days_away=(nxt - start).days,
            )
        )

    events.sort(key=lambda e: (e.days_away, e.amount))
    return events[:limit]


def find_overdue_obligations(
    obligations: Sequence[Obligation],
    *,
    today,
    reconciliations: Optional[ReconciliationIndex] = None,
    config: EngineConfig = EngineConfig(),
    lookback_days: Optional[int] = None,
) -> List[OverdueObligation]:
    start = to_day(today)
    yesterday = start - timedelta(days=1)
    lookback = config.overdue_lookback_days if lookback_days is None else lookback_days

    overdue: List[OverdueObligation] = []
    for ob in obligations:
        if ob.autopay:
            continue
        due = previous_occurrence(ob.recurrence, yesterday)
        if due is None:
            continue
        days_overdue = (start - due).days
        if days_overdue > lookback:
            continue
        key = cycle_key(due)
        if reconciliations is not None and reconciliations.is_reconciled(ob.id, key):
            continue
        overdue.append(
            OverdueObligation(
                obligation_id=ob.id,
                name=ob.label,
                due_date=due,
                cycle_key=key,
                days_overdue=days_overdue,
                amount=round2(non_negative(ob.amount)),
            )
        )

    overdue.sort(key=lambda o: (o.due_date, -o.amount, o.name.casefold()))
    return overdue
