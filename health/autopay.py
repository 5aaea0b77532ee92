"""
Autopay risk: will each linked account cover its next autopay draft?

Unlike the liquidity timeline (one shared pool), this is per account: each
autopay obligation due within the horizon is checked against its linked
account's balance minus the amounts of earlier drafts on the same account.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence

from cadence.calculator import next_occurrence
from core.config import EngineConfig
from core.schema import AutopayRisk, LiquidAccount, Obligation
from core.utils import finite_or_zero, non_negative, round2, to_day


@dataclass(frozen=True)
class AutopayRiskAlert:
    obligation_id: str
    name: str
    due_date: date
    days_away: int
    amount: float
    linked_account_id: Optional[str]
    linked_account_name: Optional[str]
    projected_before_due: Optional[float]
    risk: AutopayRisk


def classify_autopay(projected_before_due: float, amount: float, config: EngineConfig = EngineConfig()) -> AutopayRisk:
    if projected_before_due < amount:
        return AutopayRisk.CRITICAL
    if projected_before_due < amount * config.warning_multiplier:
        return AutopayRisk.WARNING
    return AutopayRisk.GOOD


def assess_autopay_risk(
    obligations: Sequence[Obligation],
    accounts: Sequence[LiquidAccount],
    *,
    today,
    config: EngineConfig = EngineConfig(),
    horizon_days: Optional[int] = None,
) -> List[AutopayRiskAlert]:
    """
    One alert per autopay obligation whose next due date is within the horizon.

    Obligations with no linked account, or one that is not in ``accounts``,
    come back as ``unlinked`` with no projection.
    """
    start = to_day(today)
    horizon = config.autopay_horizon_days if horizon_days is None else horizon_days
    by_id: Dict[str, LiquidAccount] = {a.id: a for a in accounts}

    due_items = []
    for ob in obligations:
        if not ob.autopay:
            continue
        nxt = next_occurrence(ob.recurrence, start)
        if nxt is None:
            continue
        days_away = (nxt - start).days
        if days_away < 0 or days_away > horizon:
            continue
        due_items.append((nxt, days_away, round2(non_negative(ob.amount)), ob))

    alerts: List[AutopayRiskAlert] = []
    per_account = defaultdict(list)
    for item in due_items:
        ob = item[3]
        if ob.linked_account_id and ob.linked_account_id in by_id:
            per_account[ob.linked_account_id].append(item)
        else:
            alerts.append(
                AutopayRiskAlert(
                    obligation_id=ob.id,
                    name=ob.label,
                    due_date=item[0],
                    days_away=item[1],
                    amount=item[2],
                    linked_account_id=ob.linked_account_id,
                    linked_account_name=None,
                    projected_before_due=None,
                    risk=AutopayRisk.UNLINKED,
                )
            )

    for account_id, items in per_account.items():
        account = by_id[account_id]
        items.sort(key=lambda it: (it[0], -it[2], it[3].label.casefold()))
        running = round2(finite_or_zero(account.balance))
        for due, days_away, amount, ob in items:
            alerts.append(
                AutopayRiskAlert(
                    obligation_id=ob.id,
                    name=ob.label,
                    due_date=due,
                    days_away=days_away,
                    amount=amount,
                    linked_account_id=account_id,
                    linked_account_name=account.name,
                    projected_before_due=running,
                    risk=classify_autopay(running, amount, config),
                )
            )
            running = round2(running - amount)

    alerts.sort(key=lambda a: (a.days_away, -a.amount, a.name.casefold()))
    return alerts
