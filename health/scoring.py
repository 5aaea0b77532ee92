"""
Account health scoring: deterministic deductions from a 100-point start.

  debt-type account                         -38
  available < 0 / < 150 / < 600             -45 / -28 / -14
  pending stress >= 0.4 / >= 0.2            -24 / -12
      stress = max(-pending, 0) / max(|ledger|, 1)
  non-liquid account with available < 250   -8
  no reconciliation on file                 -8
  otherwise:
    latest cycle is not this month          -6
    not reconciled                          -14
    |delta| >= 100 / >= 25                  -24 / -12
    reconciled and |delta| <= 0.01          +4

Score is clamped to [0, 100]; tiers are healthy >= 75, watch >= 50, critical
below. Only one note is surfaced, chosen by a fixed priority:
overdrawn > pending stress > unreconciled > large delta > no reconciliation >
stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from core.schema import AccountBalances, HealthStatus, LiquidAccount, ReconciliationRecord
from core.utils import clamp, cycle_key, finite_or_zero, to_day

from .reconciliation import ReconciliationIndex

NOTE_OVERDRAWN = "Overdrawn position"
NOTE_PENDING_STRESS = "Pending outflows straining balance"
NOTE_UNRECONCILED = "Latest cycle not reconciled"
NOTE_LARGE_DELTA = "Large unmatched reconciliation delta"
NOTE_NO_RECONCILIATION = "No reconciliation on file"
NOTE_STABLE = "Stable"


@dataclass(frozen=True)
class ScoreAdjustment:
    reason: str
    points: int


@dataclass(frozen=True)
class AccountScore:
    account_id: str
    score: int
    status: HealthStatus
    note: str
    adjustments: Tuple[ScoreAdjustment, ...] = ()


def status_for_score(score: float) -> HealthStatus:
    if score >= 75:
        return HealthStatus.HEALTHY
    if score >= 50:
        return HealthStatus.WATCH
    return HealthStatus.CRITICAL


def pending_stress_ratio(balances: AccountBalances) -> float:
    pending = finite_or_zero(balances.pending)
    ledger = finite_or_zero(balances.ledger)
    return max(-pending, 0.0) / max(abs(ledger), 1.0)


def score_account(
    account: LiquidAccount,
    balances: AccountBalances,
    latest_reconciliation: Optional[ReconciliationRecord],
    *,
    today,
) -> AccountScore:
    """
    Score one account.

    Parameters
    ----------
    account : LiquidAccount
        Account type and liquidity flag drive two of the deductions.
    balances : AccountBalances
        Ledger / pending / available snapshot.
    latest_reconciliation : ReconciliationRecord or None
        Latest record for the account (see ``ReconciliationIndex.latest_for``).
    today : date-like
        Decides whether the reconciliation cycle is current.
    """
    current_cycle = cycle_key(to_day(today))
    adjustments: List[ScoreAdjustment] = []

    def deduct(reason: str, points: int) -> None:
        adjustments.append(ScoreAdjustment(reason, points))

    available = finite_or_zero(balances.resolved_available)
    stress = pending_stress_ratio(balances)
    rec = latest_reconciliation

    if account.is_debt:
        deduct("debt_account", -38)

    if available < 0:
        deduct("negative_available", -45)
    elif available < 150:
        deduct("available_below_150", -28)
    elif available < 600:
        deduct("available_below_600", -14)

    if stress >= 0.4:
        deduct("pending_stress_high", -24)
    elif stress >= 0.2:
        deduct("pending_stress", -12)

    if not account.is_liquid and available < 250:
        deduct("illiquid_low_balance", -8)

    delta = 0.0
    if rec is None:
        deduct("no_reconciliation", -8)
    else:
        delta = abs(finite_or_zero(rec.unmatched_delta))
        if rec.cycle_key != current_cycle:
            deduct("stale_cycle", -6)
        if not rec.reconciled:
            deduct("not_reconciled", -14)
        if delta >= 100:
            deduct("delta_at_least_100", -24)
        elif delta >= 25:
            deduct("delta_at_least_25", -12)
        if rec.reconciled and delta <= 0.01:
            deduct("clean_reconciliation", 4)

    score = int(clamp(100 + sum(a.points for a in adjustments), 0, 100))

    if available < 0:
        note = NOTE_OVERDRAWN
    elif stress >= 0.2:
        note = NOTE_PENDING_STRESS
    elif rec is not None and not rec.reconciled:
        note = NOTE_UNRECONCILED
    elif rec is not None and delta >= 25:
        note = NOTE_LARGE_DELTA
    elif rec is None:
        note = NOTE_NO_RECONCILIATION
    else:
        note = NOTE_STABLE

    return AccountScore(
        account_id=account.id,
        score=score,
        status=status_for_score(score),
        note=note,
        adjustments=tuple(adjustments),
    )


def score_accounts(
    accounts: List[LiquidAccount],
    reconciliations: ReconciliationIndex,
    *,
    today,
    balances: Optional[Mapping[str, AccountBalances]] = None,
) -> Dict[str, AccountScore]:
    """Score every account; balances default to the account's own ledger balance."""
    balances = balances or {}
    out: Dict[str, AccountScore] = {}
    for account in accounts:
        snapshot = balances.get(account.id) or AccountBalances(ledger=finite_or_zero(account.balance))
        out[account.id] = score_account(
            account,
            snapshot,
            reconciliations.latest_for(account.id),
            today=today,
        )
    return out
