"""
Data quality validation for finance snapshots before they enter the engine.

The engine never rejects data; it degrades. This module is where the
degradations become visible:
- Duplicate ids
- Obligations whose cadence can never produce a date
- Autopay links to accounts that do not exist
- Reconciliations for entities nobody owns
- Envelopes with nothing to spend
- Split purchases whose parts do not add up
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

import pandas as pd

from cadence.calculator import is_schedulable
from core.schema import Cadence
from core.utils import finite_or_zero, parse_cycle_key, round2
from engine.runner import FinanceSnapshot


@dataclass
class ValidationResult:
    """Collects all validation warnings/errors for a snapshot."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  ✗ {e}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  ⚠ {w}")
        if not lines:
            lines.append("✓ All checks passed.")
        return "\n".join(lines)


def _duplicates(ids: Iterable[str]) -> List[str]:
    counts = Counter(i for i in ids if i)
    return sorted(i for i, n in counts.items() if n > 1)


def validate_snapshot(snapshot: FinanceSnapshot) -> ValidationResult:
    """
    Run all checks on a snapshot.
    Returns a ValidationResult with errors (blocking) and warnings (informational).
    """
    result = ValidationResult()

    # --- Identity ---
    # bills, cards and loans live in separate tables, so ids only clash within a kind
    for kind in {o.kind for o in snapshot.obligations}:
        dup = _duplicates(o.id for o in snapshot.obligations if o.kind == kind)
        if dup:
            result.errors.append(f"Duplicate {kind.value} ids: {dup}")

    dup = _duplicates(a.id for a in snapshot.accounts)
    if dup:
        result.errors.append(f"Duplicate account ids: {dup}")

    # --- Schedules ---
    for ob in snapshot.obligations:
        if ob.recurrence.cadence == Cadence.ONE_TIME:
            continue
        if not is_schedulable(ob.recurrence):
            result.warnings.append(
                f"Obligation {ob.label!r} has an unschedulable cadence and is excluded from the timeline."
            )
        if finite_or_zero(ob.amount) < 0:
            result.warnings.append(f"Obligation {ob.label!r} has a negative amount; it is treated as 0.")

    for income in snapshot.incomes:
        if income.recurrence.cadence != Cadence.ONE_TIME and not is_schedulable(income.recurrence):
            result.warnings.append(f"Income {income.source!r} has an unschedulable cadence.")

    # --- Links ---
    account_ids = {a.id for a in snapshot.accounts}
    for ob in snapshot.obligations:
        if ob.autopay and not ob.linked_account_id:
            result.warnings.append(f"Autopay obligation {ob.label!r} is not linked to an account.")
        elif ob.linked_account_id and ob.linked_account_id not in account_ids:
            result.warnings.append(
                f"Obligation {ob.label!r} links to unknown account {ob.linked_account_id!r}."
            )

    unknown_balances = sorted(set(snapshot.balances) - account_ids)
    if unknown_balances:
        result.warnings.append(f"Balances given for unknown accounts: {unknown_balances}")

    # --- Reconciliations ---
    known_entities = account_ids | {o.id for o in snapshot.obligations}
    orphaned = sorted({r.entity_id for r in snapshot.reconciliations} - known_entities)
    if orphaned:
        result.warnings.append(f"{len(orphaned)} reconciliation entities match no account or obligation: {orphaned}")

    bad_keys = [r.cycle_key for r in snapshot.reconciliations if parse_cycle_key(r.cycle_key) is None]
    if bad_keys:
        result.errors.append(f"{len(bad_keys)} reconciliations have malformed cycle keys.")

    # --- Budgets ---
    for env in snapshot.envelopes:
        if finite_or_zero(env.effective_target) <= 0:
            result.warnings.append(f"Envelope {env.category!r} has a non-positive effective target.")

    dup = _duplicates(e.category for e in snapshot.envelopes)
    if dup:
        result.warnings.append(f"Multiple envelopes share a category: {dup}")

    mismatched = [
        s.item or s.id
        for s in snapshot.spend
        if s.splits and abs(round2(sum(finite_or_zero(p.amount) for p in s.splits)) - round2(s.amount)) > 0.01
    ]
    if mismatched:
        result.warnings.append(f"{len(mismatched)} split purchases do not add up to their amount: {mismatched}")

    # --- Cards ---
    for card in snapshot.credit_accounts:
        label = card.name or card.id
        if finite_or_zero(card.credit_limit) <= 0:
            result.warnings.append(f"Card {label!r} has no credit limit; utilization reads as 0.")
        elif finite_or_zero(card.current_balance) > finite_or_zero(card.credit_limit):
            result.warnings.append(f"Card {label!r} is over its credit limit.")

    return result


def validate_export_frame(df: pd.DataFrame, *, columns: Tuple[str, ...]) -> ValidationResult:
    """
    Schema and value checks for one exported table before row validation.
    """
    result = ValidationResult()

    missing = [c for c in columns if c not in df.columns]
    if missing:
        result.errors.append(f"Missing required columns: {missing}")
        return result  # can't continue without columns

    if len(df) == 0:
        result.warnings.append("Table is empty (0 rows).")
        return result

    for id_col in ("id", "entityId"):
        if id_col in df.columns:
            n_missing = int(df[id_col].isna().sum())
            if n_missing > 0:
                result.errors.append(f"{n_missing} rows have null {id_col}.")
            n_dup = int(df[id_col].dropna().duplicated().sum()) if id_col == "id" else 0
            if n_dup > 0:
                result.errors.append(f"{n_dup} duplicate {id_col} values found.")

    for col in ("amount", "balance", "unmatchedDelta"):
        if col in df.columns:
            vals = pd.to_numeric(df[col], errors="coerce")
            n_null = int(vals.isna().sum())
            if n_null > 0:
                result.warnings.append(f"{n_null} rows have null/unparseable {col}; they are read as 0.")

    if "cadence" in df.columns:
        known = {c.value for c in Cadence}
        cadences = df["cadence"].astype(str).str.strip().str.lower().str.replace("-", "_")
        n_unknown = int((~cadences.isin(known)).sum())
        if n_unknown > 0:
            result.errors.append(f"{n_unknown} rows have an unknown cadence.")

    for dcol in ("createdAt", "purchaseDate"):
        if dcol in df.columns:
            dts = pd.to_datetime(df[dcol], errors="coerce")
            n_null = int(dts.isna().sum())
            if n_null > 0:
                result.errors.append(f"{n_null} rows have null/unparseable {dcol}.")

    return result
