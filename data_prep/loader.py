"""
Loading storage exports (CSV tables or one JSON document) into engine snapshots.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

import pandas as pd

from core.config import EngineConfig
from core.logging_setup import get_logger
from core.schema import (
    ACCOUNT_COLUMNS,
    BILL_COLUMNS,
    PURCHASE_COLUMNS,
    RECONCILIATION_COLUMNS,
    AccountBalances,
    SpendSplit,
)
from credit.simulator import estimate_monthly_payment
from engine.runner import FinanceSnapshot

from .records import (
    AccountRecord,
    BillRecord,
    CardRecord,
    CycleReconciliationRecord,
    EnvelopeRecord,
    GoalRecord,
    IncomePaymentCheckRecord,
    IncomeRecord,
    LoanRecord,
    PurchaseRecord,
    PurchaseSplitRecord,
    StorageRecord,
)
from .validators import validate_export_frame

_logger = get_logger("hearth.data_prep.loader")

R = TypeVar("R", bound=StorageRecord)

REQUIRED_COLUMNS: Dict[type, Tuple[str, ...]] = {
    BillRecord: BILL_COLUMNS,
    AccountRecord: ACCOUNT_COLUMNS,
    CycleReconciliationRecord: RECONCILIATION_COLUMNS,
    PurchaseRecord: PURCHASE_COLUMNS,
}

# payload key -> accepted spellings
PAYLOAD_KEYS: Dict[str, Sequence[str]] = {
    "bills": ("bills",),
    "cards": ("cards",),
    "loans": ("loans",),
    "accounts": ("accounts",),
    "reconciliations": ("reconciliations", "cycleReconciliations"),
    "envelopes": ("envelopes", "envelopeBudgets"),
    "purchases": ("purchases",),
    "purchase_splits": ("purchaseSplits", "purchase_splits"),
    "incomes": ("incomes",),
    "income_checks": ("incomePaymentChecks", "income_checks"),
    "goals": ("goals",),
}


def load_export_csv(path: str, *, low_memory: bool = False) -> pd.DataFrame:
    """Load one exported table as-is."""
    return pd.read_csv(path, low_memory=low_memory)


def parse_records(rows: Iterable[Mapping[str, Any]], model: Type[R]) -> List[R]:
    return [model.model_validate(dict(row)) for row in rows]


def frame_to_records(df: pd.DataFrame, model: Type[R]) -> List[R]:
    return parse_records(df.to_dict(orient="records"), model)


def load_records_csv(path: str, model: Type[R], *, low_memory: bool = False) -> List[R]:
    """
    Load an exported CSV table and validate every row.

    Parameters
    ----------
    path : str
        CSV with storage column names (``dueDay``, ``createdAt``, ...).
    model : StorageRecord subclass
        Record model each row is validated against.

    Returns
    -------
    list of ``model`` instances.

    Raises
    ------
    ValueError
        When the table misses required columns or holds unreadable cadences or
        dates (table level), or a row fails model validation
        (``pydantic.ValidationError`` is a ``ValueError``).
    """
    df = load_export_csv(path, low_memory=low_memory)
    columns = REQUIRED_COLUMNS.get(model)
    if columns:
        check = validate_export_frame(df, columns=columns)
        for warning in check.warnings:
            _logger.warning("%s: %s", path, warning)
        if not check.is_valid:
            raise ValueError(f"{path}: " + "; ".join(check.errors))
    records = frame_to_records(df, model)
    _logger.debug("loaded %d %s rows from %s", len(records), model.__name__, path)
    return records


def _section(payload: Mapping[str, Any], name: str) -> List[Mapping[str, Any]]:
    for key in PAYLOAD_KEYS[name]:
        if key in payload and payload[key] is not None:
            return list(payload[key])
    return []


def snapshot_from_payload(
    payload: Mapping[str, Any],
    *,
    today,
    config: EngineConfig = EngineConfig(),
) -> FinanceSnapshot:
    """
    Build a FinanceSnapshot from a JSON-like export.

    Bills, cards and loans all become timeline obligations. A card's payment
    is its estimated monthly payment on its due day; a loan's is its minimum
    payment plus subscription cost. ``today`` anchors cards that carry no
    ``createdAt``.
    """
    bills = parse_records(_section(payload, "bills"), BillRecord)
    cards = parse_records(_section(payload, "cards"), CardRecord)
    loans = parse_records(_section(payload, "loans"), LoanRecord)
    accounts = parse_records(_section(payload, "accounts"), AccountRecord)

    card_states = [c.to_domain() for c in cards]
    obligations = [b.to_domain() for b in bills]
    obligations += [
        record.to_obligation(
            estimate_monthly_payment(state, config),
            default_anchor=today,
            default_due_day=config.default_due_day,
        )
        for record, state in zip(cards, card_states)
    ]
    obligations += [loan.to_obligation() for loan in loans]

    balances: Dict[str, AccountBalances] = {a.id: a.balances() for a in accounts}

    splits_by_purchase: Dict[str, List[SpendSplit]] = {}
    for split in parse_records(_section(payload, "purchase_splits"), PurchaseSplitRecord):
        splits_by_purchase.setdefault(split.purchase_id, []).append(split.to_domain())

    snapshot = FinanceSnapshot(
        obligations=tuple(obligations),
        accounts=tuple(a.to_domain() for a in accounts),
        balances=balances,
        credit_accounts=tuple(card_states),
        loans=tuple(loan.to_domain() for loan in loans),
        reconciliations=tuple(
            r.to_domain() for r in parse_records(_section(payload, "reconciliations"), CycleReconciliationRecord)
        ),
        envelopes=tuple(e.to_domain() for e in parse_records(_section(payload, "envelopes"), EnvelopeRecord)),
        spend=tuple(
            p.to_domain(splits_by_purchase.get(p.id, ()) if p.id else ())
            for p in parse_records(_section(payload, "purchases"), PurchaseRecord)
        ),
        incomes=tuple(i.to_domain() for i in parse_records(_section(payload, "incomes"), IncomeRecord)),
        income_checks=tuple(
            c.to_domain() for c in parse_records(_section(payload, "income_checks"), IncomePaymentCheckRecord)
        ),
        goals=tuple(g.to_domain() for g in parse_records(_section(payload, "goals"), GoalRecord)),
    )
    _logger.debug(
        "snapshot: %d obligations, %d accounts, %d cards, %d loans",
        len(snapshot.obligations),
        len(snapshot.accounts),
        len(snapshot.credit_accounts),
        len(snapshot.loans),
    )
    return snapshot


def load_snapshot_json(path: str, *, today, config: Optional[EngineConfig] = None) -> FinanceSnapshot:
    with open(path, "r", encoding="utf-8") as fh:
        payload = json.load(fh)
    return snapshot_from_payload(payload, today=today, config=config or EngineConfig())
