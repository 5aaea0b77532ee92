"""Shared fixtures.

Tests import the top-level packages (``core``, ``cadence``, ...) directly, so
the project root goes on ``sys.path`` the same way the packages are laid out
for an editable install.
"""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.config import EngineConfig  # noqa: E402
from core.schema import (  # noqa: E402
    AccountType,
    Cadence,
    LiquidAccount,
    Obligation,
    ObligationKind,
    RecurrenceRule,
)


@pytest.fixture
def today() -> date:
    return date(2024, 3, 15)


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


def monthly(anchor: date, day=None) -> RecurrenceRule:
    return RecurrenceRule(cadence=Cadence.MONTHLY, anchor_date=anchor, day_of_month=day)


def make_obligation(
    ob_id: str,
    amount: float,
    rule: RecurrenceRule,
    *,
    autopay: bool = False,
    linked_account_id=None,
    name: str = "",
    kind: ObligationKind = ObligationKind.BILL,
) -> Obligation:
    return Obligation(
        id=ob_id,
        amount=amount,
        recurrence=rule,
        autopay=autopay,
        linked_account_id=linked_account_id,
        name=name or ob_id,
        kind=kind,
    )


@pytest.fixture
def checking() -> LiquidAccount:
    return LiquidAccount(id="chk", name="Checking", balance=2500.0)


@pytest.fixture
def household_accounts(checking) -> list:
    return [
        checking,
        LiquidAccount(id="sav", name="Savings", balance=4000.0, account_type=AccountType.SAVINGS),
        LiquidAccount(id="brk", name="Brokerage", balance=10000.0, is_liquid=False, account_type=AccountType.INVESTMENT),
    ]


@pytest.fixture
def household_obligations(today) -> list:
    anchor = date(2024, 1, 1)
    return [
        make_obligation("rent", 1800.0, monthly(anchor, 1), autopay=True, linked_account_id="chk", name="Rent"),
        make_obligation("power", 120.0, monthly(anchor, 20), name="Power"),
        make_obligation(
            "gym",
            15.0,
            RecurrenceRule(cadence=Cadence.WEEKLY, anchor_date=date(2024, 3, 4)),
            autopay=True,
            linked_account_id="chk",
            name="Gym",
        ),
    ]
