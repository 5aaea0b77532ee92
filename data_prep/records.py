"""
Raw storage records: the shapes the storage layer exports, validated with
pydantic before they become engine snapshots.

Field names follow the storage layer (camelCase aliases such as ``dueDay`` or
``createdAt``); snake_case names are accepted too. Validation is lenient where
the engine is lenient: non-finite money becomes 0, an out-of-range day becomes
None. It is strict only where a value cannot be interpreted at all, such as an
unknown cadence string or an unparseable date.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.schema import (
    AccountBalances,
    AccountType,
    BudgetEnvelope,
    Cadence,
    CreditAccountState,
    CustomUnit,
    Goal,
    IncomePaymentCheck,
    IncomeStream,
    LiquidAccount,
    LoanState,
    MinimumPaymentType,
    Obligation,
    ObligationKind,
    PaymentCheckStatus,
    ReconciliationRecord,
    RecurrenceRule,
    SpendEntry,
    SpendSplit,
)
from core.utils import finite_or_zero, parse_cycle_key, to_day, to_day_of_month


def _as_str(v: Any) -> Any:
    if v is None:
        return v
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


def _as_day(v: Any) -> date:
    try:
        return to_day(v)
    except TypeError as exc:
        raise ValueError(str(exc)) from exc


def _as_optional_number(v: Any) -> Optional[float]:
    if v is None:
        return None
    if isinstance(v, str) and not v.strip():
        return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _as_enum_text(v: Any) -> Any:
    if isinstance(v, str):
        return v.strip().lower().replace("-", "_")
    return v


class StorageRecord(BaseModel):
    """Base for every storage export record."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def unbox_cells(cls, data: Any) -> Any:
        """
        Missing CSV cells arrive as NaN and numbers as numpy scalars.

        Empty cells (NaN or null) are dropped so the field default applies.
        """
        if not isinstance(data, dict):
            return data
        cleaned = {}
        for key, value in data.items():
            if isinstance(value, np.generic):
                value = value.item()
            if value is None or (isinstance(value, float) and math.isnan(value)):
                continue
            cleaned[key] = value
        return cleaned


class ScheduledRecord(StorageRecord):
    """Shared cadence fields for bills, loans and incomes."""

    cadence: Cadence
    created_at: date = Field(alias="createdAt")
    due_day: Optional[int] = Field(default=None, alias="dueDay")
    custom_interval: Optional[int] = Field(default=None, alias="customInterval")
    custom_unit: Optional[CustomUnit] = Field(default=None, alias="customUnit")

    @field_validator("cadence", mode="before")
    @classmethod
    def normalize_cadence(cls, v):
        return _as_enum_text(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_created_at(cls, v):
        return _as_day(v)

    @field_validator("due_day", mode="before")
    @classmethod
    def clamp_due_day(cls, v):
        return to_day_of_month(v, None)

    @field_validator("custom_interval", mode="before")
    @classmethod
    def positive_interval(cls, v):
        n = _as_optional_number(v)
        if n is None or n <= 0 or n != int(n):
            return None
        return int(n)

    @field_validator("custom_unit", mode="before")
    @classmethod
    def known_unit(cls, v):
        v = _as_enum_text(v)
        if v in {u.value for u in CustomUnit}:
            return v
        return None

    def recurrence(self) -> RecurrenceRule:
        return RecurrenceRule(
            cadence=self.cadence,
            anchor_date=self.created_at,
            day_of_month=self.due_day,
            custom_interval=self.custom_interval,
            custom_unit=self.custom_unit,
        )


class BillRecord(ScheduledRecord):
    id: str
    name: str = ""
    amount: float = 0.0
    autopay: bool = False
    linked_account_id: Optional[str] = Field(default=None, alias="linkedAccountId")
    notes: Optional[str] = None

    @field_validator("id", "linked_account_id", mode="before")
    @classmethod
    def ids_as_text(cls, v):
        return _as_str(v)

    @field_validator("amount", mode="before")
    @classmethod
    def finite_amount(cls, v):
        return finite_or_zero(v)

    def to_domain(self) -> Obligation:
        return Obligation(
            id=self.id,
            name=self.name,
            amount=self.amount,
            recurrence=self.recurrence(),
            autopay=self.autopay,
            linked_account_id=self.linked_account_id or None,
            notes=self.notes,
            kind=ObligationKind.BILL,
        )


class LoanRecord(ScheduledRecord):
    id: str
    name: str = ""
    balance: float = 0.0
    minimum_payment: float = Field(default=0.0, alias="minimumPayment")
    subscription_cost: float = Field(default=0.0, alias="subscriptionCost")
    interest_rate: float = Field(default=0.0, alias="interestRate")
    autopay: bool = False
    linked_account_id: Optional[str] = Field(default=None, alias="linkedAccountId")

    @field_validator("id", "linked_account_id", mode="before")
    @classmethod
    def ids_as_text(cls, v):
        return _as_str(v)

    @field_validator("balance", "minimum_payment", "subscription_cost", "interest_rate", mode="before")
    @classmethod
    def finite_money(cls, v):
        return finite_or_zero(v)

    def to_domain(self) -> LoanState:
        return LoanState(
            id=self.id,
            name=self.name,
            balance=self.balance,
            minimum_payment=self.minimum_payment,
            apr_percent=self.interest_rate,
            recurrence=self.recurrence(),
            subscription_cost=self.subscription_cost,
        )

    def to_obligation(self) -> Obligation:
        """The loan's scheduled payment (minimum plus subscription cost)."""
        return Obligation(
            id=self.id,
            name=self.name,
            amount=max(self.minimum_payment, 0.0) + max(self.subscription_cost, 0.0),
            recurrence=self.recurrence(),
            autopay=self.autopay,
            linked_account_id=self.linked_account_id or None,
            kind=ObligationKind.LOAN,
        )


class IncomeRecord(ScheduledRecord):
    id: str
    source: str = ""
    amount: float = 0.0
    due_day: Optional[int] = Field(default=None, alias="receivedDay")
    forecast_smoothing_enabled: bool = Field(default=False, alias="forecastSmoothingEnabled")
    forecast_smoothing_months: Optional[int] = Field(default=None, alias="forecastSmoothingMonths")

    @field_validator("id", mode="before")
    @classmethod
    def ids_as_text(cls, v):
        return _as_str(v)

    @field_validator("amount", mode="before")
    @classmethod
    def finite_amount(cls, v):
        return finite_or_zero(v)

    @field_validator("forecast_smoothing_months", mode="before")
    @classmethod
    def whole_months(cls, v):
        n = _as_optional_number(v)
        return None if n is None else int(round(n))

    def to_domain(self) -> IncomeStream:
        return IncomeStream(
            id=self.id,
            source=self.source,
            amount=self.amount,
            recurrence=self.recurrence(),
            smoothing_enabled=self.forecast_smoothing_enabled,
            smoothing_months=self.forecast_smoothing_months,
        )


class CardRecord(StorageRecord):
    id: str
    name: str = ""
    credit_limit: float = Field(default=0.0, alias="creditLimit")
    used_limit: float = Field(default=0.0, alias="usedLimit")
    statement_balance: Optional[float] = Field(default=None, alias="statementBalance")
    pending_charges: Optional[float] = Field(default=None, alias="pendingCharges")
    minimum_payment: float = Field(default=0.0, alias="minimumPayment")
    interest_rate: float = Field(default=0.0, alias="interestRate")
    statement_day: Optional[int] = Field(default=None, alias="statementDay")
    due_day: Optional[int] = Field(default=None, alias="dueDay")
    spend_per_month: float = Field(default=0.0, alias="spendPerMonth")
    minimum_payment_type: MinimumPaymentType = Field(default=MinimumPaymentType.FIXED, alias="minimumPaymentType")
    minimum_payment_percent: float = Field(default=0.0, alias="minimumPaymentPercent")
    extra_payment: float = Field(default=0.0, alias="extraPayment")
    created_at: Optional[date] = Field(default=None, alias="createdAt")
    autopay: bool = False
    linked_account_id: Optional[str] = Field(default=None, alias="linkedAccountId")

    @field_validator("id", "linked_account_id", mode="before")
    @classmethod
    def ids_as_text(cls, v):
        return _as_str(v)

    @field_validator(
        "credit_limit",
        "used_limit",
        "minimum_payment",
        "interest_rate",
        "spend_per_month",
        "minimum_payment_percent",
        "extra_payment",
        mode="before",
    )
    @classmethod
    def finite_money(cls, v):
        return finite_or_zero(v)

    @field_validator("statement_balance", "pending_charges", mode="before")
    @classmethod
    def optional_money(cls, v):
        return _as_optional_number(v)

    @field_validator("statement_day", "due_day", mode="before")
    @classmethod
    def valid_day(cls, v):
        return to_day_of_month(v, None)

    @field_validator("minimum_payment_type", mode="before")
    @classmethod
    def known_payment_type(cls, v):
        v = _as_enum_text(v)
        if v in {t.value for t in MinimumPaymentType}:
            return v
        return MinimumPaymentType.FIXED

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_created_at(cls, v):
        return None if v is None else _as_day(v)

    def to_domain(self) -> CreditAccountState:
        return CreditAccountState(
            id=self.id,
            name=self.name,
            credit_limit=self.credit_limit,
            current_balance=self.used_limit,
            statement_balance=self.statement_balance,
            pending_charges=self.pending_charges,
            minimum_payment=self.minimum_payment,
            apr_percent=self.interest_rate,
            statement_day=self.statement_day,
            due_day=self.due_day,
            planned_monthly_spend=self.spend_per_month,
            minimum_payment_type=self.minimum_payment_type,
            minimum_payment_percent=self.minimum_payment_percent,
            extra_payment=self.extra_payment,
        )

    def to_obligation(self, amount: float, *, default_anchor, default_due_day: int = 21) -> Obligation:
        """Monthly card payment on the due day, for the liquidity timeline."""
        anchor = self.created_at or to_day(default_anchor)
        return Obligation(
            id=self.id,
            name=self.name,
            amount=amount,
            recurrence=RecurrenceRule(
                cadence=Cadence.MONTHLY,
                anchor_date=anchor,
                day_of_month=self.due_day or default_due_day,
            ),
            autopay=self.autopay,
            linked_account_id=self.linked_account_id or None,
            kind=ObligationKind.CARD,
        )


class AccountRecord(StorageRecord):
    id: str
    name: str = ""
    type: AccountType = AccountType.CHECKING
    balance: float = 0.0
    liquid: bool = True
    pending_balance: float = Field(default=0.0, alias="pendingBalance")
    available_balance: Optional[float] = Field(default=None, alias="availableBalance")

    @field_validator("id", mode="before")
    @classmethod
    def ids_as_text(cls, v):
        return _as_str(v)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        return _as_enum_text(v)

    @field_validator("balance", "pending_balance", mode="before")
    @classmethod
    def finite_money(cls, v):
        return finite_or_zero(v)

    @field_validator("available_balance", mode="before")
    @classmethod
    def optional_money(cls, v):
        return _as_optional_number(v)

    def to_domain(self) -> LiquidAccount:
        return LiquidAccount(
            id=self.id,
            name=self.name,
            balance=self.balance,
            is_liquid=self.liquid,
            account_type=self.type,
        )

    def balances(self) -> AccountBalances:
        return AccountBalances(ledger=self.balance, pending=self.pending_balance, available=self.available_balance)


class CycleReconciliationRecord(StorageRecord):
    entity_id: str = Field(alias="entityId")
    cycle_key: str = Field(alias="cycleKey")
    expected_amount: float = Field(default=0.0, alias="expectedAmount")
    actual_amount: Optional[float] = Field(default=None, alias="actualAmount")
    unmatched_delta: float = Field(default=0.0, alias="unmatchedDelta")
    reconciled: bool = False
    updated_at: float = Field(default=0.0, alias="updatedAt")

    @field_validator("entity_id", mode="before")
    @classmethod
    def ids_as_text(cls, v):
        return _as_str(v)

    @field_validator("cycle_key")
    @classmethod
    def valid_cycle_key(cls, v: str) -> str:
        if parse_cycle_key(v) is None:
            raise ValueError(f"cycleKey must look like YYYY-MM, got {v!r}")
        return v

    @field_validator("expected_amount", "unmatched_delta", "updated_at", mode="before")
    @classmethod
    def finite_number(cls, v):
        return finite_or_zero(v)

    @field_validator("actual_amount", mode="before")
    @classmethod
    def optional_money(cls, v):
        return _as_optional_number(v)

    def to_domain(self) -> ReconciliationRecord:
        return ReconciliationRecord(
            entity_id=self.entity_id,
            cycle_key=self.cycle_key,
            expected_amount=self.expected_amount,
            unmatched_delta=self.unmatched_delta,
            reconciled=self.reconciled,
            updated_at=self.updated_at,
            actual_amount=self.actual_amount,
        )


class EnvelopeRecord(StorageRecord):
    id: str = ""
    category: str
    target_amount: float = Field(default=0.0, alias="targetAmount")
    carryover_amount: float = Field(default=0.0, alias="carryoverAmount")
    rollover_enabled: bool = Field(default=False, alias="rolloverEnabled")

    @field_validator("id", mode="before")
    @classmethod
    def ids_as_text(cls, v):
        return "" if v is None else _as_str(v)

    @field_validator("target_amount", "carryover_amount", mode="before")
    @classmethod
    def finite_money(cls, v):
        return finite_or_zero(v)

    def to_domain(self) -> BudgetEnvelope:
        return BudgetEnvelope(
            id=self.id,
            category=self.category,
            target_amount=self.target_amount,
            carryover_amount=self.carryover_amount,
            rollover_enabled=self.rollover_enabled,
        )


class PurchaseRecord(StorageRecord):
    id: str = ""
    item: str = ""
    category: str = "uncategorized"
    amount: float = 0.0
    purchase_date: date = Field(alias="purchaseDate")

    @field_validator("id", mode="before")
    @classmethod
    def ids_as_text(cls, v):
        return "" if v is None else _as_str(v)

    @field_validator("amount", mode="before")
    @classmethod
    def finite_amount(cls, v):
        return finite_or_zero(v)

    @field_validator("purchase_date", mode="before")
    @classmethod
    def parse_purchase_date(cls, v):
        return _as_day(v)

    def to_domain(self, splits: Tuple[SpendSplit, ...] = ()) -> SpendEntry:
        return SpendEntry(
            category=self.category,
            amount=self.amount,
            spent_on=self.purchase_date,
            item=self.item,
            id=self.id,
            splits=tuple(splits),
        )


class PurchaseSplitRecord(StorageRecord):
    purchase_id: str = Field(alias="purchaseId")
    category: str
    amount: float = 0.0

    @field_validator("purchase_id", mode="before")
    @classmethod
    def ids_as_text(cls, v):
        return _as_str(v)

    @field_validator("amount", mode="before")
    @classmethod
    def finite_amount(cls, v):
        return finite_or_zero(v)

    def to_domain(self) -> SpendSplit:
        return SpendSplit(category=self.category, amount=self.amount)


class IncomePaymentCheckRecord(StorageRecord):
    income_id: str = Field(alias="incomeId")
    cycle_month: str = Field(alias="cycleMonth")
    status: PaymentCheckStatus
    expected_amount: Optional[float] = Field(default=None, alias="expectedAmount")
    received_amount: Optional[float] = Field(default=None, alias="receivedAmount")
    updated_at: float = Field(default=0.0, alias="updatedAt")

    @field_validator("income_id", mode="before")
    @classmethod
    def ids_as_text(cls, v):
        return _as_str(v)

    @field_validator("cycle_month")
    @classmethod
    def valid_cycle_month(cls, v: str) -> str:
        if parse_cycle_key(v) is None:
            raise ValueError(f"cycleMonth must look like YYYY-MM, got {v!r}")
        return v

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return _as_enum_text(v)

    @field_validator("expected_amount", "received_amount", mode="before")
    @classmethod
    def optional_money(cls, v):
        return _as_optional_number(v)

    @field_validator("updated_at", mode="before")
    @classmethod
    def finite_timestamp(cls, v):
        return finite_or_zero(v)

    def to_domain(self) -> IncomePaymentCheck:
        return IncomePaymentCheck(
            income_id=self.income_id,
            cycle_month=self.cycle_month,
            status=self.status,
            updated_at=self.updated_at,
            expected_amount=self.expected_amount,
            received_amount=self.received_amount,
        )


class GoalRecord(StorageRecord):
    id: str
    title: str = ""
    current_amount: float = Field(default=0.0, alias="currentAmount")
    target_amount: float = Field(default=0.0, alias="targetAmount")

    @field_validator("id", mode="before")
    @classmethod
    def ids_as_text(cls, v):
        return _as_str(v)

    @field_validator("current_amount", "target_amount", mode="before")
    @classmethod
    def finite_money(cls, v):
        return finite_or_zero(v)

    def to_domain(self) -> Goal:
        return Goal(id=self.id, name=self.title, current_amount=self.current_amount, target_amount=self.target_amount)
