"""
Domain schema: the immutable record shapes the engine reads and the derived
shapes it returns.

Every entity is a frozen dataclass: mutation happens only in the storage layer,
the engine only ever sees snapshots. Enumerations subclass ``str`` so their
values are the same string literals the storage layer persists.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Tuple


class Cadence(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    CUSTOM = "custom"
    ONE_TIME = "one_time"


class CustomUnit(str, Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"


class ObligationKind(str, Enum):
    BILL = "bill"
    CARD = "card"
    LOAN = "loan"


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    INVESTMENT = "investment"
    CASH = "cash"
    DEBT = "debt"


class MinimumPaymentType(str, Enum):
    FIXED = "fixed"
    PERCENT_PLUS_INTEREST = "percent_plus_interest"


class RiskLevel(str, Enum):
    """Severity of a projected cash event."""

    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class AutopayRisk(str, Enum):
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"
    UNLINKED = "unlinked"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    WATCH = "watch"
    CRITICAL = "critical"


class BudgetStatus(str, Enum):
    ON_TRACK = "on_track"
    WARNING = "warning"
    OVER = "over"


class ForecastRisk(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


class PaymentCheckStatus(str, Enum):
    PENDING = "pending"
    RECEIVED = "received"
    MISSED = "missed"


# ---------------------------------------------------------------------------
# Input snapshots
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecurrenceRule:
    """
    When an obligation (or income) recurs.

    ``day_of_month`` is only meaningful for month-stride cadences; when it is
    None the anchor's day is used. ``custom_interval``/``custom_unit`` are only
    read for ``Cadence.CUSTOM``.
    """

    cadence: Cadence
    anchor_date: date
    day_of_month: Optional[int] = None
    custom_interval: Optional[int] = None
    custom_unit: Optional[CustomUnit] = None


@dataclass(frozen=True)
class Obligation:
    """A bill, card payment, or loan payment the household has to cover."""

    id: str
    amount: float
    recurrence: RecurrenceRule
    autopay: bool = False
    linked_account_id: Optional[str] = None
    notes: Optional[str] = None
    name: str = ""
    kind: ObligationKind = ObligationKind.BILL

    @property
    def label(self) -> str:
        return self.name.strip() or self.id


@dataclass(frozen=True)
class CreditAccountState:
    """
    Raw card state as entered by the user.

    ``statement_balance`` and ``pending_charges`` may be None; the cycle
    simulator derives them. Nothing here is validated, see
    ``credit.simulator.normalize_credit_state``.
    """

    credit_limit: float = 0.0
    current_balance: float = 0.0
    statement_balance: Optional[float] = None
    pending_charges: Optional[float] = None
    minimum_payment: float = 0.0
    apr_percent: float = 0.0
    statement_day: Optional[int] = None
    due_day: Optional[int] = None
    planned_monthly_spend: float = 0.0
    minimum_payment_type: MinimumPaymentType = MinimumPaymentType.FIXED
    minimum_payment_percent: float = 0.0
    extra_payment: float = 0.0
    id: str = ""
    name: str = ""


@dataclass(frozen=True)
class LoanState:
    id: str
    balance: float
    minimum_payment: float
    apr_percent: float
    recurrence: RecurrenceRule
    subscription_cost: float = 0.0
    name: str = ""


@dataclass(frozen=True)
class LiquidAccount:
    id: str
    name: str
    balance: float
    is_liquid: bool = True
    account_type: AccountType = AccountType.CHECKING

    @property
    def is_debt(self) -> bool:
        return self.account_type == AccountType.DEBT


@dataclass(frozen=True)
class AccountBalances:
    """
    Ledger/pending/available snapshot used by account scoring.

    ``pending`` is signed: pending outflows are negative. ``available``
    defaults to ``ledger + pending``.
    """

    ledger: float
    pending: float = 0.0
    available: Optional[float] = None

    @property
    def resolved_available(self) -> float:
        if self.available is not None:
            return float(self.available)
        return float(self.ledger) + float(self.pending)


@dataclass(frozen=True)
class ReconciliationRecord:
    entity_id: str
    cycle_key: str  # "YYYY-MM"
    expected_amount: float
    unmatched_delta: float
    reconciled: bool
    updated_at: float  # epoch millis, only compared
    actual_amount: Optional[float] = None


@dataclass(frozen=True)
class BudgetEnvelope:
    category: str
    target_amount: float
    carryover_amount: float = 0.0
    rollover_enabled: bool = False
    id: str = ""

    @property
    def effective_target(self) -> float:
        return float(self.target_amount) + float(self.carryover_amount)


@dataclass(frozen=True)
class SpendSplit:
    """One category's share of a split purchase."""

    category: str
    amount: float


@dataclass(frozen=True)
class SpendEntry:
    category: str
    amount: float
    spent_on: date
    item: str = ""
    id: str = ""
    # when non-empty, the purchase counts toward these categories instead of its own
    splits: Tuple[SpendSplit, ...] = ()


@dataclass(frozen=True)
class IncomeStream:
    id: str
    source: str
    amount: float
    recurrence: RecurrenceRule
    smoothing_enabled: bool = False
    smoothing_months: Optional[int] = None


@dataclass(frozen=True)
class IncomePaymentCheck:
    income_id: str
    cycle_month: str  # "YYYY-MM"
    status: PaymentCheckStatus
    updated_at: float
    expected_amount: Optional[float] = None
    received_amount: Optional[float] = None


@dataclass(frozen=True)
class Goal:
    id: str
    name: str
    current_amount: float
    target_amount: float


# ---------------------------------------------------------------------------
# Derived values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimelineEvent:
    """One projected obligation occurrence in the liquidity walk. Never persisted."""

    obligation_id: str
    name: str
    kind: ObligationKind
    due_date: date
    amount: float
    days_away: int
    autopay: bool
    before_balance: float
    after_balance: float
    severity: RiskLevel


# Required columns per storage export table (see data_prep.validators).
BILL_COLUMNS: Tuple[str, ...] = (
    "id",
    "name",
    "amount",
    "cadence",
    "createdAt",
)

ACCOUNT_COLUMNS: Tuple[str, ...] = (
    "id",
    "name",
    "type",
    "balance",
    "liquid",
)

RECONCILIATION_COLUMNS: Tuple[str, ...] = (
    "entityId",
    "cycleKey",
    "unmatchedDelta",
    "reconciled",
    "updatedAt",
)

PURCHASE_COLUMNS: Tuple[str, ...] = (
    "item",
    "category",
    "amount",
    "purchaseDate",
)
