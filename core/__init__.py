"""
Core package: domain schema, configuration, logging, caching and shared utilities.
No business logic lives here.
"""

from .schema import (
    AccountBalances,
    AccountType,
    AutopayRisk,
    BudgetEnvelope,
    BudgetStatus,
    Cadence,
    CreditAccountState,
    CustomUnit,
    ForecastRisk,
    Goal,
    HealthStatus,
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
    RiskLevel,
    SpendEntry,
    TimelineEvent,
)
from .config import EngineConfig
from .utils import round2, to_day, cycle_key
from .logging_setup import configure_logging, get_logger

__all__ = [
    "AccountBalances",
    "AccountType",
    "AutopayRisk",
    "BudgetEnvelope",
    "BudgetStatus",
    "Cadence",
    "CreditAccountState",
    "CustomUnit",
    "ForecastRisk",
    "Goal",
    "HealthStatus",
    "IncomePaymentCheck",
    "IncomeStream",
    "LiquidAccount",
    "LoanState",
    "MinimumPaymentType",
    "Obligation",
    "ObligationKind",
    "PaymentCheckStatus",
    "ReconciliationRecord",
    "RecurrenceRule",
    "RiskLevel",
    "SpendEntry",
    "TimelineEvent",
    "EngineConfig",
    "round2",
    "to_day",
    "cycle_key",
    "configure_logging",
    "get_logger",
]
