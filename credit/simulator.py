"""
Credit-card cycle simulator: statement-matched billing math.

Key rules (these reproduce what the user sees on a real statement):
  1. Every money input is coerced to non-negative; non-finite values become 0
  2. Interest is simple monthly accrual on the statement balance: APR / 100 / 12
  3. Round to cents at EACH derived step, not only at the end
  4. Minimum due never exceeds the new statement balance
  5. Once today's day-of-month reaches the due day, views switch from the raw
     current balance to the due-adjusted balance (minimum assumed paid)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Union

from core.config import EngineConfig
from core.schema import CreditAccountState, MinimumPaymentType
from core.utils import clamp, non_negative, round2, to_day_of_month


@dataclass(frozen=True)
class PaymentPlan:
    minimum_payment_type: MinimumPaymentType
    minimum_due: float
    planned_payment: float


@dataclass(frozen=True)
class CycleProjection:
    """Result of simulating one billing cycle for a card."""

    credit_limit: float
    current_balance: float
    statement_balance: float
    pending_charges: float
    interest_amount: float
    new_statement_balance: float
    minimum_due: float
    planned_payment: float
    due_adjusted_current: float
    displayed_balance: float
    available_credit: float
    utilization: float
    statement_day: int
    due_day: int
    due_applied: bool
    planned_spend: float


def normalize_credit_state(
    state: CreditAccountState,
    config: EngineConfig = EngineConfig(),
) -> CreditAccountState:
    """
    Coerce a raw card record into a fully-populated, non-negative state.

    ``statement_balance`` falls back to the current balance and
    ``pending_charges`` to ``max(current - statement, 0)``.
    """
    current = non_negative(state.current_balance)
    statement = non_negative(current if state.statement_balance is None else state.statement_balance)
    if state.pending_charges is None:
        pending = max(current - statement, 0.0)
    else:
        pending = non_negative(state.pending_charges)

    try:
        payment_type = MinimumPaymentType(state.minimum_payment_type)
    except ValueError:
        payment_type = MinimumPaymentType.FIXED

    return replace(
        state,
        credit_limit=non_negative(state.credit_limit),
        current_balance=current,
        statement_balance=statement,
        pending_charges=pending,
        minimum_payment=non_negative(state.minimum_payment),
        apr_percent=non_negative(state.apr_percent),
        statement_day=to_day_of_month(state.statement_day, config.default_statement_day),
        due_day=to_day_of_month(state.due_day, config.default_due_day),
        planned_monthly_spend=non_negative(state.planned_monthly_spend),
        minimum_payment_type=payment_type,
        minimum_payment_percent=clamp(non_negative(state.minimum_payment_percent), 0.0, 100.0),
        extra_payment=non_negative(state.extra_payment),
    )


def monthly_rate(apr_percent: float) -> float:
    apr = non_negative(apr_percent)
    return apr / 100 / 12 if apr > 0 else 0.0


def resolve_payment_plan(
    *,
    statement_balance: float,
    due_balance: float,
    interest_amount: float,
    minimum_payment: float,
    minimum_payment_type: MinimumPaymentType = MinimumPaymentType.FIXED,
    minimum_payment_percent: float = 0.0,
    extra_payment: float = 0.0,
) -> PaymentPlan:
    """
    Minimum due and planned payment for one statement.

    The fixed policy owes ``minimum_payment``; ``percent_plus_interest`` owes
    ``statement * pct/100 + interest``. Both are capped at ``due_balance``, and
    the planned payment (minimum + extra) is capped there too.
    """
    if minimum_payment_type == MinimumPaymentType.PERCENT_PLUS_INTEREST:
        raw = statement_balance * (clamp(minimum_payment_percent, 0.0, 100.0) / 100) + interest_amount
    else:
        raw = minimum_payment
    minimum_due = min(due_balance, max(raw, 0.0))
    planned = min(due_balance, minimum_due + non_negative(extra_payment))
    return PaymentPlan(
        minimum_payment_type=minimum_payment_type,
        minimum_due=minimum_due,
        planned_payment=planned,
    )


def project_cycle(
    state: CreditAccountState,
    today: Union[int, date],
    config: EngineConfig = EngineConfig(),
) -> CycleProjection:
    """
    Project the current billing cycle for one card.

    Parameters
    ----------
    state : CreditAccountState
        Raw card record; normalized here.
    today : int or date
        Today's day of month (or a date, whose day is used) for the due-day gate.

    Returns
    -------
    CycleProjection with every money field rounded to cents.
    """
    s = normalize_credit_state(state, config)
    today_day = today.day if isinstance(today, date) else int(today)

    interest_amount = round2(s.statement_balance * monthly_rate(s.apr_percent))
    new_statement_balance = round2(s.statement_balance + interest_amount)
    plan = resolve_payment_plan(
        statement_balance=s.statement_balance,
        due_balance=new_statement_balance,
        interest_amount=interest_amount,
        minimum_payment=s.minimum_payment,
        minimum_payment_type=s.minimum_payment_type,
        minimum_payment_percent=s.minimum_payment_percent,
        extra_payment=s.extra_payment,
    )
    minimum_due = round2(plan.minimum_due)
    due_adjusted_current = round2(max(new_statement_balance - minimum_due, 0.0) + s.pending_charges)

    due_applied = today_day >= s.due_day
    displayed = round2(due_adjusted_current if due_applied else s.current_balance)
    available = round2(s.credit_limit - displayed)
    utilization = displayed / s.credit_limit if s.credit_limit > 0 else 0.0

    return CycleProjection(
        credit_limit=s.credit_limit,
        current_balance=s.current_balance,
        statement_balance=s.statement_balance,
        pending_charges=s.pending_charges,
        interest_amount=interest_amount,
        new_statement_balance=new_statement_balance,
        minimum_due=minimum_due,
        planned_payment=round2(plan.planned_payment),
        due_adjusted_current=due_adjusted_current,
        displayed_balance=displayed,
        available_credit=available,
        utilization=utilization,
        statement_day=s.statement_day,
        due_day=s.due_day,
        due_applied=due_applied,
        planned_spend=s.planned_monthly_spend,
    )


def estimate_monthly_payment(state: CreditAccountState, config: EngineConfig = EngineConfig()) -> float:
    """Planned payment for the next statement, used as the card's monthly commitment."""
    s = normalize_credit_state(state, config)
    interest = s.statement_balance * monthly_rate(s.apr_percent)
    plan = resolve_payment_plan(
        statement_balance=s.statement_balance,
        due_balance=s.statement_balance + interest,
        interest_amount=interest,
        minimum_payment=s.minimum_payment,
        minimum_payment_type=s.minimum_payment_type,
        minimum_payment_percent=s.minimum_payment_percent,
        extra_payment=s.extra_payment,
    )
    return round2(plan.planned_payment)
