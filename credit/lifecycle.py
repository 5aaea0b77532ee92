"""
Multi-cycle roll-forward for cards and loans.

Used when several monthly cycles have elapsed since a record was last touched:
the storage layer asks how the balance would have evolved if the planned
payments and spend had happened on schedule. Full precision inside the loop;
totals are rounded to cents on the way out.
"""

from __future__ import annotations

from dataclasses import dataclass

from cadence.normalize import monthly_amount_for
from core.config import EngineConfig
from core.schema import CreditAccountState, LoanState
from core.utils import finite_or_zero, round2

from .simulator import monthly_rate, normalize_credit_state, resolve_payment_plan


@dataclass(frozen=True)
class CardLifecycleResult:
    balance: float
    statement_balance: float
    pending_charges: float
    due_balance: float
    interest_accrued: float
    payments_applied: float
    spend_added: float


@dataclass(frozen=True)
class LoanLifecycleResult:
    balance: float
    interest_accrued: float
    payments_applied: float


def apply_card_monthly_lifecycle(
    state: CreditAccountState,
    cycles: int,
    config: EngineConfig = EngineConfig(),
) -> CardLifecycleResult:
    """
    Roll a card forward ``cycles`` statements.

    Each cycle: accrue interest on the statement balance, pay the planned
    payment against (statement + interest), then the month's planned spend
    joins whatever is carried to form the next statement.
    """
    s = normalize_credit_state(state, config)
    rate = monthly_rate(s.apr_percent)

    balance = s.current_balance
    statement = s.statement_balance
    pending = s.pending_charges
    latest_due = statement
    interest_accrued = 0.0
    payments_applied = 0.0
    spend_added = 0.0

    for _ in range(max(int(cycles), 0)):
        interest = statement * rate
        interest_accrued += interest
        due_balance = statement + interest
        latest_due = due_balance
        plan = resolve_payment_plan(
            statement_balance=statement,
            due_balance=due_balance,
            interest_amount=interest,
            minimum_payment=s.minimum_payment,
            minimum_payment_type=s.minimum_payment_type,
            minimum_payment_percent=s.minimum_payment_percent,
            extra_payment=s.extra_payment,
        )
        payments_applied += plan.planned_payment
        carried = due_balance - plan.planned_payment

        pending += s.planned_monthly_spend
        spend_added += s.planned_monthly_spend

        statement = carried + pending
        balance = statement
        pending = 0.0

    return CardLifecycleResult(
        balance=round2(max(balance, 0.0)),
        statement_balance=round2(max(statement, 0.0)),
        pending_charges=round2(max(pending, 0.0)),
        due_balance=round2(max(latest_due, 0.0)),
        interest_accrued=round2(interest_accrued),
        payments_applied=round2(payments_applied),
        spend_added=round2(spend_added),
    )


def apply_loan_monthly_lifecycle(loan: LoanState, cycles: int) -> LoanLifecycleResult:
    """
    Roll a loan forward ``cycles`` months: interest accrues on the balance,
    then the cadence-normalized monthly payment is applied (never overpaying).
    """
    balance = max(finite_or_zero(loan.balance), 0.0)
    payment = monthly_amount_for(loan.recurrence, max(finite_or_zero(loan.minimum_payment), 0.0))
    rate = monthly_rate(loan.apr_percent)
    interest_accrued = 0.0
    payments_applied = 0.0

    for _ in range(max(int(cycles), 0)):
        interest = balance * rate
        balance += interest
        interest_accrued += interest
        paid = min(balance, payment)
        balance -= paid
        payments_applied += paid

    return LoanLifecycleResult(
        balance=round2(max(balance, 0.0)),
        interest_accrued=round2(interest_accrued),
        payments_applied=round2(payments_applied),
    )
