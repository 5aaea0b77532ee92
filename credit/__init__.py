"""
Credit accounts: single-cycle statement simulation and multi-cycle roll-forward.
"""

from .simulator import (
    CycleProjection,
    PaymentPlan,
    estimate_monthly_payment,
    normalize_credit_state,
    project_cycle,
    resolve_payment_plan,
)
from .lifecycle import apply_card_monthly_lifecycle, apply_loan_monthly_lifecycle

__all__ = [
    "CycleProjection",
    "PaymentPlan",
    "estimate_monthly_payment",
    "normalize_credit_state",
    "project_cycle",
    "resolve_payment_plan",
    "apply_card_monthly_lifecycle",
    "apply_loan_monthly_lifecycle",
]
