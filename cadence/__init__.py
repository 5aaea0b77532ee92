"""
Cadence calculator: recurrence math every other component schedules through.
"""

from .calculator import (
    is_schedulable,
    iter_occurrences,
    next_occurrence,
    previous_occurrence,
    resolve_stride,
)
from .normalize import count_completed_monthly_cycles, monthly_amount_for, to_monthly_amount

__all__ = [
    "is_schedulable",
    "iter_occurrences",
    "next_occurrence",
    "previous_occurrence",
    "resolve_stride",
    "count_completed_monthly_cycles",
    "monthly_amount_for",
    "to_monthly_amount",
]
