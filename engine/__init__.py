"""
Projection engine: liquidity timeline, near-term cash events and the pipeline runner.
"""

from .events import CashEvent, OverdueObligation, find_overdue_obligations, upcoming_cash_events
from .runner import FinanceSnapshot, ProjectionReport, run_projection
from .timeline import TimelineRun, project_timeline, simulate_timeline

__all__ = [
    "CashEvent",
    "FinanceSnapshot",
    "OverdueObligation",
    "ProjectionReport",
    "TimelineRun",
    "find_overdue_obligations",
    "project_timeline",
    "run_projection",
    "simulate_timeline",
    "upcoming_cash_events",
]
