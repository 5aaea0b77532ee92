"""
Engine configuration.

Every policy constant the projection components share lives here so that a
run is fully described by (snapshot, today, EngineConfig).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class EngineConfig:
    # liquidity timeline
    max_occurrences: int = 24  # per obligation; bounds work on malformed cadences
    timeline_window_days: int = 60
    timeline_lookahead_days: int = 365
    warning_multiplier: float = 1.25
    baseline_fraction: float = 0.25

    # autopay risk
    autopay_horizon_days: int = 45

    # budget / forecast
    budget_warning_buffer: float = 0.10
    forecast_windows: Tuple[int, ...] = (30, 90, 365)

    # card defaults when the stored day is missing or outside [1, 31]
    default_due_day: int = 21
    default_statement_day: int = 1

    # overdue heuristic
    overdue_lookback_days: int = 31

    # upcoming cash events
    upcoming_events_horizon_days: int = 60
    upcoming_events_limit: int = 12

    # explicit memoization (core.cache)
    cache_size: int = 32
