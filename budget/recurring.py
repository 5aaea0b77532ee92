"""
Recurring purchase detection.

Purchases of the same item (case/whitespace-insensitive) seen at least three
times in the last 210 days, with a mean interval between 5 and 45 days, are
surfaced as candidates for turning into a scheduled bill.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List

import numpy as np

from core.schema import SpendEntry
from core.utils import clamp, finite_or_zero, round2, to_day

WINDOW_DAYS = 210
MIN_OCCURRENCES = 3
MIN_INTERVAL_DAYS = 5
MAX_INTERVAL_DAYS = 45
MAX_CANDIDATES = 8


@dataclass(frozen=True)
class RecurringCandidate:
    key: str
    label: str
    category: str
    count: int
    average_amount: float
    average_interval_days: float
    next_expected_date: date
    confidence: float  # percent, 0..100


def normalize_item(value: str) -> str:
    return (value or "").strip().lower()


def detect_recurring_purchases(purchases: Iterable[SpendEntry], *, today) -> List[RecurringCandidate]:
    end = to_day(today)
    window_start = end - timedelta(days=WINDOW_DAYS)

    groups: Dict[str, List[SpendEntry]] = defaultdict(list)
    for p in purchases:
        if p.spent_on >= window_start:
            groups[normalize_item(p.item)].append(p)

    candidates: List[RecurringCandidate] = []
    for key, group in groups.items():
        if len(group) < MIN_OCCURRENCES:
            continue
        ordered = sorted(group, key=lambda p: p.spent_on)
        ordinals = np.array([p.spent_on.toordinal() for p in ordered], dtype=float)
        intervals = np.diff(ordinals)
        mean_interval = float(intervals.mean())
        if mean_interval < MIN_INTERVAL_DAYS or mean_interval > MAX_INTERVAL_DAYS:
            continue

        mean_abs_dev = float(np.abs(intervals - mean_interval).mean())
        confidence = clamp(1 - mean_abs_dev / 20 + len(ordered) * 0.04, 0, 1)
        last = ordered[-1]
        candidates.append(
            RecurringCandidate(
                key=key,
                label=last.item,
                category=last.category,
                count=len(ordered),
                average_amount=round2(sum(finite_or_zero(p.amount) for p in ordered) / len(ordered)),
                average_interval_days=round2(mean_interval),
                next_expected_date=last.spent_on + timedelta(days=int(round(mean_interval))),
                confidence=round2(confidence * 100),
            )
        )

    candidates.sort(key=lambda c: (-c.confidence, -c.count))
    return candidates[:MAX_CANDIDATES]
