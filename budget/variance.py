"""
Variance statistics for variable amounts (e.g. a utility bill that changes
every cycle).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from cadence.normalize import monthly_amount_for
from core.schema import RecurrenceRule
from core.utils import finite_or_zero, round2

NOT_AVAILABLE = "n/a"


@dataclass(frozen=True)
class VarianceStats:
    samples: int
    mean: Optional[float]
    std_dev: Optional[float]
    relative_percent: Optional[float]

    @property
    def is_available(self) -> bool:
        return self.std_dev is not None

    def describe(self) -> str:
        if self.std_dev is None:
            return NOT_AVAILABLE
        rel = NOT_AVAILABLE if self.relative_percent is None else f"{self.relative_percent:.1f}%"
        return f"σ {self.std_dev:.2f} ({rel})"


def variance_stats(amounts: Iterable[float]) -> VarianceStats:
    """
    Population standard deviation, mean and σ/mean in percent.

    Fewer than two samples leaves every figure undefined; a zero mean leaves
    only the relative figure undefined.
    """
    values = np.array([finite_or_zero(a) for a in amounts], dtype=float)
    n = int(values.size)
    if n < 2:
        return VarianceStats(samples=n, mean=None, std_dev=None, relative_percent=None)

    mean = float(values.mean())
    sigma = float(values.std(ddof=0))
    relative = None if mean == 0 else round2(sigma / abs(mean) * 100)
    return VarianceStats(samples=n, mean=round2(mean), std_dev=round2(sigma), relative_percent=relative)


def normalized_monthly_variance(amounts: Iterable[float], rule: RecurrenceRule) -> VarianceStats:
    """``variance_stats`` over amounts first normalized to monthly equivalents."""
    return variance_stats(monthly_amount_for(rule, a) for a in amounts)
