from .forecast import (
    ForecastWindow,
    average_monthly_spend,
    forecast_windows,
    monthly_income_total,
    smoothed_monthly_income,
)
from .performance import BudgetPerformance, budget_performance, budget_status, top_category_share
from .recurring import RecurringCandidate, detect_recurring_purchases
from .variance import VarianceStats, normalized_monthly_variance, variance_stats

__all__ = [
    "BudgetPerformance",
    "ForecastWindow",
    "RecurringCandidate",
    "VarianceStats",
    "average_monthly_spend",
    "budget_performance",
    "budget_status",
    "detect_recurring_purchases",
    "forecast_windows",
    "monthly_income_total",
    "normalized_monthly_variance",
    "smoothed_monthly_income",
    "top_category_share",
    "variance_stats",
]
