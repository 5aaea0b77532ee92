from .autopay import AutopayRiskAlert, assess_autopay_risk, classify_autopay
from .household import HouseholdInputs, HouseholdScore, Insight, build_insights, score_household
from .reconciliation import ReconciliationIndex
from .scoring import AccountScore, ScoreAdjustment, score_account, score_accounts, status_for_score

__all__ = [
    "AccountScore",
    "AutopayRiskAlert",
    "HouseholdInputs",
    "HouseholdScore",
    "Insight",
    "ReconciliationIndex",
    "ScoreAdjustment",
    "assess_autopay_risk",
    "build_insights",
    "classify_autopay",
    "score_account",
    "score_accounts",
    "score_household",
    "status_for_score",
]
