"""
Household-level score and dashboard insights.

The score blends four components:

  savings      clamp((savings_rate% + 10) * 1.8, 0, 40)
  utilization  clamp((35 - utilization%) * 0.9, 0, 25)
  runway       clamp(runway_months * 6, 0, 25)
  goals        clamp(goals_funded% * 0.1, 0, 10)

Runway is measured against a deliberately heavy monthly pressure (commitments
plus all outstanding liabilities plus this month's purchases), so it reads as a
stress ratio rather than a literal month count.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from core.schema import Goal, RiskLevel
from core.utils import clamp, excel_round, finite_or_zero, round2

MAX_INSIGHTS = 6


@dataclass(frozen=True)
class HouseholdInputs:
    monthly_income: float
    monthly_commitments: float
    total_loan_balance: float = 0.0
    card_used_total: float = 0.0
    card_limit_total: float = 0.0
    liquid_reserves: float = 0.0
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    purchases_this_month: float = 0.0


@dataclass(frozen=True)
class HouseholdScore:
    score: int
    projected_monthly_net: float
    savings_rate_percent: float
    utilization_percent: float
    runway_months: float
    goals_funded_percent: float
    savings_component: float
    utilization_component: float
    runway_component: float
    goals_component: float


@dataclass(frozen=True)
class Insight:
    id: str
    title: str
    detail: str
    severity: RiskLevel


def goals_funded_percent(goals: Sequence[Goal]) -> float:
    if not goals:
        return 0.0
    funded = [
        clamp(finite_or_zero(g.current_amount) / max(finite_or_zero(g.target_amount), 1.0) * 100, 0, 100)
        for g in goals
    ]
    return sum(funded) / len(funded)


def runway_months(inputs: HouseholdInputs) -> float:
    pool = max(
        finite_or_zero(inputs.liquid_reserves)
        + finite_or_zero(inputs.total_assets)
        + finite_or_zero(inputs.monthly_income),
        0.0,
    )
    pressure = (
        finite_or_zero(inputs.monthly_commitments)
        + finite_or_zero(inputs.total_liabilities)
        + finite_or_zero(inputs.purchases_this_month)
    )
    if pressure > 0:
        return pool / pressure
    return 99.0 if pool > 0 else 0.0


def score_household(inputs: HouseholdInputs, goals: Sequence[Goal] = ()) -> HouseholdScore:
    """
    Combine savings, utilization, runway and goal progress into a 0..100 score.

    Parameters
    ----------
    inputs : HouseholdInputs
        Monthly income/commitments and balance-sheet totals.
    goals : sequence of Goal
        Funding progress averages into the goals component.

    Returns
    -------
    HouseholdScore
        The rounded score plus every intermediate figure.
    """
    income = finite_or_zero(inputs.monthly_income)
    net = income - finite_or_zero(inputs.monthly_commitments) - finite_or_zero(inputs.total_loan_balance)
    savings_rate = net / income * 100 if income > 0 else 0.0

    limit = finite_or_zero(inputs.card_limit_total)
    utilization = finite_or_zero(inputs.card_used_total) / limit * 100 if limit > 0 else 0.0

    runway = runway_months(inputs)
    funded = goals_funded_percent(goals)

    savings_c = clamp((savings_rate + 10) * 1.8, 0, 40)
    utilization_c = clamp((35 - utilization) * 0.9, 0, 25)
    runway_c = clamp(runway * 6, 0, 25)
    goals_c = clamp(funded * 0.1, 0, 10)
    score = int(excel_round(clamp(savings_c + utilization_c + runway_c + goals_c, 0, 100), 0))

    return HouseholdScore(
        score=score,
        projected_monthly_net=round2(net),
        savings_rate_percent=round2(savings_rate),
        utilization_percent=round2(utilization),
        runway_months=round2(runway),
        goals_funded_percent=round2(funded),
        savings_component=round2(savings_c),
        utilization_component=round2(utilization_c),
        runway_component=round2(runway_c),
        goals_component=round2(goals_c),
    )


def build_insights(household: HouseholdScore, monthly_income: float, top_category_share: float = 0.0) -> List[Insight]:
    """Severity-tagged dashboard insights, at most six, in a fixed order."""
    out: List[Insight] = []

    if finite_or_zero(monthly_income) <= 0:
        out.append(Insight(
            "income-missing",
            "Income setup needed",
            "Add at least one income source to activate forecasting and runway metrics.",
            RiskLevel.CRITICAL,
        ))

    net = household.projected_monthly_net
    if net < 0:
        out.append(Insight(
            "net-negative",
            "Monthly net is negative",
            "Bills and card spend are above income. Reduce commitments or increase income inputs.",
            RiskLevel.CRITICAL,
        ))
    elif net > 0:
        out.append(Insight(
            "net-positive",
            "Positive monthly net",
            "Current plan projects surplus cash each month. Route this to priorities or goals.",
            RiskLevel.GOOD,
        ))

    utilization = household.utilization_percent
    if utilization >= 70:
        out.append(Insight(
            "utilization-high",
            "High credit utilization",
            "Utilization above 70% increases risk. Target below 30% for healthier balance usage.",
            RiskLevel.CRITICAL,
        ))
    elif utilization >= 35:
        out.append(Insight(
            "utilization-watch",
            "Credit utilization watch",
            "Utilization is elevated. Small principal reductions can quickly improve flexibility.",
            RiskLevel.WARNING,
        ))
    else:
        out.append(Insight(
            "utilization-good",
            "Credit utilization healthy",
            "Card usage is in a healthy band and supports stronger month-to-month resilience.",
            RiskLevel.GOOD,
        ))

    if household.runway_months < 1:
        out.append(Insight(
            "runway-critical",
            "Limited cash runway",
            "Liquid reserves cover less than one month of commitments. Build liquidity buffer next.",
            RiskLevel.CRITICAL,
        ))
    elif household.runway_months < 3:
        out.append(Insight(
            "runway-warning",
            "Runway can be improved",
            "Current liquidity covers under three months. Consider increasing reserve allocation.",
            RiskLevel.WARNING,
        ))

    if top_category_share > 45:
        out.append(Insight(
            "category-concentration",
            "Spending concentration detected",
            "One category dominates this month. Review transactions to reduce concentration risk.",
            RiskLevel.WARNING,
        ))

    if household.goals_funded_percent >= 75:
        out.append(Insight(
            "goals-ahead",
            "Goals are progressing fast",
            "Average goal funding is above 75%. You are ahead of pace on long-term targets.",
            RiskLevel.GOOD,
        ))

    return out[:MAX_INSIGHTS]
