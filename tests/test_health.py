"""Tests for reconciliation indexing, account scoring, autopay risk and the household score."""

from datetime import date

import pytest

from conftest import make_obligation, monthly
from core.schema import (
    AccountBalances,
    AccountType,
    AutopayRisk,
    Goal,
    HealthStatus,
    LiquidAccount,
    ReconciliationRecord,
    RiskLevel,
)
from health.autopay import assess_autopay_risk, classify_autopay
from health.household import HouseholdInputs, build_insights, runway_months, score_household
from health.reconciliation import ReconciliationIndex
from health.scoring import (
    NOTE_LARGE_DELTA,
    NOTE_NO_RECONCILIATION,
    NOTE_OVERDRAWN,
    NOTE_PENDING_STRESS,
    NOTE_STABLE,
    NOTE_UNRECONCILED,
    score_account,
    score_accounts,
    status_for_score,
)


def rec(entity_id, key, *, delta=0.0, reconciled=True, updated_at=1.0):
    return ReconciliationRecord(
        entity_id=entity_id,
        cycle_key=key,
        expected_amount=100.0,
        unmatched_delta=delta,
        reconciled=reconciled,
        updated_at=updated_at,
    )


class TestReconciliationIndex:

    def test_latest_edit_wins_per_cycle(self):
        index = ReconciliationIndex.build([
            rec("chk", "2024-03", reconciled=False, updated_at=1.0),
            rec("chk", "2024-03", reconciled=True, updated_at=5.0),
            rec("chk", "2024-03", reconciled=False, updated_at=3.0),
        ])
        assert index.is_reconciled("chk", "2024-03")
        assert len(index) == 1

    def test_ties_keep_first_seen(self):
        index = ReconciliationIndex.build([
            rec("chk", "2024-03", delta=1.0, updated_at=2.0),
            rec("chk", "2024-03", delta=9.0, updated_at=2.0),
        ])
        assert index.get("chk", "2024-03").unmatched_delta == 1.0

    def test_latest_cycle_per_entity(self):
        index = ReconciliationIndex.build([
            rec("chk", "2024-01"),
            rec("chk", "2024-03"),
            rec("chk", "2023-12"),
            rec("sav", "2024-02"),
        ])
        assert index.latest_for("chk").cycle_key == "2024-03"
        assert index.latest_for("sav").cycle_key == "2024-02"
        assert index.latest_for("nope") is None
        assert set(index.entity_ids()) == {"chk", "sav"}


class TestAccountScore:

    def test_overdrawn_debt_account(self, today):
        account = LiquidAccount(id="loc", name="Line of credit", balance=-50.0, account_type=AccountType.DEBT)
        score = score_account(account, AccountBalances(ledger=-50.0, available=-50.0), None, today=today)
        assert score.score == 9
        assert score.status == HealthStatus.CRITICAL
        assert score.note == NOTE_OVERDRAWN

    def test_clean_current_reconciliation_is_capped_at_100(self, checking, today):
        score = score_account(checking, AccountBalances(ledger=2500.0), rec("chk", "2024-03"), today=today)
        assert score.score == 100
        assert score.status == HealthStatus.HEALTHY
        assert score.note == NOTE_STABLE

    def test_unreconciled_current_cycle(self, checking, today):
        score = score_account(
            checking, AccountBalances(ledger=2500.0), rec("chk", "2024-03", reconciled=False), today=today
        )
        assert score.score == 86
        assert score.note == NOTE_UNRECONCILED

    def test_stale_cycle_with_delta(self, checking, today):
        score = score_account(checking, AccountBalances(ledger=2500.0), rec("chk", "2024-01", delta=-30.0), today=today)
        assert score.score == 82
        assert score.note == NOTE_LARGE_DELTA
        assert [a.reason for a in score.adjustments] == ["stale_cycle", "delta_at_least_25"]

    def test_pending_stress(self, checking, today):
        score = score_account(checking, AccountBalances(ledger=1000.0, pending=-300.0), None, today=today)
        assert score.score == 80
        assert score.note == NOTE_PENDING_STRESS

    def test_illiquid_low_balance(self, today):
        account = LiquidAccount(id="hsa", name="HSA", balance=200.0, is_liquid=False)
        score = score_account(account, AccountBalances(ledger=200.0), None, today=today)
        assert score.score == 70
        assert score.status == HealthStatus.WATCH
        assert score.note == NOTE_NO_RECONCILIATION

    @pytest.mark.parametrize(
        "balances",
        [
            AccountBalances(ledger=-1e12, pending=-1e12),
            AccountBalances(ledger=0.0, pending=-1e9, available=float("nan")),
            AccountBalances(ledger=1e12, pending=1e12),
        ],
    )
    def test_score_stays_in_bounds(self, balances, today):
        account = LiquidAccount(id="x", name="X", balance=0.0, is_liquid=False, account_type=AccountType.DEBT)
        for latest in (None, rec("x", "1999-01", delta=1e9, reconciled=False)):
            score = score_account(account, balances, latest, today=today)
            assert 0 <= score.score <= 100

    @pytest.mark.parametrize("value,status", [(75, HealthStatus.HEALTHY), (74, HealthStatus.WATCH), (50, HealthStatus.WATCH), (49, HealthStatus.CRITICAL)])
    def test_status_tiers(self, value, status):
        assert status_for_score(value) == status

    def test_score_accounts_uses_index_and_ledger_default(self, household_accounts, today):
        index = ReconciliationIndex.build([rec("chk", "2024-03")])
        scores = score_accounts(household_accounts, index, today=today, balances={"sav": AccountBalances(ledger=100.0)})
        assert set(scores) == {"chk", "sav", "brk"}
        assert scores["chk"].score == 100
        assert scores["sav"].score == 100 - 28 - 8
        assert scores["brk"].note == NOTE_NO_RECONCILIATION


class TestAutopayRisk:

    def test_short_balance_is_critical(self, today):
        accounts = [LiquidAccount(id="chk", name="Checking", balance=100.0)]
        obligations = [make_obligation("card", 150.0, monthly(date(2024, 1, 1), 25), autopay=True, linked_account_id="chk")]
        [alert] = assess_autopay_risk(obligations, accounts, today=today)
        assert alert.days_away == 10
        assert alert.projected_before_due == 100.0
        assert alert.risk == AutopayRisk.CRITICAL
        assert alert.linked_account_name == "Checking"

    def test_thin_cover_is_warning(self):
        assert classify_autopay(180.0, 150.0) == AutopayRisk.WARNING
        assert classify_autopay(187.5, 150.0) == AutopayRisk.GOOD
        assert classify_autopay(149.99, 150.0) == AutopayRisk.CRITICAL

    def test_earlier_drafts_reduce_projection(self, today):
        accounts = [LiquidAccount(id="chk", name="Checking", balance=1000.0)]
        obligations = [
            make_obligation("second", 600.0, monthly(date(2024, 1, 1), 25), autopay=True, linked_account_id="chk"),
            make_obligation("first", 600.0, monthly(date(2024, 1, 1), 20), autopay=True, linked_account_id="chk"),
        ]
        alerts = assess_autopay_risk(obligations, accounts, today=today)
        assert [(a.obligation_id, a.projected_before_due, a.risk) for a in alerts] == [
            ("first", 1000.0, AutopayRisk.GOOD),
            ("second", 400.0, AutopayRisk.CRITICAL),
        ]

    def test_unlinked_and_unknown_accounts(self, checking, today):
        obligations = [
            make_obligation("stream", 12.0, monthly(date(2024, 1, 1), 18), autopay=True),
            make_obligation("gone", 40.0, monthly(date(2024, 1, 1), 19), autopay=True, linked_account_id="closed"),
        ]
        alerts = assess_autopay_risk(obligations, [checking], today=today)
        assert [a.risk for a in alerts] == [AutopayRisk.UNLINKED, AutopayRisk.UNLINKED]
        assert all(a.projected_before_due is None for a in alerts)
        assert alerts[1].linked_account_id == "closed"

    def test_manual_and_far_obligations_are_ignored(self, checking, today):
        obligations = [
            make_obligation("manual", 50.0, monthly(date(2024, 1, 1), 20), linked_account_id="chk"),
            make_obligation("far", 50.0, monthly(date(2024, 1, 1), 20), autopay=True, linked_account_id="chk"),
        ]
        assert [a.obligation_id for a in assess_autopay_risk(obligations, [checking], today=today)] == ["far"]
        assert assess_autopay_risk(obligations, [checking], today=today, horizon_days=3) == []


class TestHouseholdScore:

    def healthy(self, **overrides):
        base = dict(
            monthly_income=5000.0,
            monthly_commitments=2000.0,
            liquid_reserves=6000.0,
            total_liabilities=500.0,
        )
        base.update(overrides)
        return HouseholdInputs(**base)

    def test_healthy_household(self):
        goals = [Goal(id="g", name="Trip", current_amount=500.0, target_amount=1000.0)]
        result = score_household(self.healthy(), goals)
        assert result.savings_component == 40.0
        assert result.utilization_component == 25.0
        assert result.runway_component == 25.0
        assert result.goals_component == 5.0
        assert result.score == 95
        assert result.projected_monthly_net == 3000.0
        assert result.runway_months == 4.4

    def test_empty_household(self):
        result = score_household(HouseholdInputs(monthly_income=0.0, monthly_commitments=0.0))
        assert result.savings_rate_percent == 0.0
        assert result.runway_months == 0.0
        assert result.score == 43

    def test_loan_balance_drags_net(self):
        result = score_household(self.healthy(monthly_commitments=1000.0, total_loan_balance=10000.0))
        assert result.projected_monthly_net == -6000.0
        assert result.savings_component == 0.0

    def test_no_pressure_runway(self):
        assert runway_months(HouseholdInputs(monthly_income=100.0, monthly_commitments=0.0)) == 99.0

    @pytest.mark.parametrize("income", [0.0, 1.0, 1e9, float("nan")])
    def test_score_bounds(self, income):
        result = score_household(self.healthy(monthly_income=income, card_used_total=1e9, card_limit_total=1.0))
        assert 0 <= result.score <= 100


class TestInsights:

    def test_empty_household_insights(self):
        household = score_household(HouseholdInputs(monthly_income=0.0, monthly_commitments=0.0))
        ids = [i.id for i in build_insights(household, 0.0)]
        assert ids == ["income-missing", "utilization-good", "runway-critical"]

    def test_healthy_household_insights(self):
        household = score_household(HouseholdInputs(monthly_income=5000.0, monthly_commitments=2000.0, liquid_reserves=6000.0))
        insights = build_insights(household, 5000.0, top_category_share=60.0)
        assert [i.id for i in insights] == ["net-positive", "utilization-good", "category-concentration"]
        assert insights[0].severity == RiskLevel.GOOD

    def test_capped_at_six(self):
        household = score_household(
            HouseholdInputs(monthly_income=0.0, monthly_commitments=100.0, card_used_total=80.0, card_limit_total=100.0),
            [Goal(id="g", name="Fund", current_amount=90.0, target_amount=100.0)],
        )
        insights = build_insights(household, 0.0, top_category_share=50.0)
        assert [i.id for i in insights] == [
            "income-missing",
            "net-negative",
            "utilization-high",
            "runway-critical",
            "category-concentration",
            "goals-ahead",
        ]
