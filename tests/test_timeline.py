"""Tests for the liquidity timeline, upcoming cash events and the overdue heuristic."""

from datetime import date

import pytest

from conftest import make_obligation, monthly
from core.config import EngineConfig
from core.schema import (
    Cadence,
    CustomUnit,
    IncomeStream,
    LiquidAccount,
    ObligationKind,
    ReconciliationRecord,
    RecurrenceRule,
    RiskLevel,
)
from engine.events import find_overdue_obligations, upcoming_cash_events
from engine.timeline import (
    classify_severity,
    liquidity_pool,
    monthly_obligation_baseline,
    project_timeline,
    simulate_timeline,
)
from health.reconciliation import ReconciliationIndex


class TestLiquidityPool:

    def test_only_liquid_accounts_count(self, household_accounts):
        assert liquidity_pool(household_accounts) == 6500.0

    def test_negative_liquid_balances_reduce_pool(self):
        accounts = [
            LiquidAccount(id="a", name="A", balance=100.0),
            LiquidAccount(id="b", name="B", balance=-40.0),
        ]
        assert liquidity_pool(accounts) == 60.0

    def test_baseline_is_cadence_normalized(self, household_obligations):
        assert monthly_obligation_baseline(household_obligations) == pytest.approx(1985.0)


class TestSimulateTimeline:

    def test_conservation(self, household_obligations, household_accounts, today):
        run = simulate_timeline(household_obligations, household_accounts, today=today)
        total = sum(e.amount for e in run.events)
        assert run.starting_pool - total == pytest.approx(run.ending_balance, abs=0.01)
        for prev, cur in zip(run.events, run.events[1:]):
            assert cur.before_balance == prev.after_balance

    def test_events_in_due_order(self, household_obligations, household_accounts, today):
        run = simulate_timeline(household_obligations, household_accounts, today=today)
        dates = [e.due_date for e in run.events]
        assert dates == sorted(dates)
        assert all(e.days_away >= 0 for e in run.events)
        assert all(e.days_away <= 365 for e in run.events)

    def test_first_window(self, household_obligations, household_accounts, today):
        events = project_timeline(household_obligations, household_accounts, 20, today=today)
        assert [(e.obligation_id, e.due_date) for e in events] == [
            ("gym", date(2024, 3, 18)),
            ("power", date(2024, 3, 20)),
            ("gym", date(2024, 3, 25)),
            ("rent", date(2024, 4, 1)),
            ("gym", date(2024, 4, 1)),
        ]
        assert [e.after_balance for e in events] == [6485.0, 6365.0, 6350.0, 4550.0, 4535.0]
        assert all(e.severity == RiskLevel.GOOD for e in events)

    def test_occurrences_are_capped(self, household_obligations, household_accounts, today):
        run = simulate_timeline(household_obligations, household_accounts, today=today)
        gym = [e for e in run.events if e.obligation_id == "gym"]
        assert len(gym) == EngineConfig().max_occurrences

    def test_same_day_autopay_first_then_amount_then_name(self, checking, today):
        due = monthly(date(2024, 1, 1), 20)
        obligations = [
            make_obligation("manual-big", 500.0, due, name="Big"),
            make_obligation("auto-small", 10.0, due, autopay=True, name="Small"),
            make_obligation("manual-b", 50.0, due, name="beta"),
            make_obligation("manual-a", 50.0, due, name="Alpha"),
        ]
        events = project_timeline(obligations, [checking], 10, today=today)
        assert [e.obligation_id for e in events] == ["auto-small", "manual-big", "manual-a", "manual-b"]

    def test_window_is_applied_after_full_walk(self, household_obligations, household_accounts, today):
        full = simulate_timeline(household_obligations, household_accounts, today=today)
        window = project_timeline(household_obligations, household_accounts, 10, today=today)
        assert window == list(full.events[: len(window)])
        assert window == full.window(10)

    def test_shortfall_is_critical(self, today):
        accounts = [LiquidAccount(id="chk", name="Checking", balance=100.0)]
        obligations = [make_obligation("rent", 150.0, monthly(date(2024, 1, 1), 20))]
        run = simulate_timeline(obligations, accounts, today=today, lookahead_days=30)
        assert run.events[0].after_balance == -50.0
        assert run.events[0].severity == RiskLevel.CRITICAL
        assert run.first_shortfall == run.events[0]

    def test_unschedulable_obligations_are_excluded(self, checking, today):
        broken = RecurrenceRule(Cadence.CUSTOM, date(2024, 1, 1), custom_interval=0, custom_unit=CustomUnit.DAYS)
        obligations = [
            make_obligation("broken", 999.0, broken),
            make_obligation("power", 120.0, monthly(date(2024, 1, 1), 20)),
        ]
        run = simulate_timeline(obligations, [checking], today=today, lookahead_days=30)
        assert run.excluded_obligation_ids == ("broken",)
        assert {e.obligation_id for e in run.events} == {"power"}

    def test_negative_amounts_are_zeroed(self, checking, today):
        obligations = [make_obligation("refund", -50.0, monthly(date(2024, 1, 1), 20))]
        run = simulate_timeline(obligations, [checking], today=today, lookahead_days=10)
        assert run.events[0].amount == 0.0
        assert run.ending_balance == 2500.0

    def test_negative_horizon_rejected(self, household_obligations, household_accounts, today):
        with pytest.raises(ValueError):
            project_timeline(household_obligations, household_accounts, -1, today=today)
        with pytest.raises(ValueError):
            simulate_timeline(household_obligations, household_accounts, today=today, lookahead_days=-5)

    def test_dataframe(self, household_obligations, household_accounts, today):
        run = simulate_timeline(household_obligations, household_accounts, today=today)
        df = run.to_dataframe(window_days=20)
        assert len(df) == 5
        assert list(df["severity"].unique()) == ["good"]
        assert df["after_balance"].iloc[-1] == 4535.0


class TestClassifySeverity:

    def test_thresholds(self):
        assert classify_severity(-0.01, 100.0, 0.0) == RiskLevel.CRITICAL
        assert classify_severity(124.99, 100.0, 0.0) == RiskLevel.WARNING
        assert classify_severity(125.0, 100.0, 0.0) == RiskLevel.GOOD

    def test_baseline_fraction_raises_the_bar(self):
        assert classify_severity(400.0, 10.0, 2000.0) == RiskLevel.WARNING
        assert classify_severity(500.0, 10.0, 2000.0) == RiskLevel.GOOD


class TestUpcomingCashEvents:

    def test_signed_and_ordered(self, household_obligations, today):
        incomes = [IncomeStream(id="pay", source="Salary", amount=3000.0, recurrence=monthly(date(2024, 1, 1), 1))]
        events = upcoming_cash_events(incomes, household_obligations, today=today, horizon_days=20)
        assert [(e.id, e.amount, e.days_away) for e in events] == [
            ("bill-gym", -15.0, 3),
            ("bill-power", -120.0, 5),
            ("bill-rent", -1800.0, 17),
            ("income-pay", 3000.0, 17),
        ]

    def test_loan_label_and_limit(self, today):
        obligations = [
            make_obligation("auto", 250.0, monthly(date(2024, 1, 1), 18), name="Car", kind=ObligationKind.LOAN),
            make_obligation("power", 120.0, monthly(date(2024, 1, 1), 20)),
        ]
        events = upcoming_cash_events([], obligations, today=today, limit=1)
        assert len(events) == 1
        assert events[0].label == "Car payment"
        assert events[0].event_type == "loan"

    def test_horizon_excludes_far_events(self, today):
        yearly = RecurrenceRule(Cadence.YEARLY, date(2023, 12, 1), day_of_month=1)
        events = upcoming_cash_events([], [make_obligation("insurance", 600.0, yearly)], today=today)
        assert events == []


class TestOverdue:

    def test_manual_obligation_past_due(self, household_obligations, today):
        overdue = find_overdue_obligations(household_obligations, today=today)
        assert [(o.obligation_id, o.due_date, o.cycle_key, o.days_overdue) for o in overdue] == [
            ("power", date(2024, 2, 20), "2024-02", 24),
        ]

    def test_reconciled_cycle_is_not_overdue(self, household_obligations, today):
        index = ReconciliationIndex.build(
            [ReconciliationRecord("power", "2024-02", 120.0, 0.0, True, 1.0)]
        )
        assert find_overdue_obligations(household_obligations, today=today, reconciliations=index) == []

    def test_due_today_is_not_overdue(self, today):
        obligations = [make_obligation("water", 40.0, monthly(date(2024, 1, 1), 15))]
        overdue = find_overdue_obligations(obligations, today=today)
        assert overdue[0].due_date == date(2024, 2, 15)

    def test_lookback_limit(self, today):
        yearly = RecurrenceRule(Cadence.YEARLY, date(2023, 6, 1), day_of_month=1)
        assert find_overdue_obligations([make_obligation("tax", 900.0, yearly)], today=today) == []

    def test_lookback_override(self, household_obligations, today):
        assert find_overdue_obligations(household_obligations, today=today, lookback_days=20) == []
        yearly = RecurrenceRule(Cadence.YEARLY, date(2023, 6, 1), day_of_month=1)
        overdue = find_overdue_obligations([make_obligation("tax", 900.0, yearly)], today=today, lookback_days=365)
        assert [o.due_date for o in overdue] == [date(2023, 6, 1)]
