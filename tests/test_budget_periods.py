from datetime import date

import pytest

from app.db import dynamo
from app.utils import budget_periods
from app.utils.budget_periods import (
    BudgetPeriodError,
    cancel_active_period,
    change_budget_period_type,
    find_budgets_needing_reset,
    force_reset_budget_period,
    get_budget_progress,
    initialize_budget_period,
    reallocate_active_period,
    reset_budget_period,
    run_budget_resets,
)

USER_ID = "user-123"


def _statuses(fake_db, budget_id):
    return [p["status"] for p in fake_db.list_budget_periods(budget_id)]


def test_initialize_opens_first_period_and_stamps_budget(fake_db, make_budget):
    budget = make_budget()
    period = initialize_budget_period(budget, today=date(2025, 10, 10))

    assert period["period_label"] == "October 2025"
    assert period["period_end"] == date(2025, 10, 31)
    stored = fake_db.get_budget(USER_ID, budget["budget_id"])
    assert stored["current_period_start"] == "2025-10-01"
    assert stored["next_reset_date"] == "2025-11-01"


def test_initialize_with_old_start_date_opens_window_containing_today(fake_db, make_budget):
    budget = make_budget(period="weekly", start_date=date(2025, 10, 6))
    period = initialize_budget_period(budget, today=date(2025, 10, 22))
    assert period["period_start"] == date(2025, 10, 20)
    assert _statuses(fake_db, budget["budget_id"]) == ["active"]


def test_find_budgets_needing_reset(fake_db, make_budget):
    budget = make_budget()
    initialize_budget_period(budget, today=date(2025, 10, 10))

    assert find_budgets_needing_reset(date(2025, 10, 31)) == []
    due = find_budgets_needing_reset(date(2025, 11, 1))
    assert [b["budget_id"] for b in due] == [budget["budget_id"]]


def test_one_time_budget_is_never_due(fake_db, make_budget):
    budget = make_budget(period="one-time", end_date=date(2025, 12, 31))
    initialize_budget_period(budget, today=date(2025, 10, 10))

    assert fake_db.get_budget(USER_ID, budget["budget_id"])["next_reset_date"] is None
    assert find_budgets_needing_reset(date(2026, 6, 1)) == []
    with pytest.raises(BudgetPeriodError):
        reset_budget_period(budget, today=date(2026, 1, 1))


def test_reset_completes_period_and_rolls_unused_amount(fake_db, make_budget, add_transaction):
    budget = make_budget(rollover_strategy="full")
    initialize_budget_period(budget, today=date(2025, 10, 1))
    add_transaction(date(2025, 10, 5), -120.0)
    add_transaction(date(2025, 10, 6), -999.0, category_id="travel")
    add_transaction(date(2025, 10, 7), 50.0, type="credit")

    new_period = reset_budget_period(budget, today=date(2025, 11, 1))

    completed = [p for p in fake_db.list_budget_periods(budget["budget_id"]) if p["status"] == "completed"]
    assert len(completed) == 1
    assert completed[0]["spent_amount"] == 120
    assert completed[0]["completed_at"]

    assert new_period["period_label"] == "November 2025"
    assert new_period["rollover_amount"] == 380
    assert new_period["allocated_amount"] == 880
    assert fake_db.get_budget(USER_ID, budget["budget_id"])["next_reset_date"] == "2025-12-01"


def test_reset_before_period_end_changes_nothing(fake_db, make_budget):
    budget = make_budget()
    initialize_budget_period(budget, today=date(2025, 10, 1))
    reset_budget_period(budget, today=date(2025, 10, 20))
    assert _statuses(fake_db, budget["budget_id"]) == ["active"]


def test_reset_catches_up_missed_periods_with_chained_rollover(fake_db, make_budget):
    budget = make_budget(
        period="weekly",
        amount=100.0,
        start_date=date(2025, 10, 6),
        rollover_strategy="capped",
        rollover_limit=50.0,
    )
    initialize_budget_period(budget, today=date(2025, 10, 6))

    current = reset_budget_period(budget, today=date(2025, 10, 27))

    periods = fake_db.list_budget_periods(budget["budget_id"])
    assert [p["status"] for p in periods] == ["active", "completed", "completed", "completed"]
    assert current["period_start"] == date(2025, 10, 27)
    assert [p["allocated_amount"] for p in reversed(periods)] == [100, 150, 150, 150]
    assert fake_db.get_budget(USER_ID, budget["budget_id"])["next_reset_date"] == "2025-11-03"


def test_force_reset_closes_today_and_starts_tomorrow(fake_db, make_budget, add_transaction):
    budget = make_budget(rollover_strategy="partial", rollover_percentage=50.0)
    initialize_budget_period(budget, today=date(2025, 10, 1))
    add_transaction(date(2025, 10, 3), -100.0)
    add_transaction(date(2025, 10, 20), -60.0)

    period = force_reset_budget_period(budget, today=date(2025, 10, 15))

    closed = [p for p in fake_db.list_budget_periods(budget["budget_id"]) if p["status"] == "completed"][0]
    assert closed["period_end"] == "2025-10-15"
    assert closed["spent_amount"] == 100
    assert period["period_start"] == date(2025, 10, 16)
    assert period["period_end"] == date(2025, 10, 31)
    assert period["rollover_amount"] == 200


def test_force_reset_of_future_period_is_rejected(fake_db, make_budget):
    budget = make_budget(start_date=date(2025, 12, 1))
    initialize_budget_period(budget, today=date(2025, 10, 10))
    with pytest.raises(BudgetPeriodError):
        force_reset_budget_period(budget, today=date(2025, 10, 10))


def test_cancel_active_period(fake_db, make_budget):
    budget = make_budget()
    initialize_budget_period(budget, today=date(2025, 10, 1))
    cancel_active_period(budget, today=date(2025, 10, 12))

    period = fake_db.list_budget_periods(budget["budget_id"])[0]
    assert period["status"] == "cancelled"
    assert period["period_end"] == "2025-10-12"


def test_reallocate_keeps_rollover(fake_db, make_budget, add_transaction):
    budget = make_budget(rollover_strategy="full")
    initialize_budget_period(budget, today=date(2025, 10, 1))
    add_transaction(date(2025, 10, 5), -120.0)
    reset_budget_period(budget, today=date(2025, 11, 1))

    budget = fake_db.update_budget(USER_ID, budget["budget_id"], {"amount": 600.0})
    period = reallocate_active_period(budget)
    assert period["base_amount"] == 600
    assert period["allocated_amount"] == 980


def test_progress_for_active_period(fake_db, make_budget, add_transaction):
    budget = make_budget(amount=200.0)
    initialize_budget_period(budget, today=date(2025, 10, 1))
    add_transaction(date(2025, 10, 2), -170.0)

    progress = get_budget_progress(budget)
    assert progress.spent == 170.0
    assert progress.progress == 85.0


def test_run_budget_resets_isolates_failures(fake_db, make_budget, monkeypatch):
    healthy = make_budget(name="Healthy")
    broken = make_budget(name="Broken")
    for budget in (healthy, broken):
        initialize_budget_period(budget, today=date(2025, 10, 1))

    original_reset = budget_periods.reset_budget_period

    def flaky_reset(budget, today=None):
        if budget["name"] == "Broken":
            raise BudgetPeriodError("simulated write failure")
        return original_reset(budget, today)

    monkeypatch.setattr(budget_periods, "reset_budget_period", flaky_reset)
    result = run_budget_resets(today=date(2025, 11, 1))

    assert result["total_budgets"] == 2
    assert result["successful"] == 1
    assert result["failed"] == 1
    assert result["errors"][0]["budget_id"] == broken["budget_id"]
    assert _statuses(fake_db, healthy["budget_id"]) == ["active", "completed"]
    assert _statuses(fake_db, broken["budget_id"]) == ["active"]


def test_failed_open_leaves_current_period_active(fake_db, make_budget, monkeypatch):
    budget = make_budget()
    initialize_budget_period(budget, today=date(2025, 10, 1))
    monkeypatch.setattr(dynamo, "put_budget_period", lambda item: False)

    with pytest.raises(BudgetPeriodError):
        reset_budget_period(budget, today=date(2025, 11, 1))

    periods = fake_db.list_budget_periods(budget["budget_id"])
    assert len(periods) == 1
    assert periods[0]["status"] == "active"
    assert periods[0]["completed_at"] is None


def test_manual_reset_of_overdue_budget_catches_up_first(fake_db, make_budget, add_transaction):
    budget = make_budget()
    initialize_budget_period(budget, today=date(2025, 10, 10))
    add_transaction(date(2025, 10, 5), -100.0)
    add_transaction(date(2025, 11, 20), -50.0)

    period = force_reset_budget_period(budget, today=date(2025, 12, 10))

    periods = fake_db.list_budget_periods(budget["budget_id"])
    assert [p["period_label"] for p in periods] == [
        "December 2025", "December 2025", "November 2025", "October 2025"
    ]
    assert [p["status"] for p in periods] == ["active", "completed", "completed", "completed"]
    assert [p["period_end"] for p in periods[1:]] == ["2025-12-10", "2025-11-30", "2025-10-31"]
    assert [p["spent_amount"] for p in periods[1:]] == [0, 50, 100]
    assert period["period_start"] == date(2025, 12, 11)
    assert fake_db.get_budget(USER_ID, budget["budget_id"])["next_reset_date"] == "2026-01-01"


def test_switch_to_one_time_opens_open_ended_period(fake_db, make_budget):
    budget = make_budget()
    initialize_budget_period(budget, today=date(2025, 10, 1))

    period = change_budget_period_type({**budget, "period": "one-time"}, budget, today=date(2025, 10, 15))

    assert period["period_start"] == date(2025, 10, 16)
    assert period["period_end"] is None
    assert period["period_label"] == "From Oct 16, 2025"
    assert fake_db.get_budget(USER_ID, budget["budget_id"])["next_reset_date"] is None
    assert find_budgets_needing_reset(date(2026, 6, 1)) == []


def test_switch_to_one_time_with_end_date(fake_db, make_budget):
    budget = make_budget()
    initialize_budget_period(budget, today=date(2025, 10, 1))

    changed = {**budget, "period": "one-time", "end_date": date(2025, 12, 31)}
    period = change_budget_period_type(changed, budget, today=date(2025, 10, 15))

    assert period["period_end"] == date(2025, 12, 31)
    assert period["period_label"] == "Oct 16, 2025 – Dec 31, 2025"


def test_switch_to_one_time_ending_today_is_rejected(fake_db, make_budget):
    budget = make_budget()
    initialize_budget_period(budget, today=date(2025, 10, 1))

    changed = {**budget, "period": "one-time", "end_date": date(2025, 10, 15)}
    with pytest.raises(BudgetPeriodError):
        change_budget_period_type(changed, budget, today=date(2025, 10, 15))
    assert _statuses(fake_db, budget["budget_id"]) == ["active"]


def test_switch_from_one_time_to_monthly(fake_db, make_budget):
    budget = make_budget(period="one-time", end_date=date(2025, 12, 31))
    initialize_budget_period(budget, today=date(2025, 10, 10))

    period = change_budget_period_type({**budget, "period": "monthly"}, budget, today=date(2025, 10, 15))

    closed = fake_db.list_budget_periods(budget["budget_id"])[1]
    assert closed["status"] == "completed"
    assert closed["period_end"] == "2025-10-15"
    assert period["period_label"] == "October 2025"
    assert period["period_end"] == date(2025, 10, 31)
    assert fake_db.get_budget(USER_ID, budget["budget_id"])["next_reset_date"] == "2025-11-01"


def test_overdue_type_change_rebuilds_missed_periods_with_old_type(fake_db, make_budget):
    budget = make_budget()
    initialize_budget_period(budget, today=date(2025, 10, 1))

    period = change_budget_period_type({**budget, "period": "weekly"}, budget, today=date(2025, 11, 12))

    periods = fake_db.list_budget_periods(budget["budget_id"])
    assert [p["period_label"] for p in periods] == ["Week of Nov 13, 2025", "November 2025", "October 2025"]
    assert periods[1]["period_end"] == "2025-11-12"
    assert period["period_end"] == date(2025, 11, 19)
