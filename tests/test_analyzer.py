from datetime import date
from decimal import Decimal

from budget_engine import FinanceAnalyzer

sample_transactions = [
    {"transaction_date": "2025-10-02", "amount": -250.0, "type": "debit", "category_id": "food", "account_id": "a1"},
    {"transaction_date": "2025-10-05", "amount": -100.0, "type": "debit", "category_id": "rent", "account_id": "a1"},
    {"transaction_date": "2025-10-09", "amount": -150.0, "type": "debit", "category_id": "food", "account_id": "a2"},
    {"transaction_date": "2025-10-10", "amount": 2000.0, "type": "credit", "category_id": "salary", "account_id": "a1"},
    {"transaction_date": "2025-10-11", "amount": -300.0, "type": "transfer", "category_id": "food", "account_id": "a1"},
    {"transaction_date": "2025-11-01", "amount": -75.0, "type": "debit", "category_id": "food", "account_id": "a1"},
]

sample_debts = [
    {"debt_id": "d1", "debt_type": "credit_card", "current_balance": 2000, "interest_rate": 20,
     "minimum_payment": 100, "payment_frequency": "monthly", "status": "active"},
    {"debt_id": "d2", "debt_type": "car_loan", "current_balance": 8000, "interest_rate": 5,
     "minimum_payment": 120, "payment_frequency": "biweekly", "status": "active"},
    {"debt_id": "d3", "debt_type": "personal", "current_balance": 0, "interest_rate": 0,
     "minimum_payment": 50, "payment_frequency": "monthly", "status": "paid_off"},
]


def test_spent_counts_debits_only():
    analyzer = FinanceAnalyzer()
    spent = analyzer.spent_for_period(sample_transactions, date(2025, 10, 1), date(2025, 10, 31))
    assert spent == Decimal("500.00")


def test_spent_respects_category_and_account_filters():
    analyzer = FinanceAnalyzer()
    window = (date(2025, 10, 1), date(2025, 10, 31))
    assert analyzer.spent_for_period(sample_transactions, *window, category_ids=["food"]) == Decimal("400.00")
    assert analyzer.spent_for_period(
        sample_transactions, *window, category_ids=["food"], account_ids=["a2"]
    ) == Decimal("150.00")


def test_budget_progress_and_alerts():
    analyzer = FinanceAnalyzer()
    budget = {"budget_id": "b1", "name": "Food", "period": "monthly", "alert_threshold": 80}
    period = {"allocated_amount": 450, "period_label": "October 2025", "period_start": "2025-10-01"}

    progress = analyzer.budget_progress(budget, period, Decimal("400.00"))
    assert progress.progress == 88.9
    assert progress.remaining == 50.0
    assert not progress.over_budget

    alerts = analyzer.budget_alerts([progress])
    assert [a["type"] for a in alerts] == ["approaching_budget"]


def test_exceeded_budget_alert():
    analyzer = FinanceAnalyzer()
    budget = {"budget_id": "b1", "name": "Food", "period": "monthly"}
    progress = analyzer.budget_progress(budget, {"allocated_amount": 300}, 400)
    alerts = analyzer.budget_alerts([progress])
    assert alerts[0]["type"] == "budget_exceeded"
    assert alerts[0]["over_amount"] == 100.0


def test_good_progress_when_everything_is_comfortable():
    analyzer = FinanceAnalyzer()
    budget = {"budget_id": "b1", "name": "Food", "period": "monthly"}
    progress = analyzer.budget_progress(budget, {"allocated_amount": 500}, 100)
    assert [a["type"] for a in analyzer.budget_alerts([progress])] == ["good_progress"]


def test_debt_summary():
    analyzer = FinanceAnalyzer()
    payments = [
        {"payment_date": "2025-02-01", "interest_amount": 30},
        {"payment_date": "2024-12-01", "interest_amount": 40},
    ]
    summary = analyzer.debt_summary(sample_debts, payments, date(2025, 10, 1))

    assert summary["total_debt"] == 10000.0
    assert summary["active_debt_count"] == 2
    assert summary["total_monthly_payments"] == 360.0  # 100 + 120 * 26 / 12
    assert summary["avg_interest_rate"] == 8.0
    assert summary["projected_annual_interest"] == 800.0
    assert summary["total_interest_paid_ytd"] == 30.0
    assert summary["debt_by_rate"] == {"low": 0, "medium": 1, "high": 0, "very_high": 1}
    assert summary["highest_interest_debt"]["debt_id"] == "d1"
    assert summary["largest_debt"]["debt_id"] == "d2"
