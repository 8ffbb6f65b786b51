from datetime import date

import pytest

from app.db import dynamo
from app.models.budget import BudgetInDB
from budget_engine.periods import as_date

USER_ID = "user-123"


def _stored(item):
    # Same type coercion a DynamoDB round trip applies.
    return dynamo._from_dynamo(dynamo._convert_for_dynamo(dict(item)))


class FakeDynamo:
    """In-memory stand-in for the functions of app.db.dynamo."""

    def __init__(self):
        self.users = {}
        self.budgets = {}
        self.periods = {}
        self.transactions = {}
        self.debts = {}
        self.payments = {}

    # generic helpers
    @staticmethod
    def _update(store, key, updates):
        if key not in store:
            return None
        store[key] = {**store[key], **_stored(updates)}
        return dict(store[key])

    # budgets
    def put_budget(self, item):
        self.budgets[(item["user_id"], item["budget_id"])] = _stored(item)
        return True

    def get_budget(self, user_id, budget_id):
        item = self.budgets.get((user_id, budget_id))
        return dict(item) if item else None

    def list_budgets(self, user_id):
        return [dict(b) for (uid, _), b in self.budgets.items() if uid == user_id]

    def update_budget(self, user_id, budget_id, updates):
        return self._update(self.budgets, (user_id, budget_id), updates)

    def delete_budget(self, user_id, budget_id):
        return self.budgets.pop((user_id, budget_id), None) is not None

    def scan_budgets_due_for_reset(self, today):
        return [
            dict(b)
            for b in self.budgets.values()
            if b.get("is_active") and b.get("next_reset_date") and as_date(b["next_reset_date"]) <= today
        ]

    # periods
    def put_budget_period(self, item):
        self.periods[(item["budget_id"], item["period_id"])] = _stored(item)
        return True

    def list_budget_periods(self, budget_id):
        periods = [dict(p) for (bid, _), p in self.periods.items() if bid == budget_id]
        return sorted(periods, key=lambda p: p["period_id"], reverse=True)

    def get_active_budget_period(self, budget_id):
        for period in self.list_budget_periods(budget_id):
            if period["status"] == "active":
                return period
        return None

    def update_budget_period(self, budget_id, period_id, updates):
        return self._update(self.periods, (budget_id, period_id), updates)

    # transactions
    def put_transaction(self, item):
        self.transactions[(item["user_id"], item["transaction_id"])] = _stored(item)
        return True

    def get_transaction(self, user_id, transaction_id):
        item = self.transactions.get((user_id, transaction_id))
        return dict(item) if item else None

    def get_transactions_for_user(self, user_id, start=None, end=None):
        results = []
        for (uid, _), txn in sorted(self.transactions.items()):
            txn_date = as_date(txn["transaction_date"])
            if uid != user_id or (start and txn_date < start) or (end and txn_date > end):
                continue
            results.append(dict(txn))
        return results

    def update_transaction(self, user_id, transaction_id, updates):
        return self._update(self.transactions, (user_id, transaction_id), updates)

    def delete_transaction(self, user_id, transaction_id):
        return self.transactions.pop((user_id, transaction_id), None) is not None

    # debts
    def put_debt(self, item):
        self.debts[(item["user_id"], item["debt_id"])] = _stored(item)
        return True

    def get_debt(self, user_id, debt_id):
        item = self.debts.get((user_id, debt_id))
        return dict(item) if item else None

    def list_debts(self, user_id, status=None):
        return [
            dict(d)
            for (uid, _), d in self.debts.items()
            if uid == user_id and (status is None or d.get("status") == status)
        ]

    def update_debt(self, user_id, debt_id, updates):
        return self._update(self.debts, (user_id, debt_id), updates)

    def delete_debt(self, user_id, debt_id):
        return self.debts.pop((user_id, debt_id), None) is not None

    def scan_active_debts_due_between(self, start, end):
        return [
            dict(d)
            for d in self.debts.values()
            if d.get("status") == "active"
            and d.get("next_due_date")
            and start <= as_date(d["next_due_date"]) <= end
        ]

    # debt payments
    def put_debt_payment(self, item):
        self.payments[(item["debt_id"], item["payment_id"])] = _stored(item)
        return True

    def get_debt_payment(self, debt_id, payment_id):
        item = self.payments.get((debt_id, payment_id))
        return dict(item) if item else None

    def list_debt_payments(self, debt_id):
        payments = [dict(p) for (did, _), p in self.payments.items() if did == debt_id]
        return sorted(payments, key=lambda p: (p["payment_date"], p["created_at"]), reverse=True)

    def update_debt_payment(self, debt_id, payment_id, updates):
        return self._update(self.payments, (debt_id, payment_id), updates)

    def delete_debt_payment(self, debt_id, payment_id):
        return self.payments.pop((debt_id, payment_id), None) is not None

    def delete_debt_payments(self, debt_id):
        for key in [k for k in self.payments if k[0] == debt_id]:
            del self.payments[key]
        return True

    # users
    def get_notification_settings(self, user_id):
        user = self.users.get(user_id)
        if not user:
            return None
        return {
            "email": user.get("email"),
            "debt_reminders_enabled": user.get("debt_reminders_enabled", True),
            "debt_reminder_days_before": user.get("debt_reminder_days_before", 3),
        }

    def save_notification_settings(self, user_id, preferences):
        self.users[user_id] = {**self.users.get(user_id, {}), **_stored(preferences), "user_id": user_id}
        return True


FAKED_FUNCTIONS = [
    name
    for name in vars(FakeDynamo)
    if not name.startswith("_") and callable(getattr(FakeDynamo, name))
]


@pytest.fixture
def fake_db(monkeypatch):
    fake = FakeDynamo()
    for name in FAKED_FUNCTIONS:
        monkeypatch.setattr(dynamo, name, getattr(fake, name))
    return fake


@pytest.fixture
def make_budget(fake_db):
    def _make(**overrides):
        data = {
            "name": "Groceries",
            "amount": 500.0,
            "period": "monthly",
            "start_date": date(2025, 10, 1),
            "category_ids": ["groceries"],
        }
        data.update(overrides)
        budget = BudgetInDB(user_id=USER_ID, **data)
        fake_db.put_budget(budget.model_dump())
        return fake_db.get_budget(USER_ID, budget.budget_id)

    return _make


@pytest.fixture
def add_transaction(fake_db):
    counter = {"n": 0}

    def _add(txn_date, amount, category_id="groceries", type="debit", account_id="everyday"):
        counter["n"] += 1
        transaction_id = f"{txn_date.isoformat()}#{counter['n']:08d}"
        fake_db.put_transaction({
            "user_id": USER_ID,
            "transaction_id": transaction_id,
            "account_id": account_id,
            "category_id": category_id,
            "amount": amount,
            "type": type,
            "description": "test",
            "currency": "AUD",
            "transaction_date": txn_date,
            "created_at": "2025-01-01T00:00:00",
        })
        return transaction_id

    return _add
