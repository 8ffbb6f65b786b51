"""
Debt Ledger Service
Keeps a debt's stored balance in line with its payment history. The balance is
always rebuilt from the original amount and the full list of payments, so
creating, editing or deleting any payment leaves the debt consistent.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.db import dynamo
from app.utils import email_service
from budget_engine import FinanceAnalyzer, recalculate_debt
from budget_engine.periods import as_date, utc_today
from budget_engine.rollover import to_money

logger = logging.getLogger(__name__)
finance_analyzer = FinanceAnalyzer(default_alert_threshold=settings.DEFAULT_ALERT_THRESHOLD)

REMINDER_LOOKAHEAD_DAYS = 7
REMINDER_INTERVAL = timedelta(hours=24)


class DebtNotFoundError(LookupError):
    pass


def recalculate_debt_balance(user_id: str, debt_id: str) -> Dict[str, Any]:
    """
    Replay every payment of a debt and persist the derived fields:
    current_balance, total_paid, payment_count, status, last_payment_* and each
    payment's balance_after_payment. Returns the updated debt item.
    """
    debt = dynamo.get_debt(user_id, debt_id)
    if not debt:
        raise DebtNotFoundError(f"Debt {debt_id} not found")

    payments = dynamo.list_debt_payments(debt_id)
    original = debt.get("original_amount") or debt.get("current_balance") or 0
    result = recalculate_debt(original, payments, debt.get("status", "active"))

    for payment in payments:
        balance = result.balances_after_payment.get(payment["payment_id"])
        stored = payment.get("balance_after_payment")
        if balance is None or (stored is not None and to_money(stored) == balance):
            continue
        dynamo.update_debt_payment(debt_id, payment["payment_id"], {"balance_after_payment": balance})

    now = datetime.utcnow().isoformat()
    updates = {
        **result.to_dict(),
        "last_balance_update": now,
        "updated_at": now,
    }
    updated = dynamo.update_debt(user_id, debt_id, updates)
    if updated is None:
        raise DebtNotFoundError(f"Debt {debt_id} not found")

    logger.info(
        f"Recalculated debt {debt_id}: balance={result.current_balance}, "
        f"payments={result.payment_count}, status={result.status}"
    )
    return updated


def debt_stats(user_id: str, today: Optional[date] = None) -> Dict[str, Any]:
    """Portfolio summary over the user's debts and every payment logged against them."""
    today = today or utc_today()
    debts = dynamo.list_debts(user_id)
    payments: List[Dict[str, Any]] = []
    for debt in debts:
        payments.extend(dynamo.list_debt_payments(debt["debt_id"]))
    return finance_analyzer.debt_summary(debts, payments, today)


def _reminder_recently_sent(debt: Dict[str, Any], now: datetime) -> bool:
    last_sent = debt.get("last_reminder_sent_at")
    if not last_sent:
        return False
    try:
        return now - datetime.fromisoformat(last_sent) < REMINDER_INTERVAL
    except ValueError:
        logger.warning(f"Ignoring malformed last_reminder_sent_at on debt {debt.get('debt_id')}")
        return False


def check_debt_reminders(today: Optional[date] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Email users about active debts coming due. A reminder goes out when the due
    date is within the user's ``debt_reminder_days_before`` window and no
    reminder was sent for that debt in the last 24 hours.
    """
    today = today or utc_today()
    now = now or datetime.utcnow()
    logger.info("[Reminders] Checking upcoming debt payments...")

    debts = dynamo.scan_active_debts_due_between(today, today + timedelta(days=REMINDER_LOOKAHEAD_DAYS))
    preferences_cache: Dict[str, Optional[Dict[str, Any]]] = {}
    sent, skipped = 0, 0
    errors = []

    for debt in debts:
        user_id = debt["user_id"]
        if user_id not in preferences_cache:
            preferences_cache[user_id] = dynamo.get_notification_settings(user_id)
        preferences = preferences_cache[user_id]

        if not preferences or not preferences.get("email") or not preferences.get("debt_reminders_enabled", True):
            skipped += 1
            continue

        due_date = as_date(debt["next_due_date"])
        days_until_due = (due_date - today).days
        days_before = preferences.get("debt_reminder_days_before", settings.DEFAULT_DEBT_REMINDER_DAYS)
        if days_until_due > days_before or _reminder_recently_sent(debt, now):
            skipped += 1
            continue

        delivered = email_service.send_debt_reminder_email(
            user_email=preferences["email"],
            debt_name=debt.get("name", ""),
            creditor_name=debt.get("creditor_name", ""),
            amount_due=float(to_money(debt.get("minimum_payment"))),
            due_date=due_date,
            days_until_due=days_until_due,
            currency=debt.get("currency", settings.DEFAULT_CURRENCY),
        )
        if not delivered:
            errors.append({"debt_id": debt["debt_id"], "error": "Email delivery failed"})
            continue

        dynamo.update_debt(user_id, debt["debt_id"], {"last_reminder_sent_at": now.isoformat()})
        sent += 1

    logger.info(f"[Reminders] Sent {sent} reminders, skipped {skipped}, failed {len(errors)}")
    return {
        "success": True,
        "checked": len(debts),
        "reminders_sent": sent,
        "skipped": skipped,
        "failed": len(errors),
        "errors": errors,
        "timestamp": now.isoformat(),
    }
