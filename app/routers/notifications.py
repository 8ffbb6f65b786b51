"""
Notifications Router
Budget alerts for the active period of each budget, plus upcoming debt payments.
"""
import logging
from datetime import timedelta
from typing import Dict, List

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.security import get_current_user_id
from app.db import dynamo
from app.utils.budget_periods import finance_analyzer, get_budget_progress
from budget_engine.periods import as_date, utc_today

router = APIRouter()
logger = logging.getLogger(__name__)


def debt_due_notifications(user_id: str, days_before: int) -> List[Dict]:
    today = utc_today()
    horizon = today + timedelta(days=days_before)
    notifications = []
    for debt in dynamo.list_debts(user_id, status="active"):
        due_date = as_date(debt.get("next_due_date"))
        if due_date is None or not today <= due_date <= horizon:
            continue
        days_until_due = (due_date - today).days
        when = "today" if days_until_due == 0 else f"in {days_until_due} day{'s' if days_until_due != 1 else ''}"
        notifications.append({
            "id": f"debt_due_{debt['debt_id']}_{due_date.isoformat()}",
            "type": "debt_due_soon",
            "severity": "info",
            "title": f"Payment Due: {debt.get('name', '')}",
            "message": (
                f"Your {debt.get('creditor_name', '')} payment of "
                f"${float(debt.get('minimum_payment', 0)):,.2f} is due {when}."
            ),
            "debt_id": debt["debt_id"],
            "due_date": due_date.isoformat(),
            "days_until_due": days_until_due,
        })
    return notifications


@router.get("/")
def get_notifications(user_id: str = Depends(get_current_user_id)) -> Dict:
    progress_items = []
    for budget in dynamo.list_budgets(user_id):
        if not budget.get("is_active", True):
            continue
        progress = get_budget_progress(budget)
        if progress is not None:
            progress_items.append(progress)

    notifications = finance_analyzer.budget_alerts(progress_items)

    preferences = dynamo.get_notification_settings(user_id) or {}
    days_before = preferences.get("debt_reminder_days_before", settings.DEFAULT_DEBT_REMINDER_DAYS)
    notifications.extend(debt_due_notifications(user_id, days_before))

    # Count by severity
    severity_counts = {
        severity: len([n for n in notifications if n["severity"] == severity])
        for severity in ("danger", "warning", "info", "success")
    }

    return {
        "notifications": notifications,
        "count": len(notifications),
        "severity_counts": severity_counts,
    }
