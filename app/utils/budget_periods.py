"""
Budget Period Service
Opens, completes and rolls over budget periods. Each budget has exactly one
active period; completed periods are kept as history with their final spend.
"""
import logging
import time
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

from app.core.config import settings
from app.db import dynamo
from budget_engine import (
    BudgetProgress,
    FinanceAnalyzer,
    PeriodType,
    calculate_period_end,
    calculate_rollover,
    generate_period_label,
    iter_periods,
    next_allocation,
)
from budget_engine.periods import as_date, utc_today
from budget_engine.rollover import ZERO, to_money

logger = logging.getLogger(__name__)
finance_analyzer = FinanceAnalyzer(default_alert_threshold=settings.DEFAULT_ALERT_THRESHOLD)


class BudgetPeriodError(Exception):
    """Raised when a budget period can't be opened, closed or persisted."""


def calculate_budget_spending(budget: Dict[str, Any], period_start: date, period_end: Optional[date]) -> Decimal:
    """Debit spending matching the budget's category/account filters inside the window."""
    transactions = dynamo.get_transactions_for_user(budget["user_id"], period_start, period_end)
    return finance_analyzer.spent_for_period(
        transactions,
        period_start,
        period_end,
        category_ids=budget.get("category_ids") or [],
        account_ids=budget.get("account_ids") or [],
    )


def build_period_item(budget: Dict[str, Any], period_start: date, rollover: Any = ZERO) -> Dict[str, Any]:
    period_type = PeriodType(budget["period"])
    period_end = calculate_period_end(
        period_start, period_type, budget.get("reset_day"), budget.get("end_date")
    )
    base_amount = to_money(budget["amount"])
    rollover_amount = to_money(rollover)
    return {
        "budget_id": budget["budget_id"],
        "period_id": f"{period_start.isoformat()}#{uuid4().hex[:6]}",
        "user_id": budget["user_id"],
        "period_start": period_start,
        "period_end": period_end,
        "period_label": generate_period_label(period_start, period_end, period_type),
        "base_amount": base_amount,
        "rollover_amount": rollover_amount,
        "allocated_amount": next_allocation(base_amount, rollover_amount),
        "spent_amount": ZERO,
        "status": "active",
        "completed_at": None,
        "created_at": datetime.utcnow().isoformat(),
    }


def _open_period(budget: Dict[str, Any], period_start: date, rollover: Any = ZERO) -> Dict[str, Any]:
    period = build_period_item(budget, period_start, rollover)
    if not dynamo.put_budget_period(period):
        raise BudgetPeriodError(f"Failed to save new period for budget {budget['budget_id']}")
    return period


def _close_period(
    budget: Dict[str, Any],
    period: Dict[str, Any],
    status: str = "completed",
    period_end: Optional[date] = None,
    spent: Optional[Decimal] = None,
) -> Decimal:
    """Freeze a period with its final spend and return that spend."""
    if spent is None:
        start = as_date(period["period_start"])
        end = period_end or as_date(period.get("period_end"))
        spent = calculate_budget_spending(budget, start, end)

    updates = {
        "status": status,
        "spent_amount": spent,
        "completed_at": datetime.utcnow().isoformat(),
    }
    if period_end is not None:
        updates["period_end"] = period_end
    if dynamo.update_budget_period(period["budget_id"], period["period_id"], updates) is None:
        raise BudgetPeriodError(f"Failed to close period {period['period_id']}")
    return spent


def _rollover_for(budget: Dict[str, Any], period: Dict[str, Any], spent: Decimal) -> Decimal:
    return calculate_rollover(
        period.get("allocated_amount", budget["amount"]),
        spent,
        budget.get("rollover_strategy", "none"),
        budget.get("rollover_percentage"),
        budget.get("rollover_limit"),
    )


def _roll_forward(
    budget: Dict[str, Any],
    current: Dict[str, Any],
    next_start: date,
    closed_end: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Complete ``current`` and open the period starting at ``next_start``.

    The next period is built before anything is written. If saving it fails the
    closed period is reopened, so the budget is never left without an active
    period.
    """
    end = closed_end or as_date(current.get("period_end"))
    spent = calculate_budget_spending(budget, as_date(current["period_start"]), end)
    rollover = _rollover_for(budget, current, spent)
    next_period = build_period_item(budget, next_start, rollover)

    _close_period(budget, current, period_end=closed_end, spent=spent)
    if not dynamo.put_budget_period(next_period):
        logger.error(
            f"Could not open {next_period['period_label']} for budget {budget['budget_id']}; "
            f"reopening {current['period_label']}"
        )
        restore = {"status": "active", "spent_amount": ZERO, "completed_at": None}
        if closed_end is not None:
            restore["period_end"] = current.get("period_end")
        if dynamo.update_budget_period(current["budget_id"], current["period_id"], restore) is None:
            logger.critical(f"Budget {budget['budget_id']} has no active period after a failed reset")
        raise BudgetPeriodError(f"Failed to save new period for budget {budget['budget_id']}")

    logger.info(
        f"Closed {current['period_label']} for budget {budget['budget_id']}: "
        f"spent={spent}, rollover={rollover}"
    )
    return next_period


def _sync_budget_dates(budget: Dict[str, Any], period: Dict[str, Any]) -> Dict[str, Any]:
    period_end = as_date(period.get("period_end"))
    next_reset = None
    if PeriodType(budget["period"]).recurring and period_end is not None:
        next_reset = period_end + timedelta(days=1)

    updates = {
        "current_period_start": as_date(period["period_start"]),
        "current_period_end": period_end,
        "next_reset_date": next_reset,
        "updated_at": datetime.utcnow().isoformat(),
    }
    updated = dynamo.update_budget(budget["user_id"], budget["budget_id"], updates)
    if updated is None:
        raise BudgetPeriodError(f"Failed to update dates for budget {budget['budget_id']}")
    return updated


def initialize_budget_period(budget: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """
    Open the first period of a new budget. A start date in the past opens the
    window that contains today; history before the budget existed isn't invented.
    """
    today = today or utc_today()
    start = as_date(budget["start_date"])

    period_start = start
    if start < today:
        for window_start, _ in iter_periods(start, budget["period"], today, budget.get("reset_day")):
            period_start = window_start

    period = _open_period(budget, period_start)
    _sync_budget_dates(budget, period)
    logger.info(f"Opened period {period['period_label']} for budget {budget['budget_id']}")
    return period


def get_current_budget_period(budget: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return dynamo.get_active_budget_period(budget["budget_id"])


def find_budgets_needing_reset(today: Optional[date] = None) -> List[Dict[str, Any]]:
    today = today or utc_today()
    return [
        budget
        for budget in dynamo.scan_budgets_due_for_reset(today)
        if PeriodType(budget["period"]).recurring
    ]


def reset_budget_period(budget: Dict[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """
    Roll a due budget forward. Every period that ended before ``today`` is
    completed with its spend and the rollover is chained into the next one, so
    a budget that sat idle for several periods ends up with one active period
    covering today and a completed record for each missed period.
    """
    today = today or utc_today()
    if not PeriodType(budget["period"]).recurring:
        raise BudgetPeriodError("One-time budgets do not reset")

    current = get_current_budget_period(budget)
    if current is None:
        return initialize_budget_period(budget, today)

    rolled = 0
    while as_date(current["period_end"]) < today:
        next_start = as_date(current["period_end"]) + timedelta(days=1)
        current = _roll_forward(budget, current, next_start)
        rolled += 1

    if rolled:
        _sync_budget_dates(budget, current)
    return current


def force_reset_budget_period(
    budget: Dict[str, Any],
    today: Optional[date] = None,
    previous: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Manual reset: close the active period at ``today`` and open the next one
    starting tomorrow, applying the budget's rollover strategy.

    An overdue budget is caught up first, so every missed period gets its own
    completed record before the active one is cut short. ``previous`` is the
    budget as it was before an edit; missed periods are rebuilt with its period
    type rather than the new one.
    """
    today = today or utc_today()
    current = get_current_budget_period(budget)
    if current is None:
        return initialize_budget_period(budget, today)

    if as_date(current["period_start"]) > today:
        raise BudgetPeriodError("The current period has not started yet")

    history = previous or budget
    period_end = as_date(current.get("period_end"))
    if period_end is not None and period_end < today and PeriodType(history["period"]).recurring:
        current = reset_budget_period(history, today)
        period_end = as_date(current.get("period_end"))

    closed_end = today if period_end is None or today < period_end else period_end
    period = _roll_forward(budget, current, today + timedelta(days=1), closed_end)
    _sync_budget_dates(budget, period)
    logger.info(f"Manually reset budget {budget['budget_id']}, new period {period['period_label']}")
    return period


def change_budget_period_type(
    budget: Dict[str, Any],
    previous: Dict[str, Any],
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Move ``budget`` (already carrying its new period type) onto that type: the
    current period closes today and a period of the new type starts tomorrow.
    Nothing is written when the switch is rejected.
    """
    today = today or utc_today()
    end_date = as_date(budget.get("end_date"))
    if not PeriodType(budget["period"]).recurring and end_date is not None and end_date <= today:
        raise BudgetPeriodError("A one-time budget must end after today to switch to it")

    return force_reset_budget_period(budget, today, previous=previous)


def cancel_active_period(budget: Dict[str, Any], today: Optional[date] = None) -> Optional[Dict[str, Any]]:
    """Mark the open period cancelled (budget deleted or deactivated)."""
    today = today or utc_today()
    current = get_current_budget_period(budget)
    if current is None:
        return None
    end = as_date(current.get("period_end"))
    cut_off = today if end is None or today < end else end
    if cut_off < as_date(current["period_start"]):
        cut_off = as_date(current["period_start"])
    _close_period(budget, current, status="cancelled", period_end=cut_off)
    return current


def reallocate_active_period(budget: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Apply a changed base amount to the open period, keeping its rollover."""
    current = get_current_budget_period(budget)
    if current is None:
        return None
    base_amount = to_money(budget["amount"])
    return dynamo.update_budget_period(
        current["budget_id"],
        current["period_id"],
        {
            "base_amount": base_amount,
            "allocated_amount": next_allocation(base_amount, current.get("rollover_amount")),
        },
    )


def get_budget_progress(budget: Dict[str, Any]) -> Optional[BudgetProgress]:
    current = get_current_budget_period(budget)
    if current is None:
        return None
    spent = calculate_budget_spending(
        budget, as_date(current["period_start"]), as_date(current.get("period_end"))
    )
    return finance_analyzer.budget_progress(budget, current, spent)


def run_budget_resets(today: Optional[date] = None) -> Dict[str, Any]:
    """
    Reset every due budget. A failure on one budget is logged and counted but
    doesn't stop the rest of the batch.
    """
    today = today or utc_today()
    started = time.monotonic()
    logger.info("[Budget Reset] Starting budget reset job...")

    budgets_to_reset = find_budgets_needing_reset(today)
    logger.info(f"[Budget Reset] Found {len(budgets_to_reset)} budgets to reset")

    successful = 0
    errors = []
    for budget in budgets_to_reset:
        try:
            logger.info(f"[Budget Reset] Resetting budget {budget['budget_id']} ({budget.get('name')})")
            reset_budget_period(budget, today)
            successful += 1
        except Exception as e:
            logger.error(f"[Budget Reset] Failed to reset budget {budget['budget_id']}: {str(e)}", exc_info=True)
            errors.append({"budget_id": budget["budget_id"], "error": str(e)})

    duration_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        f"[Budget Reset] Completed: {successful} successful, {len(errors)} failed in {duration_ms}ms"
    )
    return {
        "success": True,
        "total_budgets": len(budgets_to_reset),
        "successful": successful,
        "failed": len(errors),
        "errors": errors,
        "duration_ms": duration_ms,
        "timestamp": datetime.utcnow().isoformat(),
        "budgets": [
            {"budget_id": b["budget_id"], "name": b.get("name"), "period": b["period"]}
            for b in budgets_to_reset
        ],
    }
