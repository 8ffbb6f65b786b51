from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .periods import as_date
from .rollover import ZERO, to_money

# Weekly/biweekly minimum payments normalised to a monthly figure.
MONTHLY_FACTORS = {
    "weekly": Decimal(52) / Decimal(12),
    "biweekly": Decimal(26) / Decimal(12),
}


@dataclass
class BudgetProgress:
    """Spending position of one budget inside its active period."""

    budget_id: str
    name: str
    period_type: str
    period_label: str
    allocated: float
    spent: float
    remaining: float
    progress: float
    over_budget: bool
    alert_threshold: float
    period_start: Optional[str] = None
    period_end: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {k: v for k, v in data.items() if v is not None}


class FinanceAnalyzer:
    """
    Analytics helper shared by the FastAPI routes and the scheduled jobs:
    period spending, budget progress and alerts, and debt portfolio stats.
    """

    def __init__(
        self,
        default_alert_threshold: float = 80.0,
        good_progress_threshold: float = 70.0,
    ) -> None:
        self._default_alert_threshold = default_alert_threshold
        self._good_progress_threshold = good_progress_threshold

    @staticmethod
    def transaction_matches(
        transaction: Mapping[str, Any],
        category_ids: Optional[Sequence[str]] = None,
        account_ids: Optional[Sequence[str]] = None,
    ) -> bool:
        if transaction.get("type", "debit") != "debit":
            return False
        if category_ids and transaction.get("category_id") not in category_ids:
            return False
        if account_ids and transaction.get("account_id") not in account_ids:
            return False
        return True

    def spent_for_period(
        self,
        transactions: Iterable[Mapping[str, Any]],
        period_start: date,
        period_end: Optional[date],
        category_ids: Optional[Sequence[str]] = None,
        account_ids: Optional[Sequence[str]] = None,
    ) -> Decimal:
        """Sum of debit amounts (as positive money) dated inside the period."""
        period_start = as_date(period_start)
        period_end = as_date(period_end)
        total = ZERO
        for txn in transactions:
            txn_date = as_date(txn.get("transaction_date"))
            if txn_date is None or txn_date < period_start:
                continue
            if period_end is not None and txn_date > period_end:
                continue
            if self.transaction_matches(txn, category_ids, account_ids):
                total += abs(to_money(txn.get("amount")))
        return total

    def budget_progress(
        self,
        budget: Mapping[str, Any],
        period: Mapping[str, Any],
        spent: Any,
    ) -> BudgetProgress:
        allocated = to_money(period.get("allocated_amount", budget.get("amount")))
        spent = to_money(spent)
        progress = float(spent / allocated * 100) if allocated > ZERO else 0.0
        threshold = budget.get("alert_threshold")
        return BudgetProgress(
            budget_id=budget["budget_id"],
            name=budget.get("name", ""),
            period_type=budget.get("period", ""),
            period_label=period.get("period_label", ""),
            allocated=float(allocated),
            spent=float(spent),
            remaining=float(max(allocated - spent, ZERO)),
            progress=round(progress, 1),
            over_budget=spent > allocated,
            alert_threshold=float(threshold if threshold is not None else self._default_alert_threshold),
            period_start=period.get("period_start"),
            period_end=period.get("period_end"),
        )

    def budget_alerts(self, progress_items: Sequence[BudgetProgress]) -> List[Dict[str, Any]]:
        """
        Turn budget progress into user-facing notifications ordered by severity
        of discovery: exceeded budgets, budgets past their alert threshold, and
        a single encouragement when everything is comfortably under budget.
        """
        notifications: List[Dict[str, Any]] = []

        for item in progress_items:
            if item.over_budget:
                over_amount = round(item.spent - item.allocated, 2)
                notifications.append({
                    "id": f"budget_exceeded_{item.budget_id}_{item.period_start}",
                    "type": "budget_exceeded",
                    "severity": "danger",
                    "title": f"Budget Exceeded: {item.name}",
                    "message": (
                        f"You've exceeded your {item.name} budget for {item.period_label} "
                        f"by ${over_amount:,.2f}. Budget: ${item.allocated:,.2f}, Spent: ${item.spent:,.2f}"
                    ),
                    "budget_id": item.budget_id,
                    "amount": item.spent,
                    "allocated": item.allocated,
                    "over_amount": over_amount,
                })
            elif item.progress >= item.alert_threshold:
                notifications.append({
                    "id": f"approaching_budget_{item.budget_id}_{item.period_start}",
                    "type": "approaching_budget",
                    "severity": "warning",
                    "title": f"Approaching Budget Limit: {item.name}",
                    "message": (
                        f"You've used {item.progress:.1f}% of your {item.name} budget. "
                        f"Only ${item.remaining:,.2f} remaining out of ${item.allocated:,.2f}."
                    ),
                    "budget_id": item.budget_id,
                    "amount": item.spent,
                    "allocated": item.allocated,
                    "percentage": item.progress,
                })

        has_spending = any(item.spent > 0 for item in progress_items)
        all_comfortable = all(item.progress < self._good_progress_threshold for item in progress_items)
        if progress_items and has_spending and all_comfortable:
            notifications.append({
                "id": "good_progress",
                "type": "good_progress",
                "severity": "success",
                "title": "Great Budget Management!",
                "message": (
                    f"All budgets are under {self._good_progress_threshold:.0f}% of their limits "
                    "for the current period. Keep up the good work!"
                ),
            })

        return notifications

    @staticmethod
    def monthly_payment(debt: Mapping[str, Any]) -> Decimal:
        payment = to_money(debt.get("minimum_payment"))
        factor = MONTHLY_FACTORS.get(debt.get("payment_frequency", "monthly"))
        return to_money(payment * factor) if factor else payment

    @staticmethod
    def _rate_band(rate: Decimal) -> str:
        if rate < 5:
            return "low"
        if rate < 10:
            return "medium"
        if rate < 20:
            return "high"
        return "very_high"

    def debt_summary(
        self,
        debts: Sequence[Mapping[str, Any]],
        payments: Sequence[Mapping[str, Any]],
        today: date,
    ) -> Dict[str, Any]:
        active = [d for d in debts if d.get("status", "active") == "active"]

        total_debt = sum((to_money(d.get("current_balance")) for d in active), ZERO)
        monthly_payments = sum((self.monthly_payment(d) for d in active), ZERO)
        weighted = sum(
            (to_money(d.get("current_balance")) * Decimal(str(d.get("interest_rate", 0))) for d in active),
            ZERO,
        )
        avg_rate = weighted / total_debt if total_debt > ZERO else ZERO
        projected_interest = weighted / Decimal(100)

        by_type: Dict[str, Dict[str, Any]] = defaultdict(lambda: {"count": 0, "total": 0.0})
        by_rate = {"low": 0, "medium": 0, "high": 0, "very_high": 0}
        for debt in active:
            entry = by_type[debt.get("debt_type", "other")]
            entry["count"] += 1
            entry["total"] = round(entry["total"] + float(to_money(debt.get("current_balance"))), 2)
            by_rate[self._rate_band(Decimal(str(debt.get("interest_rate", 0))))] += 1

        year_start = date(today.year, 1, 1)
        interest_ytd = sum(
            (
                to_money(p.get("interest_amount"))
                for p in payments
                if as_date(p.get("payment_date")) and as_date(p.get("payment_date")) >= year_start
            ),
            ZERO,
        )

        highest_rate = max(active, key=lambda d: Decimal(str(d.get("interest_rate", 0))), default=None)
        largest = max(active, key=lambda d: to_money(d.get("current_balance")), default=None)

        return {
            "total_debt": float(total_debt),
            "total_monthly_payments": float(to_money(monthly_payments)),
            "avg_interest_rate": float(to_money(avg_rate)),
            "active_debt_count": len(active),
            "debt_by_type": dict(by_type),
            "debt_by_rate": by_rate,
            "total_interest_paid_ytd": float(interest_ytd),
            "projected_annual_interest": float(to_money(projected_interest)),
            "total_payments_logged": len(payments),
            "highest_interest_debt": highest_rate,
            "largest_debt": largest,
        }
