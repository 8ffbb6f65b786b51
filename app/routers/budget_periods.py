from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException

from app.core.security import get_current_user_id
from app.db import dynamo
from app.models.budget import BudgetPeriodPublic

router = APIRouter()

PeriodStatus = Literal["active", "completed", "cancelled"]


@router.get("/", response_model=List[BudgetPeriodPublic])
def list_periods(
    status: Optional[PeriodStatus] = None,
    budget_id: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
):
    """
    Periods across the user's budgets, optionally narrowed to one budget and/or
    one status.
    """
    if budget_id:
        if not dynamo.get_budget(user_id, budget_id):
            raise HTTPException(status_code=404, detail="Budget not found")
        budget_ids = [budget_id]
    else:
        budget_ids = [budget["budget_id"] for budget in dynamo.list_budgets(user_id)]

    periods = []
    for bid in budget_ids:
        periods.extend(dynamo.list_budget_periods(bid))

    if status:
        periods = [p for p in periods if p.get("status") == status]
    periods.sort(key=lambda p: str(p.get("period_start", "")), reverse=True)
    return [BudgetPeriodPublic(**p) for p in periods]
