import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.security import get_current_user_id
from app.db import dynamo
from app.models.budget import (
    BudgetCreate,
    BudgetInDB,
    BudgetPeriodPublic,
    BudgetPublic,
    BudgetUpdate,
)
from app.utils.budget_periods import (
    BudgetPeriodError,
    cancel_active_period,
    change_budget_period_type,
    force_reset_budget_period,
    get_budget_progress,
    get_current_budget_period,
    initialize_budget_period,
    reallocate_active_period,
)
from budget_engine import PeriodType, RolloverConfigError
from budget_engine.periods import as_date
from budget_engine.rollover import to_money, validate_rollover_config

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_owned_budget(user_id: str, budget_id: str) -> dict:
    budget = dynamo.get_budget(user_id, budget_id)
    if not budget:
        raise HTTPException(status_code=404, detail="Budget not found")
    return budget


@router.get("/", response_model=List[BudgetPublic])
def list_budgets(user_id: str = Depends(get_current_user_id)):
    return [BudgetPublic(**budget) for budget in dynamo.list_budgets(user_id)]


@router.post("/", response_model=BudgetPublic, status_code=status.HTTP_201_CREATED)
def create_budget(budget: BudgetCreate, user_id: str = Depends(get_current_user_id)):
    budget_db = BudgetInDB(user_id=user_id, **budget.model_dump())
    item = budget_db.model_dump()
    if not dynamo.put_budget(item):
        raise HTTPException(status_code=500, detail="Failed to save budget")

    try:
        initialize_budget_period(item)
    except BudgetPeriodError as e:
        logger.error(f"Budget {budget_db.budget_id} saved without a period: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

    return BudgetPublic(**(dynamo.get_budget(user_id, budget_db.budget_id) or item))


@router.get("/{budget_id}", response_model=BudgetPublic)
def get_budget(budget_id: str, user_id: str = Depends(get_current_user_id)):
    return BudgetPublic(**_get_owned_budget(user_id, budget_id))


@router.put("/{budget_id}", response_model=BudgetPublic)
def update_budget(
    budget_id: str,
    budget_update: BudgetUpdate,
    user_id: str = Depends(get_current_user_id),
):
    """
    Changing the period type closes the current period today and starts a new
    one of the new type. Changing the amount re-allocates the open period.
    """
    updates = budget_update.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    existing = _get_owned_budget(user_id, budget_id)
    merged = {**existing, **updates}
    try:
        validate_rollover_config(
            merged.get("rollover_strategy", "none"),
            merged.get("rollover_percentage"),
            merged.get("rollover_limit"),
        )
    except RolloverConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

    end_date = as_date(merged.get("end_date"))
    if end_date and end_date < as_date(merged["start_date"]):
        raise HTTPException(status_code=400, detail="end_date cannot be before start_date")

    period_changed = PeriodType(merged["period"]) != PeriodType(existing["period"])
    if period_changed:
        try:
            change_budget_period_type(merged, existing)
        except BudgetPeriodError as e:
            raise HTTPException(status_code=400, detail=str(e))

    updates["updated_at"] = datetime.utcnow().isoformat()
    updated = dynamo.update_budget(user_id, budget_id, updates)
    if not updated:
        raise HTTPException(status_code=404, detail="Budget not found")

    if not period_changed and to_money(updated["amount"]) != to_money(existing["amount"]):
        try:
            reallocate_active_period(updated)
        except BudgetPeriodError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return BudgetPublic(**(dynamo.get_budget(user_id, budget_id) or updated))


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_budget(budget_id: str, user_id: str = Depends(get_current_user_id)):
    budget = _get_owned_budget(user_id, budget_id)
    try:
        cancel_active_period(budget)
    except BudgetPeriodError as e:
        logger.warning(f"Could not cancel active period of budget {budget_id}: {str(e)}")

    if not dynamo.delete_budget(user_id, budget_id):
        raise HTTPException(status_code=404, detail="Budget not found")
    return None


@router.get("/{budget_id}/periods")
def list_budget_periods(
    budget_id: str,
    current: bool = False,
    user_id: str = Depends(get_current_user_id),
):
    """
    Period history, newest first. ``?current=true`` returns only the active period.
    """
    budget = _get_owned_budget(user_id, budget_id)
    if current:
        period = get_current_budget_period(budget)
        if not period:
            raise HTTPException(status_code=404, detail="No active period")
        return BudgetPeriodPublic(**period)

    return [BudgetPeriodPublic(**period) for period in dynamo.list_budget_periods(budget_id)]


@router.post("/{budget_id}/periods", response_model=BudgetPeriodPublic, status_code=status.HTTP_201_CREATED)
def reset_budget(budget_id: str, user_id: str = Depends(get_current_user_id)):
    """Manually close the current period and start the next one tomorrow."""
    budget = _get_owned_budget(user_id, budget_id)
    try:
        period = force_reset_budget_period(budget)
    except BudgetPeriodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BudgetPeriodPublic(**period)


@router.get("/{budget_id}/progress")
def budget_progress(budget_id: str, user_id: str = Depends(get_current_user_id)):
    budget = _get_owned_budget(user_id, budget_id)
    progress = get_budget_progress(budget)
    if progress is None:
        raise HTTPException(status_code=404, detail="No active period")
    return progress.to_dict()
