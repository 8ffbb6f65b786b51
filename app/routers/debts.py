import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.security import get_current_user_id
from app.db import dynamo
from app.models.debt import DebtCreate, DebtInDB, DebtPublic, DebtStatus, DebtUpdate
from app.utils.debt_ledger import DebtNotFoundError, debt_stats, recalculate_debt_balance

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[DebtPublic])
def list_debts(status: Optional[DebtStatus] = None, user_id: str = Depends(get_current_user_id)):
    return [DebtPublic(**debt) for debt in dynamo.list_debts(user_id, status)]


@router.post("/", response_model=DebtPublic, status_code=status.HTTP_201_CREATED)
def create_debt(debt: DebtCreate, user_id: str = Depends(get_current_user_id)):
    data = debt.model_dump()
    original_amount = data.pop("original_amount")
    current_balance = data.pop("current_balance")
    if original_amount is None:
        original_amount = current_balance

    # The balance is derived from payments; a new debt owes its full original amount.
    debt_db = DebtInDB(
        user_id=user_id,
        original_amount=original_amount,
        current_balance=original_amount,
        **data,
    )
    if not dynamo.put_debt(debt_db.model_dump()):
        raise HTTPException(status_code=500, detail="Failed to save debt")
    return DebtPublic(**debt_db.model_dump())


@router.get("/stats")
def get_debt_stats(user_id: str = Depends(get_current_user_id)):
    """
    Totals, monthly payment load, weighted interest rate, breakdown by type and
    rate band, interest paid this year and projected annual interest.
    """
    return debt_stats(user_id)


@router.get("/{debt_id}", response_model=DebtPublic)
def get_debt(debt_id: str, user_id: str = Depends(get_current_user_id)):
    debt = dynamo.get_debt(user_id, debt_id)
    if not debt:
        raise HTTPException(status_code=404, detail="Debt not found")
    return DebtPublic(**debt)


@router.patch("/{debt_id}", response_model=DebtPublic)
def update_debt(debt_id: str, debt_update: DebtUpdate, user_id: str = Depends(get_current_user_id)):
    updates = debt_update.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    updates["updated_at"] = datetime.utcnow().isoformat()
    updated = dynamo.update_debt(user_id, debt_id, updates)
    if not updated:
        raise HTTPException(status_code=404, detail="Debt not found")

    if "original_amount" in updates:
        try:
            updated = recalculate_debt_balance(user_id, debt_id)
        except DebtNotFoundError:
            raise HTTPException(status_code=404, detail="Debt not found")

    return DebtPublic(**updated)


@router.delete("/{debt_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_debt(debt_id: str, user_id: str = Depends(get_current_user_id)):
    if not dynamo.get_debt(user_id, debt_id):
        raise HTTPException(status_code=404, detail="Debt not found")
    if not dynamo.delete_debt_payments(debt_id):
        raise HTTPException(status_code=500, detail="Failed to delete debt payments")
    if not dynamo.delete_debt(user_id, debt_id):
        raise HTTPException(status_code=404, detail="Debt not found")
    return None
