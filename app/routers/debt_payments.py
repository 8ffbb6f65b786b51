"""
Debt Payments Router
Payment ledger of a single debt. Every create, update or delete is followed by
a full recalculation of the debt's balance from its payments.
"""
import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.security import get_current_user_id
from app.db import dynamo
from app.models.debt import (
    DebtPaymentCreate,
    DebtPaymentInDB,
    DebtPaymentPublic,
    DebtPaymentUpdate,
)
from app.utils.debt_ledger import DebtNotFoundError, recalculate_debt_balance
from budget_engine.rollover import to_money

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_owned_debt(user_id: str, debt_id: str) -> dict:
    debt = dynamo.get_debt(user_id, debt_id)
    if not debt:
        raise HTTPException(status_code=404, detail="Debt not found")
    return debt


def _recalculate(user_id: str, debt_id: str) -> dict:
    try:
        return recalculate_debt_balance(user_id, debt_id)
    except DebtNotFoundError:
        raise HTTPException(status_code=404, detail="Debt not found")


@router.get("/", response_model=List[DebtPaymentPublic])
def list_payments(debt_id: str, user_id: str = Depends(get_current_user_id)):
    _get_owned_debt(user_id, debt_id)
    return [DebtPaymentPublic(**payment) for payment in dynamo.list_debt_payments(debt_id)]


@router.post("/", response_model=DebtPaymentPublic, status_code=status.HTTP_201_CREATED)
def create_payment(
    debt_id: str,
    payment: DebtPaymentCreate,
    user_id: str = Depends(get_current_user_id),
):
    _get_owned_debt(user_id, debt_id)
    payment_db = DebtPaymentInDB(user_id=user_id, debt_id=debt_id, **payment.model_dump())
    if not dynamo.put_debt_payment(payment_db.model_dump()):
        raise HTTPException(status_code=500, detail="Failed to save payment")

    _recalculate(user_id, debt_id)
    saved = dynamo.get_debt_payment(debt_id, payment_db.payment_id) or payment_db.model_dump()
    return DebtPaymentPublic(**saved)


@router.patch("/{payment_id}", response_model=DebtPaymentPublic)
def update_payment(
    debt_id: str,
    payment_id: str,
    payment_update: DebtPaymentUpdate,
    user_id: str = Depends(get_current_user_id),
):
    _get_owned_debt(user_id, debt_id)
    updates = payment_update.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    existing = dynamo.get_debt_payment(debt_id, payment_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Payment not found")

    split_fields = {"payment_amount", "interest_amount", "fees_amount"}
    if "principal_amount" not in updates and split_fields & updates.keys():
        merged = {**existing, **updates}
        updates["principal_amount"] = (
            to_money(merged.get("payment_amount"))
            - to_money(merged.get("interest_amount"))
            - to_money(merged.get("fees_amount"))
        )
        if updates["principal_amount"] < 0:
            raise HTTPException(
                status_code=400, detail="interest_amount and fees_amount cannot exceed payment_amount"
            )

    updates["updated_at"] = datetime.utcnow().isoformat()
    if not dynamo.update_debt_payment(debt_id, payment_id, updates):
        raise HTTPException(status_code=404, detail="Payment not found")

    _recalculate(user_id, debt_id)
    return DebtPaymentPublic(**dynamo.get_debt_payment(debt_id, payment_id))


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(debt_id: str, payment_id: str, user_id: str = Depends(get_current_user_id)):
    _get_owned_debt(user_id, debt_id)
    if not dynamo.delete_debt_payment(debt_id, payment_id):
        raise HTTPException(status_code=404, detail="Payment not found")
    _recalculate(user_id, debt_id)
    return None
