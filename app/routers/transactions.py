from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.security import get_current_user_id
from app.db import dynamo
from app.models.transaction import (
    TransactionCreate,
    TransactionInDB,
    TransactionPublic,
    TransactionUpdate,
)

router = APIRouter()


@router.post("/", response_model=TransactionPublic, status_code=status.HTTP_201_CREATED)
def create_transaction(transaction: TransactionCreate, user_id: str = Depends(get_current_user_id)):
    transaction_db = TransactionInDB(user_id=user_id, **transaction.model_dump())
    success = dynamo.put_transaction(transaction_db.model_dump())
    if not success:
        raise HTTPException(status_code=500, detail="Failed to save transaction")
    return TransactionPublic(**transaction_db.model_dump())


@router.get("/", response_model=List[TransactionPublic])
def list_transactions(
    start: Optional[date] = None,
    end: Optional[date] = None,
    user_id: str = Depends(get_current_user_id),
):
    """
    start/end are inclusive ISO dates. Example: ?start=2025-11-01&end=2025-11-30
    """
    if start and end and end < start:
        raise HTTPException(status_code=400, detail="end cannot be before start")
    transactions = dynamo.get_transactions_for_user(user_id, start, end)
    return [TransactionPublic(**t) for t in transactions]


@router.get("/{transaction_id}", response_model=TransactionPublic)
def get_transaction(transaction_id: str, user_id: str = Depends(get_current_user_id)):
    transaction = dynamo.get_transaction(user_id, transaction_id)
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionPublic(**transaction)


@router.put("/{transaction_id}", response_model=TransactionPublic)
def update_transaction(
    transaction_id: str,
    transaction_update: TransactionUpdate,
    user_id: str = Depends(get_current_user_id),
):
    mutable_fields = transaction_update.model_dump(exclude_unset=True)
    if not mutable_fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    updated = dynamo.update_transaction(user_id, transaction_id, mutable_fields)
    if not updated:
        raise HTTPException(status_code=404, detail="Transaction not found")

    return TransactionPublic(**updated)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(transaction_id: str, user_id: str = Depends(get_current_user_id)):
    deleted = dynamo.delete_transaction(user_id, transaction_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return None
