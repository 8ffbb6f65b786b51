from datetime import date, datetime
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from app.core.config import settings
from app.models.common import Money
from budget_engine.periods import utc_today

TransactionType = Literal["debit", "credit", "transfer"]


class TransactionCreate(BaseModel):
    account_id: str
    category_id: Optional[str] = None
    amount: Money  # negative = money out
    type: TransactionType = "debit"
    description: str = Field(..., min_length=1)
    merchant: Optional[str] = None
    currency: str = settings.DEFAULT_CURRENCY
    transaction_date: date = Field(default_factory=utc_today)
    notes: Optional[str] = None


class TransactionUpdate(BaseModel):
    category_id: Optional[str] = None
    amount: Optional[Money] = None
    type: Optional[TransactionType] = None
    description: Optional[str] = Field(default=None, min_length=1)
    merchant: Optional[str] = None
    notes: Optional[str] = None


class TransactionInDB(BaseModel):
    user_id: str
    transaction_id: str = ""  # '<transaction_date>#<suffix>', sorts by date
    account_id: str
    category_id: Optional[str] = None
    amount: float
    type: TransactionType = "debit"
    description: str
    merchant: Optional[str] = None
    currency: str = settings.DEFAULT_CURRENCY
    transaction_date: date
    notes: Optional[str] = None
    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())

    def model_post_init(self, __context) -> None:
        if not self.transaction_id:
            self.transaction_id = f"{self.transaction_date.isoformat()}#{uuid4().hex[:8]}"


class TransactionPublic(BaseModel):
    transaction_id: str
    account_id: str
    category_id: Optional[str] = None
    amount: float
    type: TransactionType
    description: str
    merchant: Optional[str] = None
    currency: str
    transaction_date: date
    notes: Optional[str] = None
