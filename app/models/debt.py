from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from app.core.config import settings
from app.models.common import Money
from budget_engine.periods import utc_today

DebtType = Literal[
    "credit_card",
    "personal_loan",
    "student_loan",
    "mortgage",
    "car_loan",
    "medical",
    "personal",
    "line_of_credit",
    "bnpl",
]
DebtStatus = Literal["active", "paid_off", "in_collections", "settled", "archived"]
PaymentFrequency = Literal["weekly", "biweekly", "monthly", "one_time"]
PaymentMethod = Literal["bank_transfer", "credit_card", "cash", "check", "auto_pay"]


class DebtCreate(BaseModel):
    name: str = Field(..., min_length=1)
    debt_type: DebtType
    creditor_name: str = Field(..., min_length=1)
    original_amount: Optional[Money] = Field(default=None, gt=0)
    # Accepted for compatibility; only used as the original amount when that is missing.
    current_balance: Optional[Money] = Field(default=None, ge=0)
    interest_rate: float = Field(..., ge=0)
    minimum_payment: Money = Field(..., ge=0)
    payment_frequency: PaymentFrequency = "monthly"
    payment_due_day: Optional[int] = Field(default=None, ge=1, le=31)
    next_due_date: Optional[date] = None
    status: DebtStatus = "active"
    currency: str = settings.DEFAULT_CURRENCY
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def require_amount(self):
        if self.original_amount is None and self.current_balance is None:
            raise ValueError("original_amount or current_balance is required")
        return self


class DebtUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    creditor_name: Optional[str] = Field(default=None, min_length=1)
    original_amount: Optional[Money] = Field(default=None, gt=0)
    interest_rate: Optional[float] = Field(default=None, ge=0)
    minimum_payment: Optional[Money] = Field(default=None, ge=0)
    payment_frequency: Optional[PaymentFrequency] = None
    payment_due_day: Optional[int] = Field(default=None, ge=1, le=31)
    next_due_date: Optional[date] = None
    status: Optional[DebtStatus] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None


class DebtInDB(BaseModel):
    user_id: str
    debt_id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    debt_type: DebtType
    creditor_name: str
    original_amount: float
    current_balance: float
    interest_rate: float
    minimum_payment: float
    payment_frequency: PaymentFrequency
    payment_due_day: Optional[int] = None
    next_due_date: Optional[date] = None
    status: DebtStatus = "active"
    currency: str = settings.DEFAULT_CURRENCY
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    total_paid: float = 0.0
    payment_count: int = 0
    last_payment_date: Optional[date] = None
    last_payment_amount: Optional[float] = None
    last_balance_update: str = Field(default_factory=lambda: datetime.utcnow().isoformat())
    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())


class DebtPublic(BaseModel):
    debt_id: str
    name: str
    debt_type: DebtType
    creditor_name: str
    original_amount: float
    current_balance: float
    interest_rate: float
    minimum_payment: float
    payment_frequency: PaymentFrequency
    payment_due_day: Optional[int] = None
    next_due_date: Optional[date] = None
    status: DebtStatus
    currency: str
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    total_paid: float = 0.0
    payment_count: int = 0
    last_payment_date: Optional[date] = None
    last_payment_amount: Optional[float] = None
    last_balance_update: Optional[str] = None
    created_at: str


class DebtPaymentCreate(BaseModel):
    payment_date: date = Field(default_factory=utc_today)
    payment_amount: Money = Field(..., gt=0)
    principal_amount: Optional[Money] = Field(default=None, ge=0)
    interest_amount: Money = Field(default=0.0, ge=0)
    fees_amount: Money = Field(default=0.0, ge=0)
    payment_method: Optional[PaymentMethod] = None
    confirmation_number: Optional[str] = None
    notes: Optional[str] = None
    is_extra_payment: bool = False

    @model_validator(mode="after")
    def default_principal(self):
        if self.principal_amount is None:
            self.principal_amount = round(self.payment_amount - self.interest_amount - self.fees_amount, 2)
        if self.principal_amount < 0:
            raise ValueError("interest_amount and fees_amount cannot exceed payment_amount")
        return self


class DebtPaymentUpdate(BaseModel):
    payment_date: Optional[date] = None
    payment_amount: Optional[Money] = Field(default=None, gt=0)
    principal_amount: Optional[Money] = Field(default=None, ge=0)
    interest_amount: Optional[Money] = Field(default=None, ge=0)
    fees_amount: Optional[Money] = Field(default=None, ge=0)
    payment_method: Optional[PaymentMethod] = None
    confirmation_number: Optional[str] = None
    notes: Optional[str] = None
    is_extra_payment: Optional[bool] = None


class DebtPaymentInDB(BaseModel):
    user_id: str
    debt_id: str
    payment_id: str = Field(default_factory=lambda: str(uuid4()))
    payment_date: date
    payment_amount: float
    principal_amount: float
    interest_amount: float = 0.0
    fees_amount: float = 0.0
    balance_after_payment: Optional[float] = None
    payment_method: Optional[PaymentMethod] = None
    confirmation_number: Optional[str] = None
    notes: Optional[str] = None
    is_extra_payment: bool = False
    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())


class DebtPaymentPublic(BaseModel):
    payment_id: str
    debt_id: str
    payment_date: date
    payment_amount: float
    principal_amount: float
    interest_amount: float
    fees_amount: float
    balance_after_payment: Optional[float] = None
    payment_method: Optional[PaymentMethod] = None
    confirmation_number: Optional[str] = None
    notes: Optional[str] = None
    is_extra_payment: bool = False
    created_at: str
