from datetime import date, datetime
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from app.core.config import settings
from app.models.common import Money
from budget_engine import PeriodType, RolloverStrategy
from budget_engine.periods import utc_today
from budget_engine.rollover import validate_rollover_config


class BudgetCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = ""
    amount: Money = Field(..., gt=0)
    currency: str = settings.DEFAULT_CURRENCY
    period: PeriodType = PeriodType.MONTHLY
    reset_day: Optional[int] = Field(default=None, ge=1, le=31)  # monthly only
    start_date: date = Field(default_factory=utc_today)
    end_date: Optional[date] = None
    category_ids: List[str] = Field(default_factory=list)
    account_ids: List[str] = Field(default_factory=list)
    alert_threshold: float = Field(default=settings.DEFAULT_ALERT_THRESHOLD, gt=0, le=100)
    rollover_strategy: RolloverStrategy = RolloverStrategy.NONE
    rollover_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    rollover_limit: Optional[Money] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_consistency(self):
        validate_rollover_config(self.rollover_strategy, self.rollover_percentage, self.rollover_limit)
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class BudgetUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    amount: Optional[Money] = Field(default=None, gt=0)
    period: Optional[PeriodType] = None
    reset_day: Optional[int] = Field(default=None, ge=1, le=31)
    end_date: Optional[date] = None
    category_ids: Optional[List[str]] = None
    account_ids: Optional[List[str]] = None
    alert_threshold: Optional[float] = Field(default=None, gt=0, le=100)
    rollover_strategy: Optional[RolloverStrategy] = None
    rollover_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    rollover_limit: Optional[Money] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class BudgetInDB(BaseModel):
    user_id: str
    budget_id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    description: Optional[str] = ""
    amount: float
    currency: str = settings.DEFAULT_CURRENCY
    period: PeriodType
    reset_day: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None
    category_ids: List[str] = Field(default_factory=list)
    account_ids: List[str] = Field(default_factory=list)
    alert_threshold: float = settings.DEFAULT_ALERT_THRESHOLD
    rollover_strategy: RolloverStrategy = RolloverStrategy.NONE
    rollover_percentage: Optional[float] = None
    rollover_limit: Optional[float] = None
    is_active: bool = True
    current_period_start: Optional[date] = None
    current_period_end: Optional[date] = None
    next_reset_date: Optional[date] = None
    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())


class BudgetPublic(BaseModel):
    budget_id: str
    name: str
    description: Optional[str] = ""
    amount: float
    currency: str
    period: PeriodType
    reset_day: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None
    category_ids: List[str] = Field(default_factory=list)
    account_ids: List[str] = Field(default_factory=list)
    alert_threshold: float
    rollover_strategy: RolloverStrategy
    rollover_percentage: Optional[float] = None
    rollover_limit: Optional[float] = None
    is_active: bool
    current_period_start: Optional[date] = None
    current_period_end: Optional[date] = None
    next_reset_date: Optional[date] = None
    created_at: str
    updated_at: Optional[str] = None


class BudgetPeriodPublic(BaseModel):
    budget_id: str
    period_id: str
    period_start: date
    period_end: Optional[date] = None
    period_label: str
    base_amount: float
    rollover_amount: float
    allocated_amount: float
    spent_amount: float
    status: str
    completed_at: Optional[str] = None
    created_at: str
