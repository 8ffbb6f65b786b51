"""
budget_engine
~~~~~~~~~~~~~

Budget cycle library for the Personal Finance API. Period date arithmetic,
rollover strategies, debt ledger recalculation and the budget/debt analytics
live here so the FastAPI routes, the scheduler jobs and the cron endpoints all
share the same rules.
"""

from .analyzer import BudgetProgress, FinanceAnalyzer
from .debts import DebtRecalculation, recalculate_debt
from .periods import (
    PeriodType,
    calculate_next_reset_date,
    calculate_period_end,
    generate_period_label,
    iter_periods,
)
from .rollover import RolloverConfigError, RolloverStrategy, calculate_rollover, next_allocation

__all__ = [
    "BudgetProgress",
    "DebtRecalculation",
    "FinanceAnalyzer",
    "PeriodType",
    "RolloverConfigError",
    "RolloverStrategy",
    "calculate_next_reset_date",
    "calculate_period_end",
    "calculate_rollover",
    "generate_period_label",
    "iter_periods",
    "next_allocation",
    "recalculate_debt",
]
