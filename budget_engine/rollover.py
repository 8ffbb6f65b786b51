from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional, Union

Number = Union[Decimal, float, int, str]

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


class RolloverStrategy(str, Enum):
    NONE = "none"
    FULL = "full"
    PARTIAL = "partial"
    CAPPED = "capped"


class RolloverConfigError(ValueError):
    """Raised when rollover parameters don't fit the selected strategy."""


def to_money(value: Optional[Number]) -> Decimal:
    """Convert floats, ints, strings or Decimals into a cent-rounded Decimal."""
    if value is None or value == "":
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def validate_rollover_config(
    strategy: Union[RolloverStrategy, str],
    percentage: Optional[Number] = None,
    limit: Optional[Number] = None,
) -> RolloverStrategy:
    try:
        strategy = RolloverStrategy(strategy)
    except ValueError:
        raise RolloverConfigError(f"Unknown rollover strategy: {strategy}") from None

    if strategy is RolloverStrategy.PARTIAL:
        if percentage is None:
            raise RolloverConfigError("rollover_percentage is required for partial rollover")
        if not ZERO <= Decimal(str(percentage)) <= Decimal(100):
            raise RolloverConfigError("rollover_percentage must be between 0 and 100")
    if strategy is RolloverStrategy.CAPPED:
        if limit is None:
            raise RolloverConfigError("rollover_limit is required for capped rollover")
        if Decimal(str(limit)) < 0:
            raise RolloverConfigError("rollover_limit cannot be negative")
    return strategy


def calculate_rollover(
    allocated: Number,
    spent: Number,
    strategy: Union[RolloverStrategy, str],
    percentage: Optional[Number] = None,
    limit: Optional[Number] = None,
) -> Decimal:
    """
    Amount of the unused allocation carried into the next period.

    Overspent periods (negative unused) carry nothing. The result never
    exceeds the unused amount and is never negative.
    """
    strategy = validate_rollover_config(strategy, percentage, limit)
    unused = max(to_money(allocated) - to_money(spent), ZERO)

    if strategy is RolloverStrategy.NONE or unused == ZERO:
        return ZERO
    if strategy is RolloverStrategy.FULL:
        return unused
    if strategy is RolloverStrategy.PARTIAL:
        share = unused * Decimal(str(percentage)) / Decimal(100)
        return min(to_money(share), unused)
    return min(unused, to_money(limit))


def next_allocation(base_amount: Number, rollover: Number) -> Decimal:
    return to_money(base_amount) + to_money(rollover)
