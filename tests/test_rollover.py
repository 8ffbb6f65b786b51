from decimal import Decimal

import pytest

from budget_engine import RolloverConfigError, calculate_rollover, next_allocation
from budget_engine.rollover import to_money, validate_rollover_config


def test_no_rollover():
    assert calculate_rollover(500, 200, "none") == Decimal("0.00")


def test_full_rollover_carries_everything_unused():
    assert calculate_rollover(500, 120, "full") == Decimal("380.00")


def test_partial_rollover():
    assert calculate_rollover(500, 100, "partial", percentage=50) == Decimal("200.00")
    assert calculate_rollover(100, 0, "partial", percentage=33.333) == Decimal("33.33")


def test_capped_rollover():
    assert calculate_rollover(500, 100, "capped", limit=150) == Decimal("150.00")
    assert calculate_rollover(500, 450, "capped", limit=150) == Decimal("50.00")


def test_overspent_period_rolls_nothing():
    for strategy, kwargs in [("full", {}), ("partial", {"percentage": 80}), ("capped", {"limit": 100})]:
        assert calculate_rollover(500, 650.25, strategy, **kwargs) == Decimal("0.00")


def test_rollover_never_exceeds_unused():
    assert calculate_rollover(100, 40, "partial", percentage=100) == Decimal("60.00")
    assert calculate_rollover(100, 40, "capped", limit=1000) == Decimal("60.00")


def test_invalid_configs():
    with pytest.raises(RolloverConfigError):
        validate_rollover_config("partial")
    with pytest.raises(RolloverConfigError):
        validate_rollover_config("partial", percentage=120)
    with pytest.raises(RolloverConfigError):
        validate_rollover_config("capped")
    with pytest.raises(RolloverConfigError):
        validate_rollover_config("capped", limit=-1)
    with pytest.raises(RolloverConfigError):
        validate_rollover_config("double")


def test_money_rounding_and_allocation():
    assert to_money(0.1 + 0.2) == Decimal("0.30")
    assert to_money(None) == Decimal("0.00")
    assert to_money("2.675") == Decimal("2.68")
    assert next_allocation(500, Decimal("380.00")) == Decimal("880.00")
