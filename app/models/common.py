from typing import Annotated

from pydantic import AfterValidator


def check_money(value: float) -> float:
    """Amounts are stored in cents; reject more than two decimal places."""
    if round(value, 2) != value:
        raise ValueError("must have at most 2 decimal places")
    return value


Money = Annotated[float, AfterValidator(check_money)]
