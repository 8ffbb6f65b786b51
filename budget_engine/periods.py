from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Iterator, Optional, Tuple, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

DateLike = Union[date, datetime, str]


class PeriodType(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    ONE_TIME = "one-time"

    @property
    def recurring(self) -> bool:
        return self is not PeriodType.ONE_TIME


def as_date(value: Optional[DateLike]) -> Optional[date]:
    """Normalise ISO strings and datetimes coming back from DynamoDB into dates."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date_parser.isoparse(str(value)).date()


def calculate_next_reset_date(
    start: DateLike,
    period: Union[PeriodType, str],
    reset_day: Optional[int] = None,
) -> Optional[date]:
    """
    Return the date on which a period starting at ``start`` rolls over.

    ``reset_day`` only applies to monthly budgets and is clamped to the last
    day of the target month (day 31 in February gives Feb 28/29).
    One-time budgets never reset and return ``None``.
    """
    start = as_date(start)
    period = PeriodType(period)

    if period is PeriodType.WEEKLY:
        return start + timedelta(days=7)

    if period is PeriodType.MONTHLY:
        first_of_next = start + relativedelta(months=1, day=1)
        if not reset_day:
            return first_of_next
        if not 1 <= reset_day <= 31:
            raise ValueError(f"reset_day must be between 1 and 31, got {reset_day}")
        last_day = calendar.monthrange(first_of_next.year, first_of_next.month)[1]
        return first_of_next.replace(day=min(reset_day, last_day))

    if period is PeriodType.QUARTERLY:
        return start + relativedelta(months=3)

    if period is PeriodType.YEARLY:
        return date(start.year + 1, 1, 1)

    return None


def calculate_period_end(
    start: DateLike,
    period: Union[PeriodType, str],
    reset_day: Optional[int] = None,
    end_date: Optional[DateLike] = None,
) -> Optional[date]:
    """Inclusive last day of the period; open-ended one-time periods return None."""
    next_reset = calculate_next_reset_date(start, period, reset_day)
    if next_reset is None:
        return as_date(end_date)
    return next_reset - timedelta(days=1)


def generate_period_label(
    start: DateLike,
    end: Optional[DateLike],
    period: Union[PeriodType, str],
) -> str:
    start = as_date(start)
    end = as_date(end)
    period = PeriodType(period)

    if period is PeriodType.WEEKLY:
        return f"Week of {_short_date(start)}"
    if period is PeriodType.MONTHLY:
        return start.strftime("%B %Y")
    if period is PeriodType.QUARTERLY:
        quarter = (start.month - 1) // 3 + 1
        return f"Q{quarter} {start.year}"
    if period is PeriodType.YEARLY:
        return str(start.year)
    if end is None:
        return f"From {_short_date(start)}"
    return f"{_short_date(start)} – {_short_date(end)}"


def iter_periods(
    start: DateLike,
    period: Union[PeriodType, str],
    until: DateLike,
    reset_day: Optional[int] = None,
) -> Iterator[Tuple[date, Optional[date]]]:
    """
    Yield consecutive ``(period_start, period_end)`` windows beginning at
    ``start`` for every period that has started on or before ``until``.
    """
    current = as_date(start)
    until = as_date(until)
    period = PeriodType(period)

    while current <= until:
        end = calculate_period_end(current, period, reset_day)
        yield current, end
        if end is None:
            return
        current = end + timedelta(days=1)


def _short_date(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def utc_today() -> date:
    return datetime.now(timezone.utc).date()
