from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .periods import as_date
from .rollover import ZERO, Number, to_money

ACTIVE = "active"
PAID_OFF = "paid_off"


@dataclass
class DebtRecalculation:
    """Derived state of a debt after replaying its whole payment ledger."""

    current_balance: Decimal
    total_paid: Decimal
    payment_count: int
    status: str
    last_payment_date: Optional[str] = None
    last_payment_amount: Optional[Decimal] = None
    balances_after_payment: Dict[str, Decimal] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("balances_after_payment")
        return data


def _latest_first_key(payment: Mapping[str, Any]):
    return (
        as_date(payment.get("payment_date")),
        str(payment.get("created_at") or ""),
        str(payment.get("payment_id") or ""),
    )


def recalculate_debt(
    original_amount: Number,
    payments: Sequence[Mapping[str, Any]],
    current_status: str = ACTIVE,
) -> DebtRecalculation:
    """
    Rebuild a debt's balance from its original amount and every payment.

    The balance is ``max(0, original - sum(payment_amount))`` regardless of the
    order payments were recorded in, so replaying the same ledger twice always
    gives the same answer.
    """
    original = to_money(original_amount)
    ordered: List[Mapping[str, Any]] = sorted(payments, key=_latest_first_key, reverse=True)

    total_paid = sum((to_money(p.get("payment_amount")) for p in ordered), ZERO)
    balance = max(original - total_paid, ZERO)

    status = current_status or ACTIVE
    if balance == ZERO and ordered:
        status = PAID_OFF
    elif status == PAID_OFF and balance > ZERO:
        status = ACTIVE

    running = original
    balances: Dict[str, Decimal] = {}
    for payment in reversed(ordered):
        running = max(running - to_money(payment.get("payment_amount")), ZERO)
        if payment.get("payment_id"):
            balances[payment["payment_id"]] = running

    latest = ordered[0] if ordered else None
    return DebtRecalculation(
        current_balance=balance,
        total_paid=total_paid,
        payment_count=len(ordered),
        status=status,
        last_payment_date=as_date(latest["payment_date"]).isoformat() if latest else None,
        last_payment_amount=to_money(latest.get("payment_amount")) if latest else None,
        balances_after_payment=balances,
    )
