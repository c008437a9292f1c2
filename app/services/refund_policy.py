from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal, ROUND_HALF_UP

FULL_REFUND_DAYS = 7
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class RefundQuote:
    policy: str  # full, half, none
    amount: Decimal


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def days_until(start: date | datetime, now: datetime) -> float:
    return (_as_datetime(start) - now).total_seconds() / 86400


def calculate_refund(start: date | datetime, total_price: Decimal, now: datetime) -> RefundQuote:
    """Refund tier for a booking starting at ``start``, evaluated at ``now``.

    Seven or more days out refunds everything, less than that (but before the
    start) refunds half, and once the start has passed nothing is refunded.
    Date-only starts count from midnight UTC of that day.
    """
    days = days_until(start, now)
    total = Decimal(total_price)
    if days >= FULL_REFUND_DAYS:
        return RefundQuote("full", total.quantize(CENTS, ROUND_HALF_UP))
    if days >= 0:
        return RefundQuote("half", (total / 2).quantize(CENTS, ROUND_HALF_UP))
    return RefundQuote("none", Decimal("0.00"))
