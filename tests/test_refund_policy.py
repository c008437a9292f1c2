from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.services.refund_policy import calculate_refund

NOW = datetime(2026, 3, 2, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("offset_days,policy,amount", [
    (10, "full", Decimal("1000.00")),
    (7, "full", Decimal("1000.00")),
    (3, "half", Decimal("500.00")),
    (0, "half", Decimal("500.00")),
    (-1, "none", Decimal("0.00")),
])
def test_refund_tiers(offset_days, policy, amount):
    quote = calculate_refund(NOW.date() + timedelta(days=offset_days), Decimal("1000.00"), NOW)
    assert quote.policy == policy
    assert quote.amount == amount


def test_half_refund_rounds_to_cents():
    quote = calculate_refund(date(2026, 3, 4), Decimal("999.99"), NOW)
    assert quote.amount == Decimal("500.00")


def test_start_passed_earlier_today_refunds_nothing():
    later_today = NOW + timedelta(hours=10)
    assert calculate_refund(NOW.date(), Decimal("1000.00"), later_today).policy == "none"
