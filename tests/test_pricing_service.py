from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.core.errors import NotFound
from app.models.catalog_item import CatalogItem
from app.models.promotion import Promotion
from app.services.pricing_service import discounted_price, price_for, quote_item

from conftest import NOW


def _promo(title, kind, value, applicable_to="all", item_ids=(), active=True, start=None, end=None):
    return SimpleNamespace(
        id=title.lower(),
        title=title,
        discount_type=kind,
        discount_value=Decimal(value),
        applicable_to=applicable_to,
        item_ids=list(item_ids),
        is_active=active,
        start_date=start or NOW - timedelta(days=1),
        end_date=end or NOW + timedelta(days=1),
    )


def test_lowest_price_wins():
    a = _promo("A", "percentage", "10")
    b = _promo("B", "fixed", "150")
    q = price_for(Decimal("2000"), "car", "car-1", [a, b], now=NOW)
    assert q.final_price == Decimal("1800.00")
    assert q.discount == Decimal("200.00")
    assert q.promotion_title == "A"


def test_tie_keeps_first_promotion():
    a = _promo("A", "fixed", "100")
    b = _promo("B", "percentage", "5")
    q = price_for(Decimal("2000"), "car", "car-1", [a, b], now=NOW)
    assert q.final_price == Decimal("1900.00")
    assert q.promotion_title == "A"


def test_fixed_discount_never_goes_negative():
    assert discounted_price(Decimal("100.00"), _promo("Big", "fixed", "250")) == Decimal("0.00")


def test_scope_and_window_are_respected():
    other_item = _promo("Other", "percentage", "50", applicable_to="car", item_ids=["car-2"])
    tours = _promo("Tours", "percentage", "50", applicable_to="tour", item_ids=["car-1"])
    expired = _promo("Old", "percentage", "50", end=NOW - timedelta(hours=1))
    paused = _promo("Paused", "percentage", "50", active=False)
    q = price_for(Decimal("2000"), "car", "car-1", [other_item, tours, expired, paused], now=NOW)
    assert q.final_price == Decimal("2000.00")
    assert q.applied_promotion is None
    assert q.promotion_title is None


def test_quote_item_uses_running_promotions(db):
    db.add(CatalogItem(id="car-1", item_type="car", name="Toyota Vios", base_price=Decimal("1000.00")))
    db.add(Promotion(
        id="p1", title="Summer", discount_type="percentage", discount_value=Decimal("20"),
        applicable_to="car", item_ids=["car-1"], is_active=True,
        start_date=NOW - timedelta(days=1), end_date=NOW + timedelta(days=1),
    ))
    db.commit()
    q = quote_item(db, "car-1", quantity=3, now=NOW)
    assert q.original_price == Decimal("3000.00")
    assert q.final_price == Decimal("2400.00")
    assert q.promotion_title == "Summer"


def test_quote_unknown_item(db):
    with pytest.raises(NotFound):
        quote_item(db, "nope", now=NOW)
