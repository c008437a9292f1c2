from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.db.types import utcnow
from app.models.catalog_item import CatalogItem
from app.models.promotion import Promotion
from app.services.promotion_service import active_promotions

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class PriceQuote:
    final_price: Decimal
    original_price: Decimal
    discount: Decimal
    applied_promotion: Promotion | None = None

    @property
    def promotion_title(self) -> str | None:
        return self.applied_promotion.title if self.applied_promotion is not None else None


def _money(value) -> Decimal:
    return Decimal(value).quantize(CENTS, ROUND_HALF_UP)


def is_running(promo, now: datetime) -> bool:
    return bool(promo.is_active) and promo.start_date <= now <= promo.end_date


def applies_to(promo, item_type: str, item_id: str) -> bool:
    if promo.applicable_to == "all":
        return True
    return promo.applicable_to == item_type and item_id in (promo.item_ids or [])


def discounted_price(base_price: Decimal, promo) -> Decimal:
    value = Decimal(promo.discount_value)
    if promo.discount_type == "percentage":
        price = base_price * (1 - value / 100)
    else:
        price = base_price - value
    # a fixed discount larger than the price makes the item free, never negative
    return max(ZERO, _money(price))


def price_for(base_price, item_type: str, item_id: str, promotions: Iterable,
              now: datetime | None = None) -> PriceQuote:
    """Best (lowest) price for an item across the eligible promotions.

    When ``now`` is given, inactive and out-of-window promotions are skipped;
    otherwise the caller is trusted to pass only running promotions. Ties go to
    the promotion encountered first.
    """
    base = _money(base_price)
    best_price, best_promo = base, None
    for promo in promotions:
        if now is not None and not is_running(promo, now):
            continue
        if not applies_to(promo, item_type, item_id):
            continue
        candidate = discounted_price(base, promo)
        if best_promo is None or candidate < best_price:
            best_price, best_promo = candidate, promo
    if best_promo is None:
        return PriceQuote(final_price=base, original_price=base, discount=ZERO)
    return PriceQuote(
        final_price=best_price,
        original_price=base,
        discount=base - best_price,
        applied_promotion=best_promo,
    )


def quote_item(db: Session, item_id: str, quantity: int = 1, now: datetime | None = None) -> PriceQuote:
    """Price ``quantity`` units (days or guests) of a catalog item against running promotions."""
    item = db.get(CatalogItem, item_id)
    if not item:
        raise NotFound("Item not found", item_id=item_id)
    now = now or utcnow()
    base = Decimal(item.base_price) * max(int(quantity), 1)
    return price_for(base, item.item_type, item.id, active_promotions(db, now))
