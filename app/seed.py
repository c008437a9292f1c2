import logging
import uuid
from datetime import timedelta
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.db.session import SessionLocal
from app.db.types import utcnow
from app.models.catalog_item import CatalogItem
from app.models.promotion import Promotion

logger = logging.getLogger(__name__)

# (type, name, base price in PHP)
CATALOG = [
    ("car", "Toyota Vios (Automatic)", Decimal("1800.00")),
    ("car", "Toyota Innova (7-seater)", Decimal("2800.00")),
    ("car", "Mitsubishi Montero Sport", Decimal("3500.00")),
    ("tour", "Island Hopping Day Tour", Decimal("1500.00")),
    ("tour", "City Heritage Walk", Decimal("650.00")),
    ("transport", "Airport Transfer (Van)", Decimal("1200.00")),
    ("transport", "Port Shuttle", Decimal("450.00")),
]


def ensure_item(db: Session, item_type: str, name: str, base_price: Decimal) -> CatalogItem:
    item = db.query(CatalogItem).filter(CatalogItem.item_type == item_type, CatalogItem.name == name).first()
    if item:
        return item
    item = CatalogItem(id=str(uuid.uuid4()), item_type=item_type, name=name, base_price=base_price, is_available=True)
    db.add(item)
    return item


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM catalog_items LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("catalog_items table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        for item_type, name, price in CATALOG:
            ensure_item(db, item_type, name, price)
        db.commit()

        # one running promotion so quotes show a discount out of the box
        if not db.query(Promotion).first():
            now = utcnow()
            db.add(Promotion(
                id=str(uuid.uuid4()),
                title="Launch Week",
                discount_type="percentage",
                discount_value=Decimal("10"),
                applicable_to="car",
                item_ids=[i.id for i in db.query(CatalogItem).filter(CatalogItem.item_type == "car").all()],
                is_active=True,
                start_date=now,
                end_date=now + timedelta(days=7),
            ))
            db.commit()
        logger.info("Seed complete: %d catalog items", db.query(CatalogItem).count())
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
