from sqlalchemy.orm import Session
from app.models.catalog_item import CatalogItem


class DbItemCatalog:
    """ItemCatalog reading the catalog_items table."""

    def __init__(self, db: Session):
        self.db = db

    def get_availability(self, item_id: str, item_type: str) -> bool:
        item = self.db.get(CatalogItem, item_id)
        return bool(item and item.item_type == item_type and item.is_available)

    def get_name(self, item_id: str) -> str | None:
        item = self.db.get(CatalogItem, item_id)
        return item.name if item else None
