from decimal import Decimal
from sqlalchemy import String, Boolean, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base
from app.db.types import UTCDateTime, utcnow

class CatalogItem(Base):
    """Rentable car, tour or transport service as far as bookings need to know it."""
    __tablename__ = "catalog_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    item_type: Mapped[str] = mapped_column(String(12), index=True)  # car, tour, transport
    name: Mapped[str] = mapped_column(String(200))
    base_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))  # per day (car), per guest (tour), per trip (transport)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
