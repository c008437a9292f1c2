from decimal import Decimal
from sqlalchemy import String, Boolean, Numeric, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base
from app.db.types import UTCDateTime, utcnow

class Promotion(Base):
    __tablename__ = "promotions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    discount_type: Mapped[str] = mapped_column(String(12))  # percentage, fixed
    discount_value: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    applicable_to: Mapped[str] = mapped_column(String(12), index=True)  # all, car, tour, transport
    item_ids: Mapped[list[str]] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
