from decimal import Decimal
from sqlalchemy import String, Numeric, Date, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import date, datetime
from app.db.session import Base
from app.db.types import UTCDateTime, utcnow
from app.models.note import RefundNote

class RefundRequest(Base):
    __tablename__ = "refund_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # one request per booking
    booking_id: Mapped[str] = mapped_column(ForeignKey("bookings.id"), unique=True)
    booking_ref: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    user_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)  # booking owner, if any

    item_type: Mapped[str] = mapped_column(String(12))
    item_name: Mapped[str] = mapped_column(String(200))
    booking_start_date: Mapped[date] = mapped_column(Date)
    booking_total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    submitter_name: Mapped[str] = mapped_column(String(200))
    submitter_email: Mapped[str] = mapped_column(String(320))
    submitter_phone: Mapped[str] = mapped_column(String(40))
    reason: Mapped[str] = mapped_column(Text)

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, approved, declined, confirmed
    # frozen at submission time, never recomputed
    refund_policy: Mapped[str] = mapped_column(String(8))  # full, half, none
    calculated_refund_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)

    notes: Mapped[list[RefundNote]] = relationship(
        order_by=[RefundNote.seq, RefundNote.created_at], cascade="all, delete-orphan"
    )
