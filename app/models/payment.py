from decimal import Decimal
from sqlalchemy import String, Integer, Numeric, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from app.db.session import Base
from app.db.types import UTCDateTime, utcnow

class BookingPayment(Base):
    __tablename__ = "booking_payments"
    __table_args__ = (
        UniqueConstraint("booking_id", "seq", name="uq_booking_payments_seq"),
        CheckConstraint("amount > 0", name="ck_booking_payments_amount"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_id: Mapped[str] = mapped_column(ForeignKey("bookings.id", ondelete="CASCADE"), index=True)
    seq: Mapped[int] = mapped_column(Integer)  # 1-based position in the booking's payment list
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    payment_reference: Mapped[str] = mapped_column(String(40), index=True)        # system generated
    manual_reference: Mapped[str | None] = mapped_column(String(120), nullable=True)  # bank / e-wallet reference
    proof_ref: Mapped[str] = mapped_column(String(512))                            # stored proof-of-payment object
    paid_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)

    booking: Mapped["Booking"] = relationship(back_populates="payments")
