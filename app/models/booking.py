from decimal import Decimal
from sqlalchemy import String, Integer, Numeric, Date, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import date, datetime
from app.db.session import Base
from app.db.types import UTCDateTime, utcnow
from app.domain.deadlines import Deadline, DeadlineKind

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("total_price >= 0", name="ck_bookings_total_price"),
        CheckConstraint("amount_paid >= 0", name="ck_bookings_amount_paid"),
        CheckConstraint("(deadline_kind = 'none') = (deadline_at IS NULL)", name="ck_bookings_deadline"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_ref: Mapped[str] = mapped_column(String(32), unique=True, index=True)

    user_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)  # owner; None for guests
    first_name: Mapped[str] = mapped_column(String(120))
    last_name: Mapped[str] = mapped_column(String(120))
    email: Mapped[str] = mapped_column(String(320), index=True)
    phone: Mapped[str] = mapped_column(String(40), default="")
    address: Mapped[str] = mapped_column(String(300), default="")

    item_type: Mapped[str] = mapped_column(String(12), index=True)  # car, tour, transport
    item_id: Mapped[str] = mapped_column(String(36), index=True)
    item_name: Mapped[str] = mapped_column(String(200))

    start_date: Mapped[date] = mapped_column(Date, index=True)
    end_date: Mapped[date] = mapped_column(Date)
    number_of_days: Mapped[int] = mapped_column(Integer, default=1)
    number_of_guests: Mapped[int | None] = mapped_column(Integer, nullable=True)
    special_requests: Mapped[str] = mapped_column(Text, default="")

    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    payment_option: Mapped[str] = mapped_column(String(12))  # full, downpayment
    original_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    discount_applied: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    promotion_title: Mapped[str | None] = mapped_column(String(200), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, confirmed, fully_paid, completed, rejected, cancelled

    deadline_kind: Mapped[str] = mapped_column(String(32), default=DeadlineKind.NONE.value, index=True)
    deadline_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)

    payments: Mapped[list["BookingPayment"]] = relationship(
        back_populates="booking", order_by="BookingPayment.seq", cascade="all, delete-orphan"
    )
    notes: Mapped[list["BookingNote"]] = relationship(
        order_by="[BookingNote.seq, BookingNote.created_at]", cascade="all, delete-orphan"
    )

    @property
    def deadline(self) -> Deadline:
        return Deadline(DeadlineKind(self.deadline_kind or DeadlineKind.NONE.value), self.deadline_at)

    @deadline.setter
    def deadline(self, value: Deadline) -> None:
        self.deadline_kind = value.kind.value
        self.deadline_at = value.due_at

    # Read-only views of the single deadline
    @property
    def pending_expires_at(self) -> datetime | None:
        return self.deadline.due_for(DeadlineKind.AWAITING_PAYMENT)

    @property
    def payment_due_date(self) -> datetime | None:
        return self.deadline.due_for(DeadlineKind.AWAITING_BALANCE)

    @property
    def admin_confirmation_due_date(self) -> datetime | None:
        return self.deadline.due_for(DeadlineKind.AWAITING_ADMIN_CONFIRMATION)


from app.models.payment import BookingPayment  # noqa: E402,F401
from app.models.note import BookingNote  # noqa: E402,F401
