from sqlalchemy import String, Integer, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base
from app.db.types import UTCDateTime, utcnow

SYSTEM_AUTHOR = "system"


class _NoteColumns:
    # Notes are append-only; nothing in the services updates or deletes a row.
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # display position; two writers racing on one booking may share a value
    seq: Mapped[int] = mapped_column(Integer)
    text: Mapped[str] = mapped_column(Text)
    author: Mapped[str] = mapped_column(String(36))  # user id, or "system" for the reconciliation sweep
    attachment: Mapped[str | None] = mapped_column(String(512), nullable=True)
    attachment_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)


class BookingNote(_NoteColumns, Base):
    __tablename__ = "booking_notes"

    booking_id: Mapped[str] = mapped_column(ForeignKey("bookings.id", ondelete="CASCADE"), index=True)


class RefundNote(_NoteColumns, Base):
    __tablename__ = "refund_notes"

    refund_request_id: Mapped[str] = mapped_column(ForeignKey("refund_requests.id", ondelete="CASCADE"), index=True)
