from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base
from app.db.types import UTCDateTime, utcnow

class EmailLog(Base):
    __tablename__ = "email_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    to_email: Mapped[str] = mapped_column(String(320), index=True)
    subject: Mapped[str] = mapped_column(String(200))
    body: Mapped[str | None] = mapped_column(Text, nullable=True)  # stored for worker retry
    template_kind: Mapped[str] = mapped_column(String(40), default="")  # booking-approved, refund-declined, ...
    status: Mapped[str] = mapped_column(String(30), default="queued")  # queued, sent, failed
    related_ref: Mapped[str] = mapped_column(String(32), default="", index=True)  # booking reference
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
