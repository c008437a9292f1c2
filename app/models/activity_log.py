from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base
from app.db.types import UTCDateTime, utcnow

class ActivityLog(Base):
    """Staff action trail (status changes, refund decisions, promotion edits)."""
    __tablename__ = "activity_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    actor_id: Mapped[str] = mapped_column(String(36), index=True)
    action: Mapped[str] = mapped_column(String(60), index=True)  # e.g. booking.approve, refund.resolve
    entity_ref: Mapped[str] = mapped_column(String(36), index=True)  # booking ref, refund id, promotion id
    details_json: Mapped[str] = mapped_column(Text, default="{}")
    link: Mapped[str] = mapped_column(String(255), default="")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
