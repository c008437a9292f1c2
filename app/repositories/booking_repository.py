"""Booking persistence, including the conditional update every status change goes through."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import and_, or_, update
from sqlalchemy.orm import Session

from app.db.types import utcnow
from app.domain.booking_state import ACTIVE_STATUSES, BookingStatus
from app.domain.deadlines import NO_DEADLINE, Deadline, DeadlineKind
from app.models.booking import Booking

K = DeadlineKind


class BookingRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, booking_id: str) -> Optional[Booking]:
        return self.db.get(Booking, booking_id)

    def get_by_ref(self, booking_ref: str) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.booking_ref == booking_ref.strip().upper()).first()

    def ref_exists(self, booking_ref: str) -> bool:
        return self.db.query(Booking.id).filter(Booking.booking_ref == booking_ref).first() is not None

    def add(self, booking: Booking) -> Booking:
        self.db.add(booking)
        return booking

    def find_overlapping(self, item_id: str, start: date, end: date) -> Optional[Booking]:
        """First active booking of ``item_id`` whose dates intersect ``[start, end]``."""
        return (
            self.db.query(Booking)
            .filter(
                Booking.item_id == item_id,
                Booking.status.in_([s.value for s in ACTIVE_STATUSES]),
                Booking.start_date <= end,
                Booking.end_date >= start,
            )
            .first()
        )

    def active_for_item(self, item_id: str) -> list[Booking]:
        return (
            self.db.query(Booking)
            .filter(Booking.item_id == item_id, Booking.status.in_([s.value for s in ACTIVE_STATUSES]))
            .all()
        )

    def find_expired(self, now: datetime, limit: int | None = None) -> list[Booking]:
        """Bookings whose governing deadline lies in the past.

        The three predicates: unpaid car/tour holds, confirmed downpayments with
        an overdue balance, and transport bookings staff never confirmed.
        """
        q = (
            self.db.query(Booking)
            .filter(
                Booking.deadline_at != None,  # noqa: E711
                Booking.deadline_at < now,
                or_(
                    and_(
                        Booking.status == BookingStatus.PENDING.value,
                        Booking.item_type.in_(["car", "tour"]),
                        Booking.deadline_kind == K.AWAITING_PAYMENT.value,
                    ),
                    and_(
                        Booking.status == BookingStatus.CONFIRMED.value,
                        Booking.payment_option == "downpayment",
                        Booking.deadline_kind == K.AWAITING_BALANCE.value,
                    ),
                    and_(
                        Booking.status == BookingStatus.PENDING.value,
                        Booking.item_type == "transport",
                        Booking.deadline_kind == K.AWAITING_ADMIN_CONFIRMATION.value,
                    ),
                ),
            )
            .order_by(Booking.deadline_at.asc())
        )
        if limit:
            q = q.limit(limit)
        return q.all()

    def transition(
        self,
        booking_id: str,
        *,
        expected_status: BookingStatus,
        new_status: BookingStatus,
        deadline: Deadline = NO_DEADLINE,
        expired_kind: DeadlineKind | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Atomically move a booking from ``expected_status`` to ``new_status``.

        Only rows still in the expected status are touched; with ``expired_kind``
        the row must also still carry that deadline and it must have passed at
        ``now``. Returns False when another writer got there first.
        """
        conditions = [Booking.id == booking_id, Booking.status == expected_status.value]
        if expired_kind is not None:
            conditions += [Booking.deadline_kind == expired_kind.value, Booking.deadline_at < now]
        stmt = (
            update(Booking)
            .where(*conditions)
            .values(
                status=new_status.value,
                deadline_kind=deadline.kind.value,
                deadline_at=deadline.due_at,
                updated_at=now or utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def search(
        self,
        search: str = "",
        status: str = "",
        item_type: str = "",
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Booking], int]:
        q = self.db.query(Booking)
        if status and status != "all":
            q = q.filter(Booking.status == status)
        if item_type:
            q = q.filter(Booking.item_type == item_type)
        if search:
            like = f"%{search}%"
            q = q.filter(or_(
                Booking.booking_ref.ilike(like),
                Booking.first_name.ilike(like),
                Booking.last_name.ilike(like),
                Booking.email.ilike(like),
                Booking.item_name.ilike(like),
            ))
        total = q.count()
        limit = min(max(limit, 1), 200)
        rows = q.order_by(Booking.created_at.desc()).offset((max(page, 1) - 1) * limit).limit(limit).all()
        return rows, total
