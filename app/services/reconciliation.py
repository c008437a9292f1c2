"""Expiry sweep: cancels bookings whose governing deadline has passed.

Each candidate is cancelled with its own conditional update and commit, so a
booking approved or paid between the query and the update is left alone and
running two sweeps at once never cancels (or notifies) twice.
"""

import logging
import threading
import time
import uuid
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import InvalidTransition
from app.db.session import SessionLocal
from app.db.types import utcnow
from app.domain.booking_state import EXPIRY_EVENTS, expiry_reason, plan_transition
from app.models.booking import Booking
from app.models.note import SYSTEM_AUTHOR, BookingNote
from app.repositories.booking_repository import BookingRepository
from app.services.activity_service import log_activity
from app.services.dispatch_service import EffectDispatcher, default_dispatcher

logger = logging.getLogger(__name__)


def _cancel_expired(db: Session, booking: Booking, now: datetime, dispatcher: EffectDispatcher) -> bool:
    kind = booking.deadline.kind
    if kind not in EXPIRY_EVENTS:
        return False
    event, expected = EXPIRY_EVENTS[kind]
    try:
        plan = plan_transition(booking, event, now=now)
    except InvalidTransition:
        return False
    if not BookingRepository(db).transition(booking.id, expected_status=expected, new_status=plan.to_status,
                                            expired_kind=kind, now=now):
        db.rollback()
        return False

    booking.notes.append(BookingNote(
        id=str(uuid.uuid4()),
        seq=len(booking.notes) + 1,
        text=f"Booking automatically cancelled because {expiry_reason(kind)}.",
        author=SYSTEM_AUTHOR,
        created_at=now,
    ))
    log_activity(db, SYSTEM_AUTHOR, "booking.auto_cancel", booking.booking_ref,
                 {"deadline": kind.value, "from": expected.value}, "/owner/manage-bookings")
    db.commit()
    db.refresh(booking)
    logger.info("Booking %s auto-cancelled (%s passed)", booking.booking_ref, kind.value)
    dispatcher.dispatch(plan.effects)
    return True


def reconcile_expired_bookings(db: Session, now: datetime | None = None,
                               dispatcher: EffectDispatcher | None = None, limit: int | None = None) -> dict:
    now = now or utcnow()
    dispatcher = dispatcher or default_dispatcher(db)
    expired = BookingRepository(db).find_expired(now, limit=limit)
    result = {"scanned": len(expired), "cancelled": 0, "skipped": 0, "failed": 0}
    for booking in expired:
        ref = booking.booking_ref
        try:
            if _cancel_expired(db, booking, now, dispatcher):
                result["cancelled"] += 1
            else:
                logger.info("Booking %s changed before it could be expired; skipped", ref)
                result["skipped"] += 1
        except Exception:
            db.rollback()
            logger.exception("Failed to expire booking %s", ref)
            result["failed"] += 1
    if expired:
        logger.info("Reconciliation sweep: %s", result)
    return result


class ReconciliationScheduler:
    """Runs the sweep on a fixed interval.

    Clock, sleep and session factory are injectable so tests can drive ticks
    without waiting. Production runs the sweep from Celery beat instead of
    ``run()``; both go through ``sweep()``.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        clock: Callable[[], datetime] = utcnow,
        interval: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        dispatcher_factory: Callable[[Session], EffectDispatcher] = default_dispatcher,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.interval = interval if interval is not None else settings.RECONCILE_INTERVAL_SECONDS
        self.sleep = sleep
        self.dispatcher_factory = dispatcher_factory

    def sweep(self, now: datetime | None = None) -> dict:
        db = self.session_factory()
        try:
            return reconcile_expired_bookings(db, now or self.clock(), self.dispatcher_factory(db))
        finally:
            db.close()

    def run(self, stop_event: threading.Event | None = None, max_ticks: int | None = None) -> int:
        ticks = 0
        while not (stop_event and stop_event.is_set()):
            try:
                self.sweep()
            except Exception:
                # e.g. database unreachable; try again next tick
                logger.exception("Reconciliation sweep failed")
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            self.sleep(self.interval)
        return ticks
