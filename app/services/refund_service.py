import logging
import uuid
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import DuplicateRequest, InvalidTransition, NotFound, NotRefundable, ValidationError
from app.db.types import utcnow
from app.domain import effects as fx
from app.domain.booking_state import TERMINAL_STATUSES, BookingEvent, BookingStatus
from app.models.note import RefundNote
from app.models.refund_request import RefundRequest
from app.repositories.booking_repository import BookingRepository
from app.services.activity_service import log_activity
from app.services.booking_service import apply_event
from app.services.dispatch_service import EffectDispatcher, default_dispatcher
from app.services.refund_policy import calculate_refund

logger = logging.getLogger(__name__)

RESOLVE_STATUSES = ("approved", "declined", "confirmed")
# resolutions that also cancel the underlying booking
CANCELLING_STATUSES = ("approved", "declined")
STAFF_LINK = "/owner/refunds"


def submit_refund_request(db: Session, booking_ref: str, name: str, email: str, phone: str, reason: str,
                          *, dispatcher: EffectDispatcher | None = None, now: datetime | None = None) -> RefundRequest:
    """File a refund request against a booking and freeze the refund owed as of ``now``."""
    now = now or utcnow()
    booking_ref = (booking_ref or "").strip().upper()
    if not all([booking_ref, (name or "").strip(), (email or "").strip(), (phone or "").strip(), (reason or "").strip()]):
        raise ValidationError("All fields are required.")

    booking = BookingRepository(db).get_by_ref(booking_ref)
    if not booking:
        raise NotFound("Booking not found. Please check your booking reference.", bookingRef=booking_ref)
    if db.query(RefundRequest.id).filter(RefundRequest.booking_id == booking.id).first():
        raise DuplicateRequest("A refund request for this booking already exists.", bookingRef=booking_ref)
    if BookingStatus(booking.status) in TERMINAL_STATUSES:
        raise NotRefundable(f"This booking cannot be refunded as its status is '{booking.status}'.",
                            bookingRef=booking_ref, status=booking.status)

    quote = calculate_refund(booking.start_date, booking.total_price, now)
    req = RefundRequest(
        id=str(uuid.uuid4()),
        booking_id=booking.id,
        booking_ref=booking.booking_ref,
        user_id=booking.user_id,
        item_type=booking.item_type,
        item_name=booking.item_name,
        booking_start_date=booking.start_date,
        booking_total_price=booking.total_price,
        submitter_name=name.strip(),
        submitter_email=email.strip(),
        submitter_phone=phone.strip(),
        reason=reason.strip(),
        status="pending",
        refund_policy=quote.policy,
        calculated_refund_amount=quote.amount,
        created_at=now,
        updated_at=now,
    )
    db.add(req)
    log_activity(db, booking.user_id or "guest", "refund.submit", booking.booking_ref,
                 {"policy": quote.policy, "amount": str(quote.amount)}, STAFF_LINK)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent submission for the same booking
        db.rollback()
        raise DuplicateRequest("A refund request for this booking already exists.", bookingRef=booking_ref) from None
    db.refresh(req)
    logger.info("Refund request %s filed for %s (%s, %s)", req.id, req.booking_ref, quote.policy, quote.amount)

    (dispatcher or default_dispatcher(db)).dispatch(fx.collect(
        fx.notify(fx.STAFF, f"New refund request submitted for booking {req.booking_ref}.", STAFF_LINK),
    ))
    return req


def get_refund_request(db: Session, request_id: str) -> RefundRequest:
    req = db.get(RefundRequest, request_id)
    if not req:
        raise NotFound("Refund request not found.", id=request_id)
    return req


def _cancel_for_refund(db: Session, req: RefundRequest, new_status: str, actor_id: str,
                       admin_note: str | None, dispatcher: EffectDispatcher, now: datetime) -> None:
    booking = BookingRepository(db).get(req.booking_id)
    if booking is None or BookingStatus(booking.status) in TERMINAL_STATUSES:
        logger.info("Booking %s already %s; refund %s leaves it as is", req.booking_ref,
                    booking.status if booking else "missing", new_status)
        return
    reason = f"Booking cancelled due to refund request status: {new_status}."
    if admin_note:
        reason += f" Reason: {admin_note}"
    try:
        apply_event(db, booking, BookingEvent.CANCEL, actor_id, note=reason, dispatcher=dispatcher, now=now)
    except InvalidTransition:
        # the booking finished or was cancelled by someone else after it was read
        logger.info("Booking %s moved to %s before the refund could cancel it", req.booking_ref, booking.status)


def resolve_refund_request(db: Session, request_id: str, new_status: str, actor_id: str,
                           admin_note: str | None = None, attachment: str | None = None,
                           attachment_name: str | None = None, *, dispatcher: EffectDispatcher | None = None,
                           now: datetime | None = None) -> RefundRequest:
    if new_status not in RESOLVE_STATUSES:
        raise ValidationError("Invalid status provided.", status=new_status)
    now = now or utcnow()
    req = get_refund_request(db, request_id)
    dispatcher = dispatcher or default_dispatcher(db)

    req.status = new_status
    req.updated_at = now
    req.notes.append(RefundNote(
        id=str(uuid.uuid4()),
        seq=len(req.notes) + 1,
        text=admin_note or f"Status updated to {new_status}",
        author=actor_id,
        attachment=attachment or None,
        attachment_name=attachment_name or None,
        created_at=now,
    ))
    log_activity(db, actor_id, f"refund.{new_status}", req.booking_ref,
                 {"requestId": req.id, "note": admin_note or ""}, STAFF_LINK)
    db.commit()
    db.refresh(req)
    logger.info("Refund request %s for %s marked %s by %s", req.id, req.booking_ref, new_status, actor_id)

    if new_status in CANCELLING_STATUSES:
        _cancel_for_refund(db, req, new_status, actor_id, admin_note, dispatcher, now)

    dispatcher.dispatch(fx.collect(
        fx.email(f"refund-{new_status}", req, admin_note),
        fx.notify(req.user_id, f"Your refund request for booking {req.booking_ref} has been {new_status}.",
                  "/my-bookings"),
    ))
    return req


def list_refund_requests(db: Session, status: str = "", search: str = "") -> list[RefundRequest]:
    q = db.query(RefundRequest)
    if status and status != "all":
        q = q.filter(RefundRequest.status == status)
    if search:
        like = f"%{search}%"
        q = q.filter(or_(
            RefundRequest.booking_ref.ilike(like),
            RefundRequest.submitter_name.ilike(like),
            RefundRequest.submitter_email.ilike(like),
        ))
    return q.order_by(RefundRequest.created_at.desc()).all()
