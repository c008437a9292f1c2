import logging
import math
import random
import string
import time
import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    BookingNotPayable,
    InsufficientAmount,
    InvalidTransition,
    NotAvailable,
    NotFound,
    ValidationError,
)
from app.db.types import utcnow
from app.domain import effects as fx
from app.domain.booking_state import BookingEvent, BookingStatus, initial_deadline, plan_transition
from app.models.booking import Booking
from app.models.note import BookingNote
from app.repositories.booking_repository import BookingRepository
from app.schemas.booking import BookingCreate
from app.services.activity_service import log_activity
from app.services.catalog_service import DbItemCatalog
from app.services.dispatch_service import EffectDispatcher, default_dispatcher
from app.services.payment_ledger import (
    TOLERANCE,
    base36,
    record_payment,
    remaining_balance,
    settles_balance,
)
from app.services.ports import ItemCatalog

logger = logging.getLogger(__name__)

ITEM_TYPES = ("car", "tour", "transport")
PAYMENT_OPTIONS = ("full", "downpayment")
STAFF_LINK = "/owner/manage-bookings"


def make_booking_ref(prefix: str | None = None) -> str:
    stamp = base36(time.time_ns() // 1_000_000)[-6:]
    rand = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"{prefix or settings.BOOKING_REF_PREFIX}-{stamp}-{rand}"


def count_days(start: date, end: date) -> int:
    return max(1, math.ceil((end - start).days))


def _money(value, field: str) -> Decimal:
    if value is None:
        raise ValidationError(f"{field} is required.", field=field)
    return Decimal(value).quantize(Decimal("0.01"))


def _validate_create(body: BookingCreate) -> None:
    if body.itemType not in ITEM_TYPES:
        raise ValidationError("Invalid item type specified.", itemType=body.itemType)
    if not body.itemId or not body.startDate or not body.paymentOption:
        raise ValidationError("Missing required booking details.")
    if not body.agreedToTerms:
        raise ValidationError("You must agree to the terms and conditions.")
    if body.paymentOption not in PAYMENT_OPTIONS:
        raise ValidationError("Invalid payment option.", paymentOption=body.paymentOption)
    if body.endDate and body.endDate < body.startDate:
        raise ValidationError("End date cannot be before start date.")
    if not all([body.firstName, body.lastName, body.email, body.phone, body.address]):
        raise ValidationError("Missing required personal information.")
    if body.itemType in ("tour", "transport") and not body.numberOfGuests:
        raise ValidationError("Number of guests is required for tours and transport.")
    if body.numberOfGuests is not None and body.numberOfGuests < 1:
        raise ValidationError("Number of guests must be at least 1.")
    if not body.amountPaid or body.amountPaid <= 0 or not body.paymentProof or not (
        body.paymentReference or body.manualPaymentReference
    ):
        raise ValidationError("Missing required payment details (amount, proof, reference).")
    if body.paymentOption == "downpayment" and not body.userId:
        raise ValidationError("Downpayment bookings require a registered account.")


def _validate_amounts(body: BookingCreate, total: Decimal, paid: Decimal) -> None:
    if total < 0:
        raise ValidationError("Total price cannot be negative.")
    if paid > total + TOLERANCE:
        raise ValidationError("Payment amount exceeds the total price.")
    if body.paymentOption == "full" and paid < total - TOLERANCE:
        raise ValidationError("Full payment must cover the total price.")
    if body.promotionTitle:
        if body.originalPrice is None or body.discountApplied is None:
            raise ValidationError("Promotion details are incomplete.")
        expected = Decimal(body.originalPrice) - Decimal(body.discountApplied)
        if abs(expected - total) > TOLERANCE:
            raise ValidationError("Promotion calculation error.", expected=str(expected), total=str(total))


def _new_booking(body: BookingCreate, ref: str, item_name: str, total: Decimal, now: datetime) -> Booking:
    start = body.startDate
    end = body.endDate or start
    return Booking(
        id=str(uuid.uuid4()),
        booking_ref=ref,
        user_id=body.userId or None,
        first_name=body.firstName.strip(),
        last_name=body.lastName.strip(),
        email=body.email.strip().lower(),
        phone=body.phone.strip(),
        address=body.address.strip(),
        item_type=body.itemType,
        item_id=body.itemId,
        item_name=item_name,
        start_date=start,
        end_date=end,
        number_of_days=count_days(start, end),
        number_of_guests=body.numberOfGuests,
        special_requests=body.specialRequests or "",
        total_price=total,
        amount_paid=Decimal("0"),
        payment_option=body.paymentOption,
        original_price=body.originalPrice if body.promotionTitle else None,
        discount_applied=body.discountApplied if body.promotionTitle else None,
        promotion_title=body.promotionTitle or None,
        status=BookingStatus.PENDING.value,
        created_at=now,
        updated_at=now,
    )


def create_booking(db: Session, body: BookingCreate, *, catalog: ItemCatalog | None = None,
                   dispatcher: EffectDispatcher | None = None, now: datetime | None = None) -> Booking:
    """Validate and store a new booking in ``pending`` with its initial payment and deadline."""
    now = now or utcnow()
    _validate_create(body)
    total = _money(body.totalPrice, "totalPrice")
    paid = _money(body.amountPaid, "amountPaid")
    _validate_amounts(body, total, paid)

    catalog = catalog or DbItemCatalog(db)
    if not catalog.get_availability(body.itemId, body.itemType):
        raise NotAvailable("Selected item is currently unavailable.", itemId=body.itemId)

    item_name = body.itemName.strip()
    if not item_name and hasattr(catalog, "get_name"):
        item_name = catalog.get_name(body.itemId) or ""
    if not item_name:
        raise ValidationError("Missing required booking details.", field="itemName")

    start = body.startDate
    end = body.endDate or start
    repo = BookingRepository(db)
    clash = repo.find_overlapping(body.itemId, start, end)
    if clash:
        raise NotAvailable("Selected dates conflict with an existing booking.", conflictsWith=clash.booking_ref)

    for _ in range(10):
        ref = make_booking_ref()
        if repo.ref_exists(ref):
            continue
        booking = _new_booking(body, ref, item_name, total, now)
        record_payment(booking, paid, body.paymentProof, body.manualPaymentReference or None,
                       payment_ref=body.paymentReference or None)
        booking.deadline = initial_deadline(
            body.itemType,
            has_payment=bool(booking.payments),
            now=now,
            hold=timedelta(minutes=settings.PENDING_HOLD_MINUTES),
            admin_window=timedelta(hours=settings.ADMIN_CONFIRMATION_HOURS),
        )
        repo.add(booking)
        log_activity(db, body.userId or "guest", "booking.create", ref,
                     {"itemType": body.itemType, "itemId": body.itemId, "totalPrice": str(total)}, STAFF_LINK)
        try:
            db.commit()
            break
        except IntegrityError:
            # another request took the same reference between the check and the insert
            db.rollback()
            logger.warning("Booking reference %s already taken, retrying", ref)
    else:
        raise RuntimeError("could not allocate booking reference")
    db.refresh(booking)
    logger.info("Booking %s created for %s %s (deadline %s)", ref, booking.item_type, booking.item_id,
                booking.deadline_kind)

    (dispatcher or default_dispatcher(db)).dispatch(fx.collect(
        fx.email("booking-received", booking),
        fx.notify(fx.STAFF, f"New booking received: {ref} for {item_name}.", STAFF_LINK),
    ))
    return booking


def get_booking(db: Session, booking_ref: str) -> Booking:
    booking = BookingRepository(db).get_by_ref(booking_ref)
    if not booking:
        raise NotFound("Booking not found.", bookingRef=booking_ref)
    return booking


def append_note(booking: Booking, text: str, author: str, attachment: str | None = None,
                attachment_name: str | None = None, now: datetime | None = None) -> BookingNote:
    note = BookingNote(
        id=str(uuid.uuid4()),
        seq=len(booking.notes) + 1,
        text=text,
        author=author,
        attachment=attachment or None,
        attachment_name=attachment_name or None,
        created_at=now or utcnow(),
    )
    booking.notes.append(note)
    return note


def apply_event(db: Session, booking: Booking, event: BookingEvent, actor_id: str, *, note: str | None,
                attachment: str | None = None, attachment_name: str | None = None,
                balance_due: timedelta | None = None, dispatcher: EffectDispatcher | None = None,
                now: datetime | None = None) -> Booking:
    now = now or utcnow()
    plan = plan_transition(booking, event, now=now, balance_due=balance_due, note=note)
    repo = BookingRepository(db)
    if not repo.transition(booking.id, expected_status=plan.from_status, new_status=plan.to_status,
                           deadline=plan.deadline, now=now):
        db.rollback()
        db.refresh(booking)
        if booking.status == plan.to_status.value:
            logger.info("Booking %s already %s, nothing to do", booking.booking_ref, booking.status)
            return booking
        raise InvalidTransition(booking.status, event.value)

    if note or attachment:
        append_note(booking, note or "Attachment added.", actor_id, attachment, attachment_name, now)
    log_activity(db, actor_id, f"booking.{event.value}", booking.booking_ref,
                 {"from": plan.from_status.value, "to": plan.to_status.value, "note": note or ""}, STAFF_LINK)
    db.commit()
    db.refresh(booking)
    logger.info("Booking %s %s -> %s by %s", booking.booking_ref, plan.from_status.value,
                plan.to_status.value, actor_id)

    effects = plan.effects + fx.collect(fx.notify(
        fx.STAFF, f"Booking {booking.booking_ref} status changed to {plan.to_status.value} by {actor_id}.",
        STAFF_LINK,
    ))
    (dispatcher or default_dispatcher(db)).dispatch(effects)
    return booking


def balance_window(duration: int | None, unit: str = "hours") -> timedelta:
    if duration is None:
        return timedelta(hours=settings.DEFAULT_BALANCE_DUE_HOURS)
    if duration <= 0:
        raise ValidationError("Payment due duration must be a positive number.", paymentDueDuration=duration)
    if unit == "hours":
        return timedelta(hours=duration)
    if unit == "days":
        return timedelta(days=duration)
    raise ValidationError("Payment due unit must be 'hours' or 'days'.", paymentDueUnit=unit)


def approve_booking(db: Session, booking_ref: str, actor_id: str, *, note: str | None = None,
                    payment_due_duration: int | None = None, payment_due_unit: str = "hours",
                    attachment: str | None = None, attachment_name: str | None = None,
                    dispatcher: EffectDispatcher | None = None, now: datetime | None = None) -> Booking:
    booking = get_booking(db, booking_ref)
    balance_due = None
    if booking.payment_option == "downpayment" and remaining_balance(booking) > 0:
        balance_due = balance_window(payment_due_duration, payment_due_unit)
    return apply_event(db, booking, BookingEvent.APPROVE, actor_id, note=note, attachment=attachment,
                  attachment_name=attachment_name, balance_due=balance_due, dispatcher=dispatcher, now=now)


def reject_booking(db: Session, booking_ref: str, actor_id: str, *, note: str | None = None,
                   attachment: str | None = None, attachment_name: str | None = None,
                   dispatcher: EffectDispatcher | None = None, now: datetime | None = None) -> Booking:
    booking = get_booking(db, booking_ref)
    return apply_event(db, booking, BookingEvent.REJECT, actor_id, note=note, attachment=attachment,
                  attachment_name=attachment_name, dispatcher=dispatcher, now=now)


def cancel_booking(db: Session, booking_ref: str, actor_id: str, *, note: str | None = None,
                   attachment: str | None = None, attachment_name: str | None = None,
                   dispatcher: EffectDispatcher | None = None, now: datetime | None = None) -> Booking:
    booking = get_booking(db, booking_ref)
    note = f"Cancellation reason: {note}" if note else "Booking cancelled by staff."
    return apply_event(db, booking, BookingEvent.CANCEL, actor_id, note=note, attachment=attachment,
                  attachment_name=attachment_name, dispatcher=dispatcher, now=now)


def complete_booking(db: Session, booking_ref: str, actor_id: str, *, note: str | None = None,
                     attachment: str | None = None, attachment_name: str | None = None,
                     dispatcher: EffectDispatcher | None = None, now: datetime | None = None) -> Booking:
    booking = get_booking(db, booking_ref)
    return apply_event(db, booking, BookingEvent.COMPLETE, actor_id, note=note, attachment=attachment,
                  attachment_name=attachment_name, dispatcher=dispatcher, now=now)


def add_payment(db: Session, booking_ref: str, amount, proof_ref: str, manual_ref: str | None = None, *,
                actor_id: str | None = None, dispatcher: EffectDispatcher | None = None,
                now: datetime | None = None) -> Booking:
    """Record a balance top-up on a confirmed downpayment booking.

    The amount has to equal the remaining balance to the cent; the booking then
    moves to ``fully_paid`` in the same transaction as the payment row.
    """
    now = now or utcnow()
    booking = get_booking(db, booking_ref)
    if booking.status != BookingStatus.CONFIRMED.value or booking.payment_option != "downpayment":
        raise BookingNotPayable("You can only add payments to confirmed downpayment bookings.",
                                bookingRef=booking.booking_ref, status=booking.status)
    amount = _money(amount, "amount")
    if amount <= 0:
        raise ValidationError("Invalid payment amount.")
    owed = remaining_balance(booking)
    if not settles_balance(booking, amount):
        raise InsufficientAmount(f"Payment must equal the remaining balance of {owed}.",
                                 remaining=str(owed), amount=str(amount))

    plan = plan_transition(booking, BookingEvent.BALANCE_PAID, now=now)
    payment = record_payment(booking, amount, proof_ref, manual_ref)
    db.flush()
    if not BookingRepository(db).transition(booking.id, expected_status=plan.from_status,
                                            new_status=plan.to_status, now=now):
        db.rollback()
        raise BookingNotPayable(f"Booking {booking_ref} changed state before the payment was recorded.",
                                bookingRef=booking_ref)
    log_activity(db, actor_id or booking.user_id or "guest", "booking.payment", booking.booking_ref,
                 {"amount": str(amount), "paymentReference": payment.payment_reference}, STAFF_LINK)
    db.commit()
    db.refresh(booking)
    logger.info("Payment %s of %s recorded on %s (now %s)", payment.payment_reference, amount,
                booking.booking_ref, booking.status)
    effects = plan.effects + fx.collect(fx.notify(
        fx.STAFF, f"Payment of {amount} received for booking {booking.booking_ref}.", STAFF_LINK,
    ))
    (dispatcher or default_dispatcher(db)).dispatch(effects)
    return booking


def add_note(db: Session, booking_ref: str, author: str, text: str = "", attachment: str | None = None,
             attachment_name: str | None = None) -> BookingNote:
    if not (text or "").strip() and not attachment:
        raise ValidationError("A note or an attachment is required.")
    booking = get_booking(db, booking_ref)
    note = append_note(booking, (text or "").strip() or "Attachment added.", author, attachment, attachment_name)
    log_activity(db, author, "booking.note", booking.booking_ref, {"note": note.text}, STAFF_LINK)
    db.commit()
    db.refresh(note)
    return note


def booked_dates(db: Session, item_id: str) -> list[str]:
    """Every calendar day held by an active booking of ``item_id``, ISO formatted and sorted."""
    days: set[date] = set()
    for b in BookingRepository(db).active_for_item(item_id):
        d = b.start_date
        while d <= b.end_date:
            days.add(d)
            d += timedelta(days=1)
    return [d.isoformat() for d in sorted(days)]


def list_bookings(db: Session, search: str = "", status: str = "", item_type: str = "",
                  page: int = 1, limit: int = 10) -> tuple[list[Booking], int]:
    return BookingRepository(db).search(search, status, item_type, page, limit)
