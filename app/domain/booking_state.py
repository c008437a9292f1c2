from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from app.core.errors import InvalidTransition
from app.domain import effects as fx
from app.domain.deadlines import (
    NO_DEADLINE,
    Deadline,
    DeadlineKind,
    awaiting_admin_confirmation,
    awaiting_balance,
    awaiting_payment,
)


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FULLY_PAID = "fully_paid"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.REJECTED})
# statuses that hold the item's dates
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.FULLY_PAID)


class BookingEvent(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    PENDING_EXPIRED = "pending_expired"
    ADMIN_CONFIRMATION_EXPIRED = "admin_confirmation_expired"
    BALANCE_PAID = "balance_paid"
    PAYMENT_DUE_EXPIRED = "payment_due_expired"
    CANCEL = "cancel"
    COMPLETE = "complete"


S, E = BookingStatus, BookingEvent

TRANSITIONS: dict[tuple[BookingStatus, BookingEvent], BookingStatus] = {
    (S.PENDING, E.APPROVE): S.CONFIRMED,
    (S.PENDING, E.REJECT): S.REJECTED,
    (S.PENDING, E.PENDING_EXPIRED): S.CANCELLED,
    (S.PENDING, E.ADMIN_CONFIRMATION_EXPIRED): S.CANCELLED,
    (S.CONFIRMED, E.BALANCE_PAID): S.FULLY_PAID,
    (S.CONFIRMED, E.PAYMENT_DUE_EXPIRED): S.CANCELLED,
    (S.PENDING, E.CANCEL): S.CANCELLED,
    (S.CONFIRMED, E.CANCEL): S.CANCELLED,
    (S.FULLY_PAID, E.CANCEL): S.CANCELLED,
    (S.CONFIRMED, E.COMPLETE): S.COMPLETED,
    (S.FULLY_PAID, E.COMPLETE): S.COMPLETED,
}

# which sweep event fires for which deadline, and the pre-state it requires
EXPIRY_EVENTS: dict[DeadlineKind, tuple[BookingEvent, BookingStatus]] = {
    DeadlineKind.AWAITING_PAYMENT: (E.PENDING_EXPIRED, S.PENDING),
    DeadlineKind.AWAITING_BALANCE: (E.PAYMENT_DUE_EXPIRED, S.CONFIRMED),
    DeadlineKind.AWAITING_ADMIN_CONFIRMATION: (E.ADMIN_CONFIRMATION_EXPIRED, S.PENDING),
}

EMAIL_TEMPLATES: dict[BookingEvent, str] = {
    E.APPROVE: "booking-approved",
    E.REJECT: "booking-rejected",
    E.BALANCE_PAID: "booking-fully-paid",
    E.COMPLETE: "booking-completed",
    E.CANCEL: "booking-cancelled",
    E.PENDING_EXPIRED: "booking-cancelled",
    E.PAYMENT_DUE_EXPIRED: "booking-cancelled",
    E.ADMIN_CONFIRMATION_EXPIRED: "booking-cancelled",
}

# Ordered by precedence: admin-confirmation window, then balance deadline,
# then the initial payment window.
EXPIRY_REASONS: tuple[tuple[DeadlineKind, str], ...] = (
    (DeadlineKind.AWAITING_ADMIN_CONFIRMATION, "it was not confirmed by our team within the admin confirmation window"),
    (DeadlineKind.AWAITING_BALANCE, "the remaining balance was not paid before the payment deadline"),
    (DeadlineKind.AWAITING_PAYMENT, "payment was not completed within the initial payment window"),
)

MY_BOOKINGS_LINK = "/my-bookings"


def next_status(current: BookingStatus | str, event: BookingEvent) -> BookingStatus:
    current = BookingStatus(current)
    try:
        return TRANSITIONS[(current, event)]
    except KeyError:
        raise InvalidTransition(current.value, event.value) from None


def expiry_reason(kind: DeadlineKind) -> str:
    for k, reason in EXPIRY_REASONS:
        if k is kind:
            return reason
    raise ValueError(f"no expiry for deadline {kind.value}")


@dataclass
class Transition:
    event: BookingEvent
    from_status: BookingStatus
    to_status: BookingStatus
    deadline: Deadline = NO_DEADLINE
    effects: list[fx.Effect] = field(default_factory=list)


def plan_transition(booking, event: BookingEvent, *, now: datetime,
                    balance_due: timedelta | None = None, note: str | None = None) -> Transition:
    """Work out the target status, the deadline to leave behind and the effects.

    Nothing is written here; the caller applies the result with a conditional
    update and dispatches ``effects`` once that commits.
    """
    current = BookingStatus(booking.status)
    target = next_status(current, event)

    deadline = NO_DEADLINE
    if event is E.APPROVE and booking.payment_option == "downpayment":
        if booking.total_price - booking.amount_paid > 0:
            if balance_due is None:
                raise ValueError("balance_due is required when approving a downpayment with balance remaining")
            deadline = awaiting_balance(now + balance_due)

    ref = booking.booking_ref
    if event in (E.PENDING_EXPIRED, E.PAYMENT_DUE_EXPIRED, E.ADMIN_CONFIRMATION_EXPIRED):
        reason = expiry_reason(booking.deadline.kind)
        message = f"Your booking {ref} was automatically cancelled because {reason}."
        note = note or f"Booking automatically cancelled because {reason}."
    else:
        message = f"Your booking {ref} status updated to: {target.value}."
        if note:
            message += f" Note: {note}"

    return Transition(
        event=event,
        from_status=current,
        to_status=target,
        deadline=deadline,
        effects=fx.collect(
            fx.email(EMAIL_TEMPLATES[event], booking, note),
            fx.notify(booking.user_id, message, MY_BOOKINGS_LINK),
        ),
    )


def initial_deadline(item_type: str, *, has_payment: bool, now: datetime,
                     hold: timedelta, admin_window: timedelta) -> Deadline:
    """Deadline a new booking starts with in ``pending``."""
    if item_type in ("car", "tour"):
        return awaiting_payment(now + hold)
    if item_type == "transport" and has_payment:
        return awaiting_admin_confirmation(now + admin_window)
    return NO_DEADLINE
