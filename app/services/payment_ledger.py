import time
import uuid
from decimal import Decimal

from app.core.errors import BookingNotPayable, ValidationError
from app.db.types import utcnow
from app.domain.booking_state import TERMINAL_STATUSES, BookingStatus
from app.models.payment import BookingPayment

TOLERANCE = Decimal("0.01")
CENT = Decimal("0.01")

_B36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_B36[r])
    return "".join(reversed(out))


def make_payment_ref() -> str:
    return "PAY-" + base36(time.time_ns() // 1_000_000)


def remaining_balance(booking) -> Decimal:
    return max(Decimal(booking.total_price) - Decimal(booking.amount_paid or 0), Decimal("0"))


def is_fully_paid(booking) -> bool:
    return Decimal(booking.amount_paid or 0) >= Decimal(booking.total_price)


def settles_balance(booking, amount: Decimal) -> bool:
    """True when ``amount``, rounded to cents, is exactly what is still owed."""
    return Decimal(amount).quantize(CENT) == remaining_balance(booking)


def record_payment(booking, amount, proof_ref: str, manual_ref: str | None = None,
                   payment_ref: str | None = None) -> BookingPayment:
    """Append a payment to ``booking`` and bump ``amount_paid`` by the same amount.

    Works on the in-session ORM object; the caller owns the commit. Whether a
    top-up must clear the balance is decided by the caller, not here.
    """
    amount = Decimal(amount)
    if amount <= 0:
        raise ValidationError("Invalid payment amount.")
    if BookingStatus(booking.status) in TERMINAL_STATUSES:
        raise BookingNotPayable(f"Booking {booking.booking_ref} is {booking.status} and cannot take payments")
    if not proof_ref:
        raise ValidationError("Payment proof is required.")

    payment = BookingPayment(
        id=str(uuid.uuid4()),
        seq=len(booking.payments) + 1,
        amount=amount,
        payment_reference=payment_ref or make_payment_ref(),
        manual_reference=manual_ref or None,
        proof_ref=proof_ref,
        paid_at=utcnow(),
    )
    booking.payments.append(payment)
    booking.amount_paid = sum((Decimal(p.amount) for p in booking.payments), Decimal("0"))
    return payment
