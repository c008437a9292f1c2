from datetime import date
from decimal import Decimal
from pydantic import BaseModel
from typing import List, Optional

class BookingCreate(BaseModel):
    # enums are plain strings so bad values surface as ValidationError from the service
    itemType: str
    itemId: str
    itemName: str = ""
    startDate: Optional[date] = None
    endDate: Optional[date] = None
    time: str = ""
    paymentOption: str = ""
    agreedToTerms: bool = False

    userId: Optional[str] = None  # owner; omitted for guest bookings
    firstName: str = ""
    lastName: str = ""
    email: str = ""  # plain str to allow .local and other dev domains
    phone: str = ""
    address: str = ""
    numberOfGuests: Optional[int] = None
    specialRequests: str = ""

    totalPrice: Optional[Decimal] = None
    originalPrice: Optional[Decimal] = None
    discountApplied: Optional[Decimal] = None
    promotionTitle: Optional[str] = None

    # initial payment
    amountPaid: Optional[Decimal] = None
    paymentProof: str = ""
    paymentReference: str = ""
    manualPaymentReference: str = ""

class StatusChangeIn(BaseModel):
    actorId: str
    note: str = ""
    attachment: Optional[str] = None
    attachmentName: Optional[str] = None
    paymentDueDuration: Optional[int] = None  # approve only, downpayment bookings
    paymentDueUnit: str = "hours"             # hours|days

class PaymentIn(BaseModel):
    amount: Decimal
    paymentProof: str
    manualPaymentReference: str = ""

class NoteIn(BaseModel):
    actorId: str
    note: str = ""
    attachment: Optional[str] = None
    attachmentName: Optional[str] = None

class PaymentOut(BaseModel):
    amount: Decimal
    paymentReference: str
    manualPaymentReference: Optional[str] = None
    paymentProof: str
    paymentDate: str

class NoteOut(BaseModel):
    note: str
    author: str
    date: str
    attachment: Optional[str] = None
    attachmentName: Optional[str] = None

class BookingOut(BaseModel):
    bookingRef: str
    status: str
    itemType: str
    itemId: str
    itemName: str
    startDate: str
    endDate: str
    numberOfDays: int
    numberOfGuests: Optional[int] = None
    totalPrice: Decimal
    amountPaid: Decimal
    paymentOption: str
    originalPrice: Optional[Decimal] = None
    discountApplied: Optional[Decimal] = None
    promotionTitle: Optional[str] = None
    pendingExpiresAt: Optional[str] = None
    paymentDueDate: Optional[str] = None
    adminConfirmationDueDate: Optional[str] = None
    payments: List[PaymentOut] = []
    notes: List[NoteOut] = []

class BookingListOut(BaseModel):
    total: int
    items: List[BookingOut]


def _iso(dt) -> Optional[str]:
    return dt.isoformat() if dt else None


def booking_out(b) -> BookingOut:
    return BookingOut(
        bookingRef=b.booking_ref,
        status=b.status,
        itemType=b.item_type,
        itemId=b.item_id,
        itemName=b.item_name,
        startDate=b.start_date.isoformat(),
        endDate=b.end_date.isoformat(),
        numberOfDays=b.number_of_days,
        numberOfGuests=b.number_of_guests,
        totalPrice=b.total_price,
        amountPaid=b.amount_paid,
        paymentOption=b.payment_option,
        originalPrice=b.original_price,
        discountApplied=b.discount_applied,
        promotionTitle=b.promotion_title,
        pendingExpiresAt=_iso(b.pending_expires_at),
        paymentDueDate=_iso(b.payment_due_date),
        adminConfirmationDueDate=_iso(b.admin_confirmation_due_date),
        payments=[PaymentOut(
            amount=p.amount, paymentReference=p.payment_reference, manualPaymentReference=p.manual_reference,
            paymentProof=p.proof_ref, paymentDate=p.paid_at.isoformat(),
        ) for p in b.payments],
        notes=[NoteOut(
            note=n.text, author=n.author, date=n.created_at.isoformat(),
            attachment=n.attachment, attachmentName=n.attachment_name,
        ) for n in b.notes],
    )
