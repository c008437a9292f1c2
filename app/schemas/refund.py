from decimal import Decimal
from pydantic import BaseModel
from typing import List, Optional

class RefundRequestIn(BaseModel):
    bookingReference: str
    name: str = ""
    email: str = ""
    phone: str = ""
    reason: str = ""

class RefundResolveIn(BaseModel):
    status: str  # approved|declined|confirmed
    actorId: str
    adminNote: str = ""
    attachment: Optional[str] = None
    attachmentName: Optional[str] = None

class RefundNoteOut(BaseModel):
    note: str
    author: str
    date: str
    attachment: Optional[str] = None
    attachmentName: Optional[str] = None

class RefundRequestOut(BaseModel):
    id: str
    bookingReference: str
    status: str
    itemType: str
    itemName: str
    bookingStartDate: str
    bookingTotalPrice: Decimal
    name: str
    email: str
    phone: str
    reason: str
    refundPolicy: str
    calculatedRefundAmount: Decimal
    createdAt: str
    notes: List[RefundNoteOut] = []


def refund_out(r) -> RefundRequestOut:
    return RefundRequestOut(
        id=r.id,
        bookingReference=r.booking_ref,
        status=r.status,
        itemType=r.item_type,
        itemName=r.item_name,
        bookingStartDate=r.booking_start_date.isoformat(),
        bookingTotalPrice=r.booking_total_price,
        name=r.submitter_name,
        email=r.submitter_email,
        phone=r.submitter_phone,
        reason=r.reason,
        refundPolicy=r.refund_policy,
        calculatedRefundAmount=r.calculated_refund_amount,
        createdAt=r.created_at.isoformat(),
        notes=[RefundNoteOut(
            note=n.text, author=n.author, date=n.created_at.isoformat(),
            attachment=n.attachment, attachmentName=n.attachment_name,
        ) for n in r.notes],
    )
