from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.api.deps import get_catalog, get_dispatcher
from app.db.session import get_db
from app.schemas.booking import BookingCreate, BookingListOut, BookingOut, NoteIn, NoteOut, PaymentIn, StatusChangeIn, booking_out
from app.services import booking_service as svc
from app.services.catalog_service import DbItemCatalog
from app.services.dispatch_service import EffectDispatcher

router = APIRouter(tags=["bookings"])

@router.post("/public/bookings", response_model=BookingOut, status_code=201)
def create_public_booking(
    body: BookingCreate,
    db: Session = Depends(get_db),
    catalog: DbItemCatalog = Depends(get_catalog),
    dispatcher: EffectDispatcher = Depends(get_dispatcher),
):
    booking = svc.create_booking(db, body, catalog=catalog, dispatcher=dispatcher)
    return booking_out(booking)

@router.get("/public/bookings/{booking_ref}", response_model=BookingOut)
def get_public_booking(booking_ref: str, db: Session = Depends(get_db)):
    return booking_out(svc.get_booking(db, booking_ref))

@router.get("/public/items/{item_id}/booked-dates")
def get_booked_dates(item_id: str, db: Session = Depends(get_db)):
    return {"itemId": item_id, "bookedDates": svc.booked_dates(db, item_id)}

@router.post("/public/bookings/{booking_ref}/payments", response_model=BookingOut)
def add_booking_payment(
    booking_ref: str,
    body: PaymentIn,
    db: Session = Depends(get_db),
    dispatcher: EffectDispatcher = Depends(get_dispatcher),
):
    booking = svc.add_payment(db, booking_ref, body.amount, body.paymentProof, body.manualPaymentReference or None,
                              dispatcher=dispatcher)
    return booking_out(booking)

# ---- staff ----

@router.get("/staff/bookings", response_model=BookingListOut)
def list_bookings(
    search: str = "",
    status: str = "",
    itemType: str = "",
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
):
    rows, total = svc.list_bookings(db, search, status, itemType, page, limit)
    return BookingListOut(total=total, items=[booking_out(b) for b in rows])

# registered ahead of the generic action route so "notes" is not taken for an action
@router.post("/staff/bookings/{booking_ref}/notes", response_model=NoteOut, status_code=201)
def add_booking_note(booking_ref: str, body: NoteIn, db: Session = Depends(get_db)):
    n = svc.add_note(db, booking_ref, body.actorId, body.note, body.attachment, body.attachmentName)
    return NoteOut(note=n.text, author=n.author, date=n.created_at.isoformat(),
                   attachment=n.attachment, attachmentName=n.attachment_name)

_ACTIONS = {
    "approve": svc.approve_booking,
    "reject": svc.reject_booking,
    "cancel": svc.cancel_booking,
    "complete": svc.complete_booking,
}

@router.post("/staff/bookings/{booking_ref}/{action}", response_model=BookingOut)
def change_booking_status(
    booking_ref: str,
    action: str,
    body: StatusChangeIn,
    db: Session = Depends(get_db),
    dispatcher: EffectDispatcher = Depends(get_dispatcher),
):
    if action not in _ACTIONS:
        raise HTTPException(status_code=404, detail="Unknown action")
    kwargs = dict(note=body.note or None, attachment=body.attachment, attachment_name=body.attachmentName,
                  dispatcher=dispatcher)
    if action == "approve":
        kwargs.update(payment_due_duration=body.paymentDueDuration, payment_due_unit=body.paymentDueUnit)
    return booking_out(_ACTIONS[action](db, booking_ref, body.actorId, **kwargs))
