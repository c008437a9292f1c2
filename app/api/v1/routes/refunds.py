from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.api.deps import get_dispatcher
from app.db.session import get_db
from app.schemas.refund import RefundRequestIn, RefundRequestOut, RefundResolveIn, refund_out
from app.services import refund_service as svc
from app.services.dispatch_service import EffectDispatcher

router = APIRouter(tags=["refunds"])

@router.post("/public/refund-requests", response_model=RefundRequestOut, status_code=201)
def submit_refund_request(
    body: RefundRequestIn,
    db: Session = Depends(get_db),
    dispatcher: EffectDispatcher = Depends(get_dispatcher),
):
    req = svc.submit_refund_request(db, body.bookingReference, body.name, body.email, body.phone, body.reason,
                                    dispatcher=dispatcher)
    return refund_out(req)

@router.get("/staff/refund-requests", response_model=list[RefundRequestOut])
def list_refund_requests(status: str = "", search: str = "", db: Session = Depends(get_db)):
    return [refund_out(r) for r in svc.list_refund_requests(db, status, search)]

@router.post("/staff/refund-requests/{request_id}/status", response_model=RefundRequestOut)
def resolve_refund_request(
    request_id: str,
    body: RefundResolveIn,
    db: Session = Depends(get_db),
    dispatcher: EffectDispatcher = Depends(get_dispatcher),
):
    req = svc.resolve_refund_request(db, request_id, body.status, body.actorId, body.adminNote or None,
                                     body.attachment, body.attachmentName, dispatcher=dispatcher)
    return refund_out(req)
