from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.db.types import utcnow
from app.models.promotion import Promotion
from app.schemas.promotion import PromotionIn, PromotionOut, QuoteIn, QuoteOut
from app.services import promotion_service as svc
from app.services.pricing_service import quote_item

router = APIRouter(tags=["promotions"])

def _out(p: Promotion) -> PromotionOut:
    return PromotionOut(
        id=p.id,
        title=p.title,
        discountType=p.discount_type,
        discountValue=p.discount_value,
        applicableTo=p.applicable_to,
        itemIds=list(p.item_ids or []),
        isActive=p.is_active,
        startDate=p.start_date.isoformat(),
        endDate=p.end_date.isoformat(),
    )

@router.get("/public/promotions/active", response_model=list[PromotionOut])
def active_promotions(db: Session = Depends(get_db)):
    return [_out(p) for p in svc.active_promotions(db, utcnow())]

@router.post("/public/quote", response_model=QuoteOut)
def quote(body: QuoteIn, db: Session = Depends(get_db)):
    q = quote_item(db, body.itemId, body.quantity)
    return QuoteOut(
        itemId=body.itemId,
        finalPrice=q.final_price,
        originalPrice=q.original_price,
        discountApplied=q.discount,
        promotionId=q.applied_promotion.id if q.applied_promotion else None,
        promotionTitle=q.promotion_title,
    )

@router.get("/staff/promotions", response_model=list[PromotionOut])
def list_promotions(db: Session = Depends(get_db)):
    return [_out(p) for p in svc.list_promotions(db)]

@router.post("/staff/promotions", response_model=PromotionOut, status_code=201)
def create_promotion(body: PromotionIn, db: Session = Depends(get_db)):
    return _out(svc.create_promotion(db, body))

@router.put("/staff/promotions/{promotion_id}", response_model=PromotionOut)
def update_promotion(promotion_id: str, body: PromotionIn, db: Session = Depends(get_db)):
    return _out(svc.update_promotion(db, promotion_id, body))

@router.delete("/staff/promotions/{promotion_id}")
def delete_promotion(promotion_id: str, actorId: str = "", db: Session = Depends(get_db)):
    svc.delete_promotion(db, promotion_id, actorId)
    return {"ok": True}
