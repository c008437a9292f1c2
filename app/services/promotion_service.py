import logging
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFound, ValidationError
from app.models.promotion import Promotion
from app.schemas.promotion import PromotionIn
from app.services.activity_service import log_activity

logger = logging.getLogger(__name__)

PROMOTIONS_LINK = "/owner/manage-promotions"


def active_promotions(db: Session, now: datetime) -> list[Promotion]:
    """Promotions customers can use right now, oldest first so ties are stable."""
    return (
        db.query(Promotion)
        .filter(Promotion.is_active == True, Promotion.start_date <= now, Promotion.end_date >= now)  # noqa: E712
        .order_by(Promotion.created_at.asc(), Promotion.id.asc())
        .all()
    )


def list_promotions(db: Session) -> list[Promotion]:
    return db.query(Promotion).order_by(Promotion.created_at.desc()).all()


def _validate(body: PromotionIn) -> None:
    if not body.title.strip():
        raise ValidationError("title is required")
    if body.discountValue <= 0:
        raise ValidationError("discountValue must be > 0")
    if body.discountType == "percentage" and body.discountValue > 100:
        raise ValidationError("a percentage discount cannot exceed 100")
    if body.startDate > body.endDate:
        raise ValidationError("startDate must not be after endDate")
    if body.applicableTo != "all" and not body.itemIds:
        raise ValidationError("Please select at least one item for this type of promotion.")


def check_conflict(db: Session, body: PromotionIn, editing_id: str | None = None) -> None:
    """Reject a promotion whose window overlaps another one covering the same items."""
    q = db.query(Promotion).filter(Promotion.start_date <= body.endDate, Promotion.end_date >= body.startDate)
    if editing_id:
        q = q.filter(Promotion.id != editing_id)
    wanted = set(body.itemIds)
    for other in q.all():
        if body.applicableTo == "all" or other.applicable_to == "all" or wanted & set(other.item_ids or []):
            raise ConflictError(
                f"This promotion conflicts with an existing promotion: '{other.title}'.",
                promotion_id=other.id,
            )


def _apply(promo: Promotion, body: PromotionIn) -> None:
    promo.title = body.title.strip()
    promo.discount_type = body.discountType
    promo.discount_value = Decimal(body.discountValue)
    promo.applicable_to = body.applicableTo
    promo.item_ids = [] if body.applicableTo == "all" else list(dict.fromkeys(body.itemIds))
    promo.is_active = body.isActive
    promo.start_date = body.startDate
    promo.end_date = body.endDate


def create_promotion(db: Session, body: PromotionIn) -> Promotion:
    _validate(body)
    check_conflict(db, body)
    promo = Promotion(id=str(uuid.uuid4()))
    _apply(promo, body)
    db.add(promo)
    log_activity(db, body.actorId or "unknown", "promotion.create", promo.id, {"title": promo.title}, PROMOTIONS_LINK)
    db.commit()
    db.refresh(promo)
    logger.info("Promotion %s created (%s %s on %s)", promo.id, promo.discount_value, promo.discount_type, promo.applicable_to)
    return promo


def update_promotion(db: Session, promotion_id: str, body: PromotionIn) -> Promotion:
    promo = db.get(Promotion, promotion_id)
    if not promo:
        raise NotFound("Promotion not found", promotion_id=promotion_id)
    _validate(body)
    check_conflict(db, body, editing_id=promotion_id)
    _apply(promo, body)
    log_activity(db, body.actorId or "unknown", "promotion.update", promo.id, {"title": promo.title}, PROMOTIONS_LINK)
    db.commit()
    db.refresh(promo)
    return promo


def delete_promotion(db: Session, promotion_id: str, actor_id: str = "") -> None:
    promo = db.get(Promotion, promotion_id)
    if not promo:
        raise NotFound("Promotion not found", promotion_id=promotion_id)
    log_activity(db, actor_id or "unknown", "promotion.delete", promo.id, {"title": promo.title}, PROMOTIONS_LINK)
    db.delete(promo)
    db.commit()
