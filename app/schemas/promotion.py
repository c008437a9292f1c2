from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

class PromotionIn(BaseModel):
    title: str
    discountType: Literal["percentage", "fixed"]
    discountValue: Decimal
    applicableTo: Literal["all", "car", "tour", "transport"]
    itemIds: List[str] = Field(default_factory=list)
    isActive: bool = True
    startDate: datetime
    endDate: datetime
    actorId: str = ""

class PromotionOut(BaseModel):
    id: str
    title: str
    discountType: str
    discountValue: Decimal
    applicableTo: str
    itemIds: List[str]
    isActive: bool
    startDate: str
    endDate: str

class QuoteIn(BaseModel):
    itemId: str
    quantity: int = 1  # days for cars, guests for tours

class QuoteOut(BaseModel):
    itemId: str
    finalPrice: Decimal
    originalPrice: Decimal
    discountApplied: Decimal
    promotionId: Optional[str] = None
    promotionTitle: Optional[str] = None
