from fastapi import APIRouter
from app.api.v1.routes.bookings import router as bookings_router
from app.api.v1.routes.refunds import router as refunds_router
from app.api.v1.routes.promotions import router as promotions_router
from app.api.v1.routes.notifications import router as notifications_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(bookings_router)
api_router.include_router(refunds_router)
api_router.include_router(promotions_router)
api_router.include_router(notifications_router)
