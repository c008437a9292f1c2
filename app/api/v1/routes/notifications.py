from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.services.notification_service import list_notifications

router = APIRouter(tags=["notifications"])

@router.get("/notifications/{recipient}")
def get_notifications(recipient: str, unreadOnly: bool = False, limit: int = 50, db: Session = Depends(get_db)):
    return [
        {"id": n.id, "message": n.message, "link": n.link, "isRead": n.is_read, "createdAt": n.created_at.isoformat()}
        for n in list_notifications(db, recipient, unreadOnly, limit)
    ]
