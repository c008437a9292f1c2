import uuid
from sqlalchemy.orm import Session
from app.models.notification import Notification


class DbNotifier:
    """NotificationPort that stores in-app notifications for the recipient to poll."""

    def __init__(self, db: Session):
        self.db = db

    def notify(self, recipient: str, message: str, link: str = "") -> str:
        nid = str(uuid.uuid4())
        self.db.add(Notification(id=nid, recipient=recipient, message=message, link=link or ""))
        self.db.commit()
        return nid


def list_notifications(db: Session, recipient: str, unread_only: bool = False, limit: int = 50) -> list[Notification]:
    q = db.query(Notification).filter(Notification.recipient == recipient)
    if unread_only:
        q = q.filter(Notification.is_read == False)  # noqa: E712
    return q.order_by(Notification.created_at.desc()).limit(min(limit, 200)).all()
