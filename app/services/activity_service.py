import uuid, json
from sqlalchemy.orm import Session
from app.models.activity_log import ActivityLog

def log_activity(db: Session, actor_id: str, action: str, entity_ref: str, details: dict | None = None, link: str = ""):
    """Stage a staff activity entry; it commits with the caller's transaction."""
    db.add(ActivityLog(
        id=str(uuid.uuid4()),
        actor_id=actor_id,
        action=action,
        entity_ref=entity_ref,
        details_json=json.dumps(details or {}, ensure_ascii=False, default=str),
        link=link,
    ))
