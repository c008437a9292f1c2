from sqlalchemy.orm import Session
from sqlalchemy.exc import ProgrammingError
from app.db.session import SessionLocal
from app.services.email_service import process_pending_emails
from app.services.reconciliation import ReconciliationScheduler


def reconcile_bookings() -> dict:
    """Cancel bookings whose payment or confirmation deadline has passed. Run every minute via Celery beat."""
    try:
        return ReconciliationScheduler(session_factory=SessionLocal).sweep()
    except ProgrammingError:
        # DB not migrated yet; don't crash the worker.
        return {"skipped": True, "reason": "missing_tables"}


def process_email_queue(limit: int = 50) -> dict:
    """Process queued/failed emails (retry send). Run periodically via Celery beat."""
    db: Session = SessionLocal()
    try:
        try:
            return process_pending_emails(db, limit=limit)
        except ProgrammingError:
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
    finally:
        db.close()
