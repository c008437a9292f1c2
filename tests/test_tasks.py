from app.models.booking import Booking
from app.models.email_log import EmailLog
from app.services import email_service
from app.tasks import worker_jobs
from app.tasks.celery_app import celery
from app.tasks.jobs import process_email_queue, reconcile_bookings


def test_beat_schedule():
    schedule = celery.conf.beat_schedule
    assert schedule["reconcile-bookings"]["task"] == reconcile_bookings.name == "app.tasks.jobs.reconcile_bookings"
    assert schedule["reconcile-bookings"]["schedule"] == 60.0
    assert schedule["process-email-queue"]["task"] == process_email_queue.name


def test_reconcile_job_uses_a_fresh_session(session_factory, make_booking, db, monkeypatch):
    b = make_booking()
    # push the hold into the past
    b.deadline_at = b.deadline_at.replace(year=2000)
    db.commit()
    sent = []
    monkeypatch.setattr(worker_jobs, "SessionLocal", session_factory)
    monkeypatch.setattr(email_service, "send_email", lambda to, subject, body: sent.append(subject))

    result = worker_jobs.reconcile_bookings()
    assert result["cancelled"] == 1
    assert sent == [f"Booking Cancelled: {b.booking_ref}"]
    db.expire_all()
    assert db.query(Booking).one().status == "cancelled"
    assert db.query(EmailLog).one().status == "sent"
