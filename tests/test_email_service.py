from types import SimpleNamespace
from decimal import Decimal

import pytest

from app.models.email_log import EmailLog
from app.models.notification import Notification
from app.services import email_service
from app.services.dispatch_service import default_dispatcher
from app.domain import effects as fx


def test_render_booking_template(make_booking):
    b = make_booking()
    to, subject, body = email_service.render_template("booking-received", b, note="See you soon")
    assert to == "maria@example.com"
    assert subject == f"Booking Received: {b.booking_ref}"
    assert body.startswith("Dear Maria Santos,")
    assert "A note from our team: See you soon" in body

def test_render_refund_template():
    req = SimpleNamespace(booking_ref="RNT-1-ABCD", submitter_email="jo@example.com", submitter_name="Jo",
                          calculated_refund_amount=Decimal("1500.00"), refund_policy="half")
    to, subject, body = email_service.render_template("refund-approved", req)
    assert to == "jo@example.com"
    assert "PHP 1,500.00" in body and "half refund policy" in body

def test_unknown_template():
    with pytest.raises(ValueError):
        email_service.render_template("booking-exploded", None)

def test_failed_send_is_queued_for_retry(db, make_booking, monkeypatch):
    b = make_booking()
    outbox = []

    def down(to, subject, body):
        raise OSError("connection refused")

    monkeypatch.setattr(email_service, "send_email", down)
    email_service.QueuedEmailSender(db).send("booking-approved", b)
    log = db.query(EmailLog).one()
    assert log.status == "failed"
    assert log.related_ref == b.booking_ref
    assert log.template_kind == "booking-approved"

    monkeypatch.setattr(email_service, "send_email", lambda to, subject, body: outbox.append(to))
    assert email_service.process_pending_emails(db) == {"processed": 1, "sent": 1, "failed": 0}
    assert outbox == ["maria@example.com"]
    db.refresh(log)
    assert log.status == "sent" and log.sent_at is not None

def test_default_dispatcher_writes_outbox_and_notifications(db, make_booking, monkeypatch):
    b = make_booking()
    monkeypatch.setattr(email_service, "send_email", lambda to, subject, body: None)
    delivered = default_dispatcher(db).dispatch(fx.collect(
        fx.email("booking-cancelled", b, "Payment window passed"),
        fx.notify("user-1", "Your booking was cancelled.", "/my-bookings"),
        fx.notify(None, "dropped"),
    ))
    assert delivered == 2
    assert db.query(EmailLog).filter(EmailLog.status == "sent").count() == 1
    assert db.query(Notification).filter(Notification.recipient == "user-1").count() == 1
