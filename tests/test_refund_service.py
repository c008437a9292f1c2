from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import update

from app.core.errors import DuplicateRequest, NotFound, NotRefundable, ValidationError
from app.models.booking import Booking
from app.services import booking_service as booking_svc
from app.services import refund_service as svc

from conftest import NOW, later

SUBMITTER = dict(name="Maria Santos", email="maria@example.com", phone="09171234567", reason="Flight cancelled")


def _submit(db, dispatcher, ref, now=NOW, **kw):
    data = dict(SUBMITTER)
    data.update(kw)
    return svc.submit_refund_request(db, ref, dispatcher=dispatcher, now=now, **data)


def test_submit_freezes_policy_and_amount(db, make_booking, dispatcher, notifier):
    b = make_booking()  # starts 2026-03-20, 18 days after NOW
    req = _submit(db, dispatcher, b.booking_ref)
    assert req.status == "pending"
    assert req.refund_policy == "full"
    assert req.calculated_refund_amount == Decimal("2000.00")
    assert any(b.booking_ref in m for m in notifier.to("staff"))


def test_half_refund_inside_a_week(db, make_booking, dispatcher):
    b = make_booking(startDate=date(2026, 3, 5), endDate=date(2026, 3, 6))
    req = _submit(db, dispatcher, b.booking_ref.lower())
    assert req.refund_policy == "half"
    assert req.calculated_refund_amount == Decimal("1000.00")


def test_one_request_per_booking(db, make_booking, dispatcher):
    b = make_booking()
    _submit(db, dispatcher, b.booking_ref)
    with pytest.raises(DuplicateRequest):
        _submit(db, dispatcher, b.booking_ref)


def test_submit_validation(db, make_booking, dispatcher):
    b = make_booking()
    with pytest.raises(ValidationError):
        _submit(db, dispatcher, b.booking_ref, reason="  ")
    with pytest.raises(NotFound):
        _submit(db, dispatcher, "RNT-NOPE-0000")


def test_finished_bookings_are_not_refundable(db, make_booking, dispatcher):
    b = make_booking()
    booking_svc.reject_booking(db, b.booking_ref, "staff-1", dispatcher=dispatcher)
    with pytest.raises(NotRefundable):
        _submit(db, dispatcher, b.booking_ref)


def test_approving_a_refund_cancels_the_booking(db, make_booking, dispatcher, email, notifier):
    b = make_booking()
    req = _submit(db, dispatcher, b.booking_ref)
    # amount stays as quoted even when resolved much later
    req = svc.resolve_refund_request(db, req.id, "approved", "staff-1", "Approved per policy",
                                     dispatcher=dispatcher, now=later(days=30))
    assert req.status == "approved"
    assert req.calculated_refund_amount == Decimal("2000.00")
    assert [n.text for n in req.notes] == ["Approved per policy"]

    booking = booking_svc.get_booking(db, b.booking_ref)
    assert booking.status == "cancelled"
    assert booking.notes[-1].text == (
        "Booking cancelled due to refund request status: approved. Reason: Approved per policy"
    )
    assert "refund-approved" in email.kinds()
    assert any("has been approved" in m for m in notifier.to("user-1"))


def test_confirming_leaves_the_booking_alone(db, make_booking, dispatcher, email):
    b = make_booking()
    req = _submit(db, dispatcher, b.booking_ref)
    req = svc.resolve_refund_request(db, req.id, "confirmed", "staff-1", dispatcher=dispatcher)
    assert req.notes[-1].text == "Status updated to confirmed"
    assert booking_svc.get_booking(db, b.booking_ref).status == "pending"
    assert email.kinds()[-1] == "refund-confirmed"


def test_declining_an_already_cancelled_booking(db, make_booking, dispatcher):
    b = make_booking()
    req = _submit(db, dispatcher, b.booking_ref)
    booking_svc.cancel_booking(db, b.booking_ref, "staff-1", dispatcher=dispatcher)
    req = svc.resolve_refund_request(db, req.id, "declined", "staff-1", dispatcher=dispatcher)
    assert req.status == "declined"
    booking = booking_svc.get_booking(db, b.booking_ref)
    assert booking.status == "cancelled"
    assert len(booking.notes) == 1


def test_resolve_rejects_unknown_status_and_request(db, dispatcher):
    with pytest.raises(ValidationError):
        svc.resolve_refund_request(db, "x", "pending", "staff-1", dispatcher=dispatcher)
    with pytest.raises(NotFound):
        svc.resolve_refund_request(db, "missing", "approved", "staff-1", dispatcher=dispatcher)


def test_list_requests(db, make_booking, dispatcher):
    a = make_booking()
    b = make_booking(itemId="car-2")
    _submit(db, dispatcher, a.booking_ref)
    req = _submit(db, dispatcher, b.booking_ref, name="Jose Rizal")
    svc.resolve_refund_request(db, req.id, "declined", "staff-1", dispatcher=dispatcher)
    assert len(svc.list_refund_requests(db)) == 2
    assert [r.booking_ref for r in svc.list_refund_requests(db, status="declined")] == [b.booking_ref]
    assert [r.submitter_name for r in svc.list_refund_requests(db, search="rizal")] == ["Jose Rizal"]


def test_booking_completed_while_refund_is_resolved(db, session_factory, make_booking, dispatcher, email,
                                                     notifier, monkeypatch):
    b = make_booking()
    booking_svc.approve_booking(db, b.booking_ref, "staff-1", dispatcher=dispatcher)
    req = _submit(db, dispatcher, b.booking_ref)
    real = svc.apply_event

    def complete_first(db_, booking, *args, **kwargs):
        # another staff member completes the booking after it was read
        other = session_factory()
        other.execute(update(Booking).where(Booking.id == booking.id).values(status="completed"))
        other.commit()
        other.close()
        return real(db_, booking, *args, **kwargs)

    monkeypatch.setattr(svc, "apply_event", complete_first)
    req = svc.resolve_refund_request(db, req.id, "approved", "staff-1", dispatcher=dispatcher)
    assert req.status == "approved"
    assert booking_svc.get_booking(db, b.booking_ref).status == "completed"
    assert email.kinds()[-1] == "refund-approved"
    assert any("has been approved" in m for m in notifier.to("user-1"))
