from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.core.errors import InvalidTransition
from app.domain.booking_state import (
    BookingEvent as E,
    BookingStatus as S,
    initial_deadline,
    next_status,
    plan_transition,
)
from app.domain.deadlines import NO_DEADLINE, Deadline, DeadlineKind, awaiting_balance, awaiting_payment
from app.domain.effects import EffectKind

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _booking(**kw):
    data = dict(
        booking_ref="RNT-ABC123-XY12",
        status="pending",
        payment_option="full",
        total_price=Decimal("1000.00"),
        amount_paid=Decimal("1000.00"),
        user_id="user-1",
        deadline=NO_DEADLINE,
    )
    data.update(kw)
    return SimpleNamespace(**data)


def test_deadline_requires_due_at_for_every_kind_but_none():
    with pytest.raises(ValueError):
        Deadline(DeadlineKind.AWAITING_PAYMENT, None)
    with pytest.raises(ValueError):
        Deadline(DeadlineKind.NONE, NOW)


def test_deadline_elapsed_and_views():
    d = awaiting_payment(NOW)
    assert d.has_elapsed(NOW + timedelta(seconds=1))
    assert not d.has_elapsed(NOW)
    assert d.due_for(DeadlineKind.AWAITING_PAYMENT) == NOW
    assert d.due_for(DeadlineKind.AWAITING_BALANCE) is None
    assert not NO_DEADLINE.has_elapsed(NOW)


@pytest.mark.parametrize("current,event,expected", [
    (S.PENDING, E.APPROVE, S.CONFIRMED),
    (S.PENDING, E.REJECT, S.REJECTED),
    (S.PENDING, E.PENDING_EXPIRED, S.CANCELLED),
    (S.PENDING, E.ADMIN_CONFIRMATION_EXPIRED, S.CANCELLED),
    (S.CONFIRMED, E.BALANCE_PAID, S.FULLY_PAID),
    (S.CONFIRMED, E.PAYMENT_DUE_EXPIRED, S.CANCELLED),
    (S.FULLY_PAID, E.COMPLETE, S.COMPLETED),
    (S.FULLY_PAID, E.CANCEL, S.CANCELLED),
])
def test_allowed_transitions(current, event, expected):
    assert next_status(current, event) is expected


@pytest.mark.parametrize("current,event", [
    (S.CANCELLED, E.APPROVE),
    (S.COMPLETED, E.CANCEL),
    (S.REJECTED, E.COMPLETE),
    (S.PENDING, E.BALANCE_PAID),
    (S.CONFIRMED, E.APPROVE),
])
def test_rejected_transitions(current, event):
    with pytest.raises(InvalidTransition) as exc:
        next_status(current, event)
    assert exc.value.status_code == 409


def test_initial_deadline_per_item_type():
    hold, window = timedelta(minutes=15), timedelta(hours=24)
    car = initial_deadline("car", has_payment=True, now=NOW, hold=hold, admin_window=window)
    assert car == awaiting_payment(NOW + hold)
    tour = initial_deadline("tour", has_payment=False, now=NOW, hold=hold, admin_window=window)
    assert tour.kind is DeadlineKind.AWAITING_PAYMENT
    transport = initial_deadline("transport", has_payment=True, now=NOW, hold=hold, admin_window=window)
    assert transport.kind is DeadlineKind.AWAITING_ADMIN_CONFIRMATION
    assert transport.due_at == NOW + window
    assert initial_deadline("transport", has_payment=False, now=NOW, hold=hold, admin_window=window) is NO_DEADLINE


def test_approve_downpayment_sets_balance_deadline():
    b = _booking(payment_option="downpayment", amount_paid=Decimal("300.00"), deadline=awaiting_payment(NOW))
    plan = plan_transition(b, E.APPROVE, now=NOW, balance_due=timedelta(hours=48))
    assert plan.to_status is S.CONFIRMED
    assert plan.deadline == awaiting_balance(NOW + timedelta(hours=48))


def test_approve_downpayment_without_window_is_an_error():
    b = _booking(payment_option="downpayment", amount_paid=Decimal("300.00"))
    with pytest.raises(ValueError):
        plan_transition(b, E.APPROVE, now=NOW)


def test_approve_full_payment_clears_deadline():
    plan = plan_transition(_booking(deadline=awaiting_payment(NOW)), E.APPROVE, now=NOW)
    assert plan.deadline is NO_DEADLINE


def test_expiry_plan_names_the_deadline():
    b = _booking(status="confirmed", payment_option="downpayment", amount_paid=Decimal("300.00"),
                 deadline=awaiting_balance(NOW))
    plan = plan_transition(b, E.PAYMENT_DUE_EXPIRED, now=NOW)
    email, notice = plan.effects
    assert email.kind is EffectKind.EMAIL
    assert email.payload["template"] == "booking-cancelled"
    assert "remaining balance was not paid" in email.payload["note"]
    assert notice.payload["recipient"] == "user-1"
    assert notice.payload["message"].startswith("Your booking RNT-ABC123-XY12 was automatically cancelled")


def test_guest_booking_gets_no_owner_notification():
    plan = plan_transition(_booking(user_id=None), E.REJECT, now=NOW, note="Dates unavailable")
    assert [e.kind for e in plan.effects] == [EffectKind.EMAIL]
    assert plan.effects[0].payload["note"] == "Dates unavailable"
