import os

# Settings require a DATABASE_URL at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.session import Base
from app.models.catalog_item import CatalogItem  # noqa: F401
from app.models.booking import Booking  # noqa: F401
from app.models.payment import BookingPayment  # noqa: F401
from app.models.note import BookingNote, RefundNote  # noqa: F401
from app.models.refund_request import RefundRequest  # noqa: F401
from app.models.promotion import Promotion  # noqa: F401
from app.models.notification import Notification  # noqa: F401
from app.models.email_log import EmailLog  # noqa: F401
from app.models.activity_log import ActivityLog  # noqa: F401
from app.schemas.booking import BookingCreate
from app.services.dispatch_service import EffectDispatcher

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FakeEmail:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, template_kind, entity, note=None):
        if self.fail:
            raise RuntimeError("smtp unreachable")
        self.sent.append((template_kind, entity.booking_ref, note))

    def kinds(self):
        return [k for k, _, _ in self.sent]


class FakeNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, recipient, message, link=""):
        self.sent.append((recipient, message, link))

    def to(self, recipient):
        return [m for r, m, _ in self.sent if r == recipient]


class FakeCatalog:
    def __init__(self):
        self.unavailable = set()

    def get_availability(self, item_id, item_type):
        return item_id not in self.unavailable

    def get_name(self, item_id):
        return f"Item {item_id}"


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def email():
    return FakeEmail()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def dispatcher(email, notifier):
    return EffectDispatcher(email, notifier)


def booking_body(**overrides) -> BookingCreate:
    data = dict(
        itemType="car",
        itemId="car-1",
        itemName="Toyota Vios",
        startDate=date(2026, 3, 20),
        endDate=date(2026, 3, 22),
        paymentOption="full",
        agreedToTerms=True,
        userId="user-1",
        firstName="Maria",
        lastName="Santos",
        email="maria@example.com",
        phone="09171234567",
        address="Cebu City",
        totalPrice=Decimal("2000.00"),
        amountPaid=Decimal("2000.00"),
        paymentProof="proofs/receipt-1.jpg",
        manualPaymentReference="GCASH-123",
    )
    data.update(overrides)
    return BookingCreate(**data)


def downpayment_body(**overrides) -> BookingCreate:
    data = dict(paymentOption="downpayment", totalPrice=Decimal("1000.00"), amountPaid=Decimal("300.00"))
    data.update(overrides)
    return booking_body(**data)


@pytest.fixture
def make_booking(db, catalog, dispatcher):
    from app.services.booking_service import create_booking

    def _make(body=None, now=NOW, **overrides):
        return create_booking(db, body or booking_body(**overrides), catalog=catalog, dispatcher=dispatcher, now=now)

    return _make


def later(**kw) -> datetime:
    return NOW + timedelta(**kw)
