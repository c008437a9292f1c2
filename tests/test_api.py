from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_catalog, get_dispatcher
from app.db.session import get_db
from app.main import app
from app.models.catalog_item import CatalogItem


@pytest.fixture
def client(db, catalog, dispatcher):
    def _db():
        yield db

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    yield TestClient(app)
    app.dependency_overrides.clear()


PAYLOAD = {
    "itemType": "car",
    "itemId": "car-1",
    "itemName": "Toyota Vios",
    "startDate": "2031-05-10",
    "endDate": "2031-05-12",
    "paymentOption": "downpayment",
    "agreedToTerms": True,
    "userId": "user-1",
    "firstName": "Maria",
    "lastName": "Santos",
    "email": "maria@example.com",
    "phone": "09171234567",
    "address": "Cebu City",
    "totalPrice": "1000.00",
    "amountPaid": "300.00",
    "paymentProof": "proofs/1.jpg",
    "manualPaymentReference": "GCASH-1",
}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_booking_lifecycle_over_http(client):
    r = client.post("/api/v1/public/bookings", json=PAYLOAD)
    assert r.status_code == 201, r.text
    ref = r.json()["bookingRef"]
    assert r.json()["pendingExpiresAt"] is not None

    r = client.get("/api/v1/public/items/car-1/booked-dates")
    assert r.json()["bookedDates"] == ["2031-05-10", "2031-05-11", "2031-05-12"]

    r = client.post(f"/api/v1/staff/bookings/{ref}/approve",
                    json={"actorId": "staff-1", "paymentDueDuration": 3, "paymentDueUnit": "days"})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "confirmed"
    assert r.json()["paymentDueDate"] is not None

    r = client.post(f"/api/v1/public/bookings/{ref}/payments", json={"amount": "200.00", "paymentProof": "p2"})
    assert r.status_code == 400
    assert r.json()["code"] == "InsufficientAmount"

    r = client.post(f"/api/v1/public/bookings/{ref}/payments", json={"amount": "700.00", "paymentProof": "p2"})
    assert r.json()["status"] == "fully_paid"
    assert len(r.json()["payments"]) == 2

    r = client.post(f"/api/v1/staff/bookings/{ref}/notes", json={"actorId": "staff-1", "note": "Keys handed over"})
    assert r.status_code == 201
    assert r.json()["author"] == "staff-1"


def test_domain_errors_map_to_status_codes(client):
    assert client.get("/api/v1/public/bookings/RNT-NONE-0000").status_code == 404
    bad = dict(PAYLOAD, itemType="boat")
    r = client.post("/api/v1/public/bookings", json=bad)
    assert r.status_code == 400
    assert r.json()["code"] == "ValidationError"

    ref = client.post("/api/v1/public/bookings", json=PAYLOAD).json()["bookingRef"]
    assert client.post("/api/v1/public/bookings", json=PAYLOAD).status_code == 409
    client.post(f"/api/v1/staff/bookings/{ref}/reject", json={"actorId": "staff-1"})
    r = client.post(f"/api/v1/staff/bookings/{ref}/approve", json={"actorId": "staff-1"})
    assert r.status_code == 409
    assert r.json()["code"] == "InvalidTransition"
    assert client.post(f"/api/v1/staff/bookings/{ref}/launch", json={"actorId": "staff-1"}).status_code == 404


def test_refund_flow_over_http(client):
    ref = client.post("/api/v1/public/bookings", json=PAYLOAD).json()["bookingRef"]
    body = {"bookingReference": ref, "name": "Maria", "email": "maria@example.com", "phone": "0917", "reason": "Sick"}
    r = client.post("/api/v1/public/refund-requests", json=body)
    assert r.status_code == 201, r.text
    assert r.json()["refundPolicy"] == "full"
    assert client.post("/api/v1/public/refund-requests", json=body).status_code == 409

    rid = r.json()["id"]
    r = client.post(f"/api/v1/staff/refund-requests/{rid}/status", json={"status": "approved", "actorId": "staff-1"})
    assert r.json()["status"] == "approved"
    assert client.get(f"/api/v1/public/bookings/{ref}").json()["status"] == "cancelled"
    assert len(client.get("/api/v1/staff/refund-requests", params={"status": "approved"}).json()) == 1


def test_promotions_over_http(client, db):
    db.add(CatalogItem(id="car-1", item_type="car", name="Toyota Vios", base_price=Decimal("2000.00")))
    db.commit()
    promo = {
        "title": "Launch", "discountType": "fixed", "discountValue": "150", "applicableTo": "all",
        "startDate": "2020-01-01T00:00:00Z", "endDate": "2099-01-01T00:00:00Z", "actorId": "owner-1",
    }
    r = client.post("/api/v1/staff/promotions", json=promo)
    assert r.status_code == 201, r.text
    assert client.post("/api/v1/staff/promotions", json=dict(promo, title="Again")).status_code == 409

    r = client.post("/api/v1/public/quote", json={"itemId": "car-1"})
    assert r.json()["promotionTitle"] == "Launch"
    assert r.json()["finalPrice"] == "1850.00"
    assert len(client.get("/api/v1/public/promotions/active").json()) == 1
