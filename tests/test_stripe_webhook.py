import hashlib
import hmac
import json
import time

from seek import config
from tests.conftest import CREATOR_ID, SERVICE_ID


def _booking(db, status="pending", session_id="cs_test_1", amount_cents=1999):
    row = {
        "id": "55555555-5555-5555-5555-555555555555",
        "service_id": SERVICE_ID,
        "creator_id": CREATOR_ID,
        "customer_name": "Ada Lovelace",
        "customer_email": "ada@example.com",
        "scheduled_at": "2026-11-02T15:00:00+00:00",
        "status": status,
        "stripe_payment_intent_id": session_id,
        "amount_cents": amount_cents,
        "currency": "USD",
    }
    db.tables["bookings"].append(row)
    return row


def _post_event(client, etype, obj, secret=None):
    payload = json.dumps({
        "id": "evt_test_1",
        "object": "event",
        "type": etype,
        "data": {"object": obj},
    })
    ts = int(time.time())
    signed = f"{ts}.{payload}".encode()
    sig = hmac.new((secret or config.STRIPE_WEBHOOK_SECRET).encode(), signed, hashlib.sha256).hexdigest()
    return client.post(
        "/stripe/webhook",
        content=payload,
        headers={"stripe-signature": f"t={ts},v1={sig}", "content-type": "application/json"},
    )


def _session(session_id="cs_test_1", payment_status="paid"):
    return {"id": session_id, "object": "checkout.session", "payment_status": payment_status}


def test_bad_signature_is_400(client, db):
    booking = _booking(db)
    r = _post_event(client, "checkout.session.completed", _session(), secret="whsec_wrong")
    assert r.status_code == 400
    assert booking["status"] == "pending"


def test_completed_session_marks_booking_paid_and_counts_sale(client, db):
    booking = _booking(db)
    r = _post_event(client, "checkout.session.completed", _session())
    assert r.status_code == 200
    assert r.json() == {"ok": True}
    assert booking["status"] == "paid"

    service = db.tables["services"][0]
    assert service["total_bookings"] == 1
    assert service["total_revenue"] == "19.99"


def test_replayed_event_counts_once(client, db):
    booking = _booking(db)
    _post_event(client, "checkout.session.completed", _session())
    _post_event(client, "checkout.session.completed", _session())
    assert booking["status"] == "paid"
    assert db.tables["services"][0]["total_bookings"] == 1


def test_unpaid_completion_waits_for_async_payment(client, db):
    booking = _booking(db)
    _post_event(client, "checkout.session.completed", _session(payment_status="unpaid"))
    assert booking["status"] == "pending"

    _post_event(client, "checkout.session.async_payment_succeeded", _session())
    assert booking["status"] == "paid"


def test_expired_session_cancels_pending_booking(client, db):
    booking = _booking(db)
    r = _post_event(client, "checkout.session.expired", _session(payment_status="unpaid"))
    assert r.status_code == 200
    assert booking["status"] == "cancelled"


def test_expired_session_leaves_paid_booking_alone(client, db):
    booking = _booking(db, status="paid")
    _post_event(client, "checkout.session.expired", _session())
    assert booking["status"] == "paid"


def test_unknown_session_and_other_events_are_acknowledged(client, db):
    assert _post_event(client, "checkout.session.completed", _session("cs_unknown")).status_code == 200
    assert _post_event(client, "customer.created", {"id": "cus_1", "object": "customer"}).status_code == 200
    assert db.tables["services"][0]["total_bookings"] == 0


def test_missing_webhook_secret_is_500(client, db, monkeypatch):
    booking = _booking(db)
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", None)
    r = _post_event(client, "checkout.session.completed", _session(), secret="whsec_test_123")
    assert r.status_code == 500
    assert r.json()["detail"] == "Webhook secret not configured"
    assert booking["status"] == "pending"
    assert db.tables["services"][0]["total_bookings"] == 0
