import os

# before anything imports seek.config
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE", "service-role-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_123")
os.environ.setdefault("PUBLIC_SITE_URL", "https://seek.test")
os.environ.setdefault("LOGIN_URL", "https://seek.test/login")

import copy
import time
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
import stripe
from fastapi.testclient import TestClient
from jose import jwt
from postgrest.exceptions import APIError

from seek import config
from seek.deps import get_supabase
from seek.main import app

CREATOR_ID = "11111111-1111-1111-1111-111111111111"
OTHER_CREATOR_ID = "22222222-2222-2222-2222-222222222222"
SERVICE_ID = "33333333-3333-3333-3333-333333333333"
PAUSED_SERVICE_ID = "44444444-4444-4444-4444-444444444444"


# ──────────────────────────────────────────────────────────────────────────────
# In-memory stand-in for the supabase table API (the subset the app uses)
# ──────────────────────────────────────────────────────────────────────────────
class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self._order = None
        self._limit = None

    def select(self, *_cols, **_kw):
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def eq(self, col, value):
        self.filters.append(lambda r: str(r.get(col)) == str(value))
        return self

    def neq(self, col, value):
        self.filters.append(lambda r: str(r.get(col)) != str(value))
        return self

    def order(self, col, desc=False):
        self._order = (col, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def _matching(self):
        return [r for r in self.db.tables.setdefault(self.table, []) if all(f(r) for f in self.filters)]

    def execute(self):
        if self.table in self.db.fail_on:
            raise RuntimeError(f"{self.table} is unavailable")
        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "insert":
            new = []
            for item in self.payload if isinstance(self.payload, list) else [self.payload]:
                col = self.db.unique.get(self.table)
                if col and any(r.get(col) == item.get(col) for r in rows):
                    raise APIError({"code": "23505", "message": f"duplicate key value violates unique constraint on {col}"})
                row = {"id": str(uuid.uuid4()), "created_at": datetime.now(timezone.utc).isoformat()}
                row.update(item)
                rows.append(row)
                new.append(copy.deepcopy(row))
            return SimpleNamespace(data=new)

        if self.op == "update":
            hits = self._matching()
            for r in hits:
                r.update(self.payload)
            return SimpleNamespace(data=copy.deepcopy(hits))

        hits = self._matching()
        if self._order:
            col, desc = self._order
            hits = sorted(hits, key=lambda r: str(r.get(col) or ""), reverse=desc)
        if self._limit is not None:
            hits = hits[: self._limit]
        return SimpleNamespace(data=copy.deepcopy(hits))


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.fail_on = set()
        self.unique = {}

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.get(name, [])


def _service(**over):
    row = {
        "id": SERVICE_ID,
        "creator_id": CREATOR_ID,
        "title": "30-min Design Review",
        "description": "Expert feedback on your product design.",
        "price": 19.99,
        "currency": "USD",
        "duration_minutes": 30,
        "service_type": "consultation",
        "status": "active",
        "total_bookings": 0,
        "total_revenue": 0,
        "created_at": "2026-01-02T00:00:00+00:00",
    }
    row.update(over)
    return row


@pytest.fixture
def db():
    fake = FakeSupabase()
    fake.tables["profiles"] = [
        {"id": CREATOR_ID, "username": "sarahchen", "full_name": "Sarah Chen",
         "headline": "Design Consultant", "bio": "I help founders design products."},
        {"id": OTHER_CREATOR_ID, "username": "someoneelse", "full_name": "Someone Else"},
    ]
    fake.tables["services"] = [
        _service(),
        _service(id=PAUSED_SERVICE_ID, title="Strategy Call", price=199, status="paused",
                 created_at="2026-01-03T00:00:00+00:00"),
    ]
    fake.tables["bookings"] = []
    return fake


@pytest.fixture
def client(db):
    app.dependency_overrides[get_supabase] = lambda: db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_token(sub=CREATOR_ID, **claims):
    body = {
        "sub": sub,
        "iss": f"{config.SUPABASE_URL}/auth/v1",
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
    }
    body.update(claims)
    return jwt.encode(body, config.SUPABASE_JWT_SECRET, algorithm="HS256")


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def fake_stripe(monkeypatch):
    """Records Checkout calls; one session per idempotency key, like Stripe."""
    state = SimpleNamespace(created=[], expired=[], sessions={}, params={}, fail=False)

    def create(**kwargs):
        if state.fail:
            raise stripe.InvalidRequestError("No such price", param="line_items")
        state.created.append(kwargs)
        key = kwargs.get("idempotency_key")
        params = {k: v for k, v in kwargs.items() if k != "idempotency_key"}
        if key in state.sessions:
            if state.params[key] != params:
                raise stripe.IdempotencyError("Keys for idempotent requests can only be used with the same parameters")
            return state.sessions[key]
        sid = f"cs_test_{len(state.sessions) + 1}"
        state.sessions[key] = SimpleNamespace(
            id=sid, url=f"https://checkout.stripe.com/c/pay/{sid}", status="open"
        )
        state.params[key] = params
        return state.sessions[key]

    def expire(session_id, **_kw):
        state.expired.append(session_id)
        for s in state.sessions.values():
            if s.id == session_id:
                s.status = "expired"

    monkeypatch.setattr(stripe.checkout.Session, "create", create)
    monkeypatch.setattr(stripe.checkout.Session, "expire", expire)
    return state
