# seek/payments.py
import hashlib
import logging
from uuid import UUID

import stripe
from fastapi import APIRouter, Depends, HTTPException
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import Client

from . import config
from .deps import get_supabase
from .models import BookingRequest, BookingStatus, CheckoutIn, CheckoutOut, ServiceStatus
from .pricing import to_minor_units

router = APIRouter(prefix="/api", tags=["checkout"])

stripe.api_key = config.STRIPE_SECRET_KEY

log = logging.getLogger("uvicorn.error")

MAX_SESSION_ROLLOVERS = 3

# Postgres unique_violation; bookings.stripe_payment_intent_id is unique
UNIQUE_VIOLATION = "23505"


def _idempotency_key(req: BookingRequest, amount: int, currency: str) -> str:
    # everything that reaches Stripe; a reused key with other params is rejected
    raw = "|".join([
        req.service_id,
        req.customer_email.lower(),
        req.customer_name,
        req.scheduled_at.isoformat(),
        str(amount),
        currency,
    ])
    return "checkout-" + hashlib.sha256(raw.encode()).hexdigest()


def _rollover_key(key: str, expired_session_id: str) -> str:
    return "checkout-" + hashlib.sha256(f"{key}|{expired_session_id}".encode()).hexdigest()


def _first(resp):
    rows = resp.data or []
    return rows[0] if rows else None


def _line_item_description(service, creator) -> str:
    who = creator.get("full_name") or creator.get("username")
    duration = service.get("duration_minutes")
    if duration and who:
        return f"{duration} minutes with {who}"
    if who:
        return f"with {who}"
    return ""


def _create_session(req: BookingRequest, service, creator, amount: int, currency: str, key: str):
    product_data = {"name": service["title"]}
    description = _line_item_description(service, creator)
    if description:
        product_data["description"] = description

    cancel_path = creator.get("username") or ""
    return stripe.checkout.Session.create(
        mode="payment",
        payment_method_types=["card"],
        line_items=[{
            "price_data": {
                "currency": currency,
                "product_data": product_data,
                "unit_amount": amount,
            },
            "quantity": 1,
        }],
        success_url=f"{config.PUBLIC_SITE_URL}/booking/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{config.PUBLIC_SITE_URL}/{cancel_path}",
        customer_email=req.customer_email,
        metadata={
            "serviceId": req.service_id,
            "creatorId": service["creator_id"],
            "customerName": req.customer_name,
            "scheduledAt": req.scheduled_at.isoformat(),
        },
        idempotency_key=key,
    )


def _open_session(req: BookingRequest, service, creator, amount: int, currency: str):
    """
    Checkout session for this exact booking request.

    Resubmits within Stripe's idempotency window get the same session back.
    If that session was expired (its booking insert failed), a key derived from
    the expired session id yields a fresh, payable one.
    """
    key = _idempotency_key(req, amount, currency)
    session = _create_session(req, service, creator, amount, currency, key)
    for _ in range(MAX_SESSION_ROLLOVERS):
        if session.status != "expired":
            return session
        key = _rollover_key(key, session.id)
        session = _create_session(req, service, creator, amount, currency, key)
    if session.status != "expired":
        return session
    log.error(f"Checkout session {session.id} still expired after {MAX_SESSION_ROLLOVERS} new keys")
    raise HTTPException(status_code=500, detail="Failed to create checkout session")


def _expire_session(session_id: str) -> None:
    try:
        stripe.checkout.Session.expire(session_id)
    except stripe.StripeError as e:
        log.error(f"Could not expire orphaned checkout session {session_id}: {e}")


# ──────────────────────────────────────────────────────────────────────────────
# POST /api/checkout: public; the storefront redirects to the returned url
# ──────────────────────────────────────────────────────────────────────────────
@router.post("/checkout", response_model=CheckoutOut)
def create_checkout(body: CheckoutIn, supabase: Client = Depends(get_supabase)):
    required = (body.service_id, body.customer_email, body.customer_name, body.scheduled_at)
    if not all(v and v.strip() for v in required):
        raise HTTPException(status_code=400, detail="Missing required fields")

    try:
        req = BookingRequest(
            service_id=body.service_id.strip(),
            customer_email=body.customer_email.strip(),
            customer_name=body.customer_name.strip(),
            scheduled_at=body.scheduled_at.strip(),
        )
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid customerEmail or scheduledAt")

    try:
        UUID(req.service_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Service not found")

    try:
        service = _first(
            supabase.table("services").select("*").eq("id", req.service_id).limit(1).execute()
        )
        if not service or service.get("status") != ServiceStatus.active.value:
            raise HTTPException(status_code=404, detail="Service not found")

        creator = _first(
            supabase.table("profiles")
            .select("id,username,full_name")
            .eq("id", service["creator_id"])
            .limit(1)
            .execute()
        ) or {}

        currency = (service.get("currency") or "USD").lower()
        amount = to_minor_units(service["price"], currency)

        try:
            session = _open_session(req, service, creator, amount, currency)
        except stripe.StripeError as e:
            log.error(f"Stripe Checkout create failed for service {req.service_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create checkout session")

        # a resubmitted form gets the same session back from Stripe
        existing = _first(
            supabase.table("bookings")
            .select("id")
            .eq("stripe_payment_intent_id", session.id)
            .limit(1)
            .execute()
        )
        if existing:
            log.info(f"Checkout session {session.id} already has booking {existing['id']}")
            return CheckoutOut(sessionId=session.id, url=session.url)

        try:
            supabase.table("bookings").insert({
                "service_id": req.service_id,
                "creator_id": service["creator_id"],
                "customer_email": req.customer_email,
                "customer_name": req.customer_name,
                "scheduled_at": req.scheduled_at.isoformat(),
                "status": BookingStatus.pending.value,
                "stripe_payment_intent_id": session.id,
                "amount_cents": amount,
                "currency": currency.upper(),
            }).execute()
        except APIError as e:
            if e.code != UNIQUE_VIOLATION:
                log.error(f"Booking insert failed for session {session.id}, expiring it: {e}")
                _expire_session(session.id)
                raise HTTPException(status_code=500, detail="Could not record booking")
            # a concurrent identical submission inserted it first
            log.info(f"Checkout session {session.id} booked by a concurrent request")
            return CheckoutOut(sessionId=session.id, url=session.url)
        except Exception as e:
            log.error(f"Booking insert failed for session {session.id}, expiring it: {e}")
            _expire_session(session.id)
            raise HTTPException(status_code=500, detail="Could not record booking")

        log.info(f"Created checkout session {session.id} for service {req.service_id} ({amount} {currency})")
        return CheckoutOut(sessionId=session.id, url=session.url)

    except HTTPException:
        raise
    except Exception as e:
        log.error(f"Checkout error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
