# seek/stripe_webhook.py
import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request
from supabase import Client

from . import bookings, config
from .deps import get_supabase
from .models import BookingStatus

router = APIRouter(prefix="/stripe", tags=["stripe"])

log = logging.getLogger("uvicorn.error")


def _mark_paid(supabase: Client, session_id: str) -> None:
    booking = bookings.find_by_session(supabase, session_id)
    if not booking:
        log.error(f"No booking for paid checkout session {session_id}")
        return
    updated = bookings.transition(supabase, booking["id"], BookingStatus.pending, BookingStatus.paid)
    if not updated:
        log.info(f"Booking {booking['id']} was already {booking['status']}; ignoring replay")
        return
    bookings.record_sale(supabase, updated)
    log.info(f"Booking {booking['id']} paid via session {session_id}")


def _mark_cancelled(supabase: Client, session_id: str) -> None:
    booking = bookings.find_by_session(supabase, session_id)
    if not booking:
        return
    if bookings.transition(supabase, booking["id"], BookingStatus.pending, BookingStatus.cancelled):
        log.info(f"Booking {booking['id']} cancelled, session {session_id} did not complete")


@router.post("/webhook")
async def webhook(req: Request, supabase: Client = Depends(get_supabase)):
    if not config.STRIPE_WEBHOOK_SECRET:
        log.error("Stripe webhook secret missing (STRIPE_WEBHOOK_SECRET)")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    payload = await req.body()
    sig = req.headers.get("stripe-signature")
    try:
        event = stripe.Webhook.construct_event(payload, sig, config.STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        log.error(f"Stripe webhook verify FAILED: {e}; sig_header_present={bool(sig)}")
        raise HTTPException(status_code=400, detail=f"Webhook error: {e}")

    etype = event["type"]
    sess = event["data"]["object"]
    log.info(f"Stripe webhook received: {etype}")

    if etype == "checkout.session.completed":
        # delayed payment methods complete the session before the money arrives
        if sess.get("payment_status") in ("paid", "no_payment_required"):
            _mark_paid(supabase, sess["id"])
    elif etype == "checkout.session.async_payment_succeeded":
        _mark_paid(supabase, sess["id"])
    elif etype in ("checkout.session.expired", "checkout.session.async_payment_failed"):
        _mark_cancelled(supabase, sess["id"])

    return {"ok": True}
