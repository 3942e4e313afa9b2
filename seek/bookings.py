# seek/bookings.py
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from supabase import Client

from .models import BookingStatus
from .pricing import from_minor_units

log = logging.getLogger("uvicorn.error")

ALLOWED_TRANSITIONS = {
    BookingStatus.pending: {BookingStatus.paid, BookingStatus.cancelled},
    BookingStatus.paid: {BookingStatus.completed, BookingStatus.cancelled},
    BookingStatus.completed: set(),
    BookingStatus.cancelled: set(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def find_by_session(supabase: Client, session_id: str) -> Optional[Dict[str, Any]]:
    rows = (
        supabase.table("bookings")
        .select("*")
        .eq("stripe_payment_intent_id", session_id)
        .limit(1)
        .execute()
    ).data or []
    return rows[0] if rows else None


def transition(
    supabase: Client,
    booking_id: str,
    current: BookingStatus,
    target: BookingStatus,
) -> Optional[Dict[str, Any]]:
    """
    Move a booking from ``current`` to ``target``.

    The update is conditional on the row still being in ``current``, so two
    racing writers (a replayed webhook, a dashboard click) can not both win.
    Returns the updated row, or None if someone else moved it first.
    """
    if not can_transition(current, target):
        raise ValueError(f"booking cannot go from {current.value} to {target.value}")
    rows = (
        supabase.table("bookings")
        .update({"status": target.value})
        .eq("id", booking_id)
        .eq("status", current.value)
        .execute()
    ).data or []
    return rows[0] if rows else None


def record_sale(supabase: Client, booking: Dict[str, Any]) -> None:
    """Bump the service's booking and revenue counters for a paid booking."""
    rows = (
        supabase.table("services")
        .select("id,total_bookings,total_revenue")
        .eq("id", booking["service_id"])
        .limit(1)
        .execute()
    ).data or []
    if not rows:
        log.error(f"Paid booking {booking['id']} points at missing service {booking['service_id']}")
        return
    service = rows[0]

    revenue = Decimal(str(service.get("total_revenue") or 0))
    if booking.get("amount_cents") is not None:
        revenue += from_minor_units(booking["amount_cents"], booking.get("currency") or "USD")

    # TODO: move into a Postgres function so concurrent sales can't lose an increment
    supabase.table("services").update({
        "total_bookings": int(service.get("total_bookings") or 0) + 1,
        "total_revenue": str(revenue),
    }).eq("id", service["id"]).execute()
