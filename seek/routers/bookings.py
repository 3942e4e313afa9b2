# seek/routers/bookings.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client

from .. import bookings
from ..deps import get_supabase, get_user_id
from ..models import ApiBooking, BookingStatus, BookingStatusUpdate, BookingSummary

router = APIRouter(prefix="/bookings", tags=["bookings"])
dashboard_router = APIRouter(prefix="/dashboard/bookings", tags=["dashboard"])


# ──────────────────────────────────────────────────────────────────────────────
# GET /bookings/session/{session_id}: checkout success page (no auth)
# ──────────────────────────────────────────────────────────────────────────────
@router.get("/session/{session_id}", response_model=BookingSummary)
def booking_for_session(session_id: str, supabase: Client = Depends(get_supabase)):
    booking = bookings.find_by_session(supabase, session_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    rows = (
        supabase.table("services").select("title").eq("id", booking["service_id"]).limit(1).execute()
    ).data or []
    return BookingSummary(
        status=booking["status"],
        service_title=rows[0]["title"] if rows else "",
        scheduled_at=booking["scheduled_at"],
        customer_name=booking["customer_name"],
    )


# ──────────────────────────────────────────────────────────────────────────────
# Dashboard
# ──────────────────────────────────────────────────────────────────────────────
@dashboard_router.get("", response_model=List[ApiBooking])
def list_bookings(
    status: Optional[BookingStatus] = Query(default=None),
    user_id: str = Depends(get_user_id),
    supabase: Client = Depends(get_supabase),
):
    q = supabase.table("bookings").select("*").eq("creator_id", user_id)
    if status:
        q = q.eq("status", status.value)
    rows = q.order("scheduled_at", desc=False).execute().data or []
    return [ApiBooking.model_validate(r) for r in rows]


@dashboard_router.patch("/{booking_id}", response_model=ApiBooking)
def update_booking_status(
    booking_id: str,
    payload: BookingStatusUpdate,
    user_id: str = Depends(get_user_id),
    supabase: Client = Depends(get_supabase),
):
    rows = (
        supabase.table("bookings")
        .select("*")
        .eq("id", booking_id)
        .eq("creator_id", user_id)
        .limit(1)
        .execute()
    ).data or []
    if not rows:
        raise HTTPException(status_code=404, detail="Booking not found")

    current = BookingStatus(rows[0]["status"])
    if current == payload.status:
        return ApiBooking.model_validate(rows[0])
    if not bookings.can_transition(current, payload.status):
        raise HTTPException(
            status_code=409,
            detail=f"Booking is {current.value}; cannot move to {payload.status.value}",
        )

    updated = bookings.transition(supabase, booking_id, current, payload.status)
    if not updated:
        raise HTTPException(status_code=409, detail="Booking changed while updating; reload and retry")
    return ApiBooking.model_validate(updated)
