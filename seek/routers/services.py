# seek/routers/services.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client

from ..deps import get_supabase, get_user_id
from ..models import ApiService, ServiceCreate, ServiceStatus, ServiceUpdate

router = APIRouter(prefix="/dashboard/services", tags=["dashboard"])


def _own_service(supabase: Client, service_id: str, user_id: str) -> dict:
    rows = (
        supabase.table("services")
        .select("*")
        .eq("id", service_id)
        .eq("creator_id", user_id)
        .limit(1)
        .execute()
    ).data or []
    if not rows:
        raise HTTPException(status_code=404, detail="Service not found")
    return rows[0]


def _to_row(payload) -> dict:
    data = payload.model_dump(mode="json", exclude_unset=True)
    # numeric column; keep the exact decimal rather than a float
    if payload.price is not None and "price" in data:
        data["price"] = str(payload.price)
    return data


@router.get("", response_model=List[ApiService])
def list_services(
    status: Optional[ServiceStatus] = Query(default=None),
    user_id: str = Depends(get_user_id),
    supabase: Client = Depends(get_supabase),
):
    q = supabase.table("services").select("*").eq("creator_id", user_id)
    if status:
        q = q.eq("status", status.value)
    else:
        q = q.neq("status", ServiceStatus.archived.value)
    rows = q.order("created_at", desc=True).execute().data or []
    return [ApiService.model_validate(r) for r in rows]


@router.post("", response_model=ApiService, status_code=201)
def create_service(
    payload: ServiceCreate,
    user_id: str = Depends(get_user_id),
    supabase: Client = Depends(get_supabase),
):
    row = _to_row(payload)
    row.update({
        "creator_id": user_id,
        "currency": payload.currency,
        "service_type": payload.service_type.value,
        "status": payload.status.value,
        "total_bookings": 0,
        "total_revenue": "0",
    })
    created = supabase.table("services").insert(row).execute().data or []
    if not created:
        raise HTTPException(status_code=500, detail="services insert returned no row")
    return ApiService.model_validate(created[0])


@router.get("/{service_id}", response_model=ApiService)
def get_service(
    service_id: str,
    user_id: str = Depends(get_user_id),
    supabase: Client = Depends(get_supabase),
):
    return ApiService.model_validate(_own_service(supabase, service_id, user_id))


@router.patch("/{service_id}", response_model=ApiService)
def update_service(
    service_id: str,
    payload: ServiceUpdate,
    user_id: str = Depends(get_user_id),
    supabase: Client = Depends(get_supabase),
):
    current = _own_service(supabase, service_id, user_id)
    changes = _to_row(payload)
    if not changes:
        return ApiService.model_validate(current)
    rows = (
        supabase.table("services")
        .update(changes)
        .eq("id", service_id)
        .eq("creator_id", user_id)
        .execute()
    ).data or []
    if not rows:
        raise HTTPException(status_code=404, detail="Service not found")
    return ApiService.model_validate(rows[0])


@router.delete("/{service_id}", response_model=ApiService)
def archive_service(
    service_id: str,
    user_id: str = Depends(get_user_id),
    supabase: Client = Depends(get_supabase),
):
    """Services are archived, not deleted: bookings keep pointing at them."""
    _own_service(supabase, service_id, user_id)
    rows = (
        supabase.table("services")
        .update({"status": ServiceStatus.archived.value})
        .eq("id", service_id)
        .eq("creator_id", user_id)
        .execute()
    ).data or []
    if not rows:
        raise HTTPException(status_code=404, detail="Service not found")
    return ApiService.model_validate(rows[0])
