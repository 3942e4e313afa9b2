# seek/routers/profiles.py
from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from ..deps import get_supabase
from ..models import ApiProfile, ApiService, PublicProfile, ServiceStatus

router = APIRouter(prefix="/profiles", tags=["profiles"])

PROFILE_COLUMNS = (
    "id,username,full_name,headline,bio,avatar_url,banner_image_url,"
    "twitter_url,linkedin_url,instagram_url"
)


# ──────────────────────────────────────────────────────────────────────────────
# GET /profiles/{username}: public storefront: profile + bookable services
# ──────────────────────────────────────────────────────────────────────────────
@router.get("/{username}", response_model=PublicProfile)
def get_public_profile(username: str, supabase: Client = Depends(get_supabase)):
    rows = (
        supabase.table("profiles")
        .select(PROFILE_COLUMNS)
        .eq("username", username)
        .limit(1)
        .execute()
    ).data or []
    if not rows:
        raise HTTPException(status_code=404, detail="Profile not found")
    profile = rows[0]

    services = (
        supabase.table("services")
        .select("*")
        .eq("creator_id", profile["id"])
        .eq("status", ServiceStatus.active.value)
        .order("created_at", desc=True)
        .execute()
    ).data or []

    return PublicProfile(
        profile=ApiProfile.model_validate(profile),
        services=[ApiService.model_validate(s) for s in services],
    )
