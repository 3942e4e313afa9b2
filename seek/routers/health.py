# seek/routers/health.py
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from supabase import Client

from .. import config
from ..db import get_session, ping
from ..deps import get_supabase

router = APIRouter(tags=["health"])

log = logging.getLogger("uvicorn.error")

# columns every endpoint relies on; /diag selects them to catch schema drift
TABLE_COLUMNS = {
    "profiles": "id,username,full_name,headline,bio",
    "services": "id,creator_id,title,price,currency,service_type,status,total_bookings,total_revenue",
    "bookings": "id,service_id,creator_id,customer_email,scheduled_at,status,stripe_payment_intent_id",
}


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/health/db")
async def health_db(db: AsyncSession = Depends(get_session)):
    try:
        return {"ok": True, "db": await ping(db)}
    except Exception as e:
        log.error(f"DB health check failed: {e}")
        raise HTTPException(status_code=503, detail=f"DB check failed: {e}")


# ──────────────────────────────────────────────────────────────────────────────
# Diagnostics (to explain 500s quickly)
# ──────────────────────────────────────────────────────────────────────────────
@router.get("/diag")
def diag():
    out = {
        "supabase_url_set": bool(config.SUPABASE_URL),
        "service_role_set": bool(config.SUPABASE_SERVICE_ROLE),
        "jwt_secret_set": bool(config.SUPABASE_JWT_SECRET),
        "stripe_key_set": bool(config.STRIPE_SECRET_KEY),
        "stripe_webhook_secret_set": bool(config.STRIPE_WEBHOOK_SECRET),
        "errors": [],
    }
    try:
        client = get_supabase()
    except Exception as e:
        out["errors"].append(f"supabase init: {e}")
        return out

    for table, cols in TABLE_COLUMNS.items():
        try:
            client.table(table).select(cols).limit(1).execute()
        except Exception as e:
            out["errors"].append(f"{table} select exception: {e}")

    return out
