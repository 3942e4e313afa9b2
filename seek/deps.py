# seek/deps.py
from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException, Request
from supabase import create_client, Client

from . import config
from .auth import verify_token


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE:
        raise RuntimeError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE")
    return create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE)


def get_user_id(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> str:
    """Signed-in creator id. The session middleware usually resolved it already."""
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return user_id
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return verify_token(authorization.split(" ", 1)[1])
