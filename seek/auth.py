# seek/auth.py
import time

import requests
from fastapi import HTTPException
from jose import jwt, JWTError

from . import config

_cache = {"jwks": None, "fetched_at": 0}


def _issuer() -> str:
    return f"{config.SUPABASE_URL}/auth/v1"


def _get_jwks():
    now = time.time()
    if not _cache["jwks"] or now - _cache["fetched_at"] > 600:
        headers = {}
        if config.SUPABASE_ANON_KEY:
            headers = {
                "apikey": config.SUPABASE_ANON_KEY,
                "Authorization": f"Bearer {config.SUPABASE_ANON_KEY}",
            }
        resp = requests.get(f"{_issuer()}/.well-known/jwks.json", headers=headers, timeout=10)
        resp.raise_for_status()
        _cache["jwks"] = resp.json()
        _cache["fetched_at"] = now
    return _cache["jwks"]


def _fetch_user_id_from_supabase(token: str) -> str:
    """Fallback: ask Supabase who this token belongs to."""
    if not config.SUPABASE_URL:
        raise HTTPException(status_code=401, detail="Auth provider not configured")
    headers = {
        "Authorization": f"Bearer {token}",
        "apikey": config.SUPABASE_ANON_KEY or token,
    }
    try:
        r = requests.get(f"{_issuer()}/user", headers=headers, timeout=10)
    except requests.RequestException:
        raise HTTPException(status_code=401, detail="Could not verify token with Supabase")
    if r.status_code != 200:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    data = r.json() or {}
    uid = data.get("id") or (data.get("user") or {}).get("id")
    if not uid:
        raise HTTPException(status_code=401, detail="User id not found from Supabase")
    return uid


def _subject(claims) -> str:
    sub = claims.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Token missing subject (sub)")
    return sub


def verify_token(token: str) -> str:
    """
    Return the Supabase user id for an access token.

    Accepts tokens signed with:
      - HS256 (JWT secret)   -> verify with SUPABASE_JWT_SECRET
      - RS256/ES256 (JWKS)   -> verify with the project's JWKS
    Falls back to /auth/v1/user for anything else.
    Raises HTTPException(401) when the token is not acceptable.
    """
    try:
        unverified_header = jwt.get_unverified_header(token)
        alg = (unverified_header.get("alg") or "").upper()
    except JWTError:
        return _fetch_user_id_from_supabase(token)

    if alg == "HS256":
        if not config.SUPABASE_JWT_SECRET:
            return _fetch_user_id_from_supabase(token)
        try:
            claims = jwt.decode(
                token,
                config.SUPABASE_JWT_SECRET,
                algorithms=["HS256"],
                options={"verify_aud": False},
                issuer=_issuer(),
            )
        except JWTError as e:
            raise HTTPException(status_code=401, detail=f"Invalid token (HS256): {e}")
        return _subject(claims)

    if alg in ("RS256", "ES256"):
        try:
            jwks = _get_jwks()
        except requests.RequestException:
            raise HTTPException(status_code=401, detail="Could not fetch signing keys")
        kid = unverified_header.get("kid")
        key = next((k for k in jwks.get("keys", []) if k.get("kid") == kid), None)
        if not key:
            raise HTTPException(status_code=401, detail="Signing key not found")
        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=[alg],
                options={"verify_aud": False},
                issuer=_issuer(),
            )
        except JWTError as e:
            raise HTTPException(status_code=401, detail=f"Invalid token ({alg}): {e}")
        return _subject(claims)

    return _fetch_user_id_from_supabase(token)
