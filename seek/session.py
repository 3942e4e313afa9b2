# seek/session.py
import logging
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from . import config
from .auth import verify_token

log = logging.getLogger("uvicorn.error")


def _token_from(request: Request) -> Optional[str]:
    authorization = request.headers.get("authorization") or ""
    if authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return request.cookies.get(config.SESSION_COOKIE_NAME) or None


def is_protected(path: str, prefixes=None) -> bool:
    prefixes = config.PROTECTED_PATHS if prefixes is None else prefixes
    return any(path == p or path.startswith(p.rstrip("/") + "/") for p in prefixes)


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Resolves the Supabase user for every request (bearer header first, then the
    session cookie) into ``request.state.user_id`` and keeps anonymous callers
    out of the protected prefixes: browsers are redirected to the login page,
    everything else gets a 401.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.user_id = None
        token = _token_from(request)
        if token:
            try:
                request.state.user_id = await run_in_threadpool(verify_token, token)
            except HTTPException as e:
                log.info(f"Session rejected on {request.url.path}: {e.detail}")

        if request.state.user_id is None and is_protected(request.url.path):
            if "text/html" in request.headers.get("accept", ""):
                return RedirectResponse(config.LOGIN_URL, status_code=307)
            return JSONResponse({"detail": "Not authenticated"}, status_code=401)

        return await call_next(request)
