# seek/main.py
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .db import dispose_engine
from .payments import router as checkout_router
from .routers.bookings import dashboard_router as dashboard_bookings_router
from .routers.bookings import router as bookings_router
from .routers.health import router as health_router
from .routers.profiles import router as profiles_router
from .routers.services import router as services_router
from .session import SessionMiddleware
from .stripe_webhook import router as stripe_router


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await dispose_engine()


app = FastAPI(
    lifespan=lifespan,
    title="SEEK API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url=None,
)

# Session first so CORS (added last, outermost) answers preflights untouched
app.add_middleware(SessionMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=config.CORS_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["default"])
def read_root():
    return {"ok": True, "service": "seek-api"}


# routers
app.include_router(health_router)
app.include_router(profiles_router)
app.include_router(checkout_router)
app.include_router(bookings_router)
app.include_router(stripe_router)
app.include_router(services_router)
app.include_router(dashboard_bookings_router)


# ──────────────────────────────────────────────────────────────────────────────
# Local dev entrypoint
# ──────────────────────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "seek.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", "8000")),
        reload=True,
    )
