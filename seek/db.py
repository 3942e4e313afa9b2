# seek/db.py
# Direct Postgres access, only used for the /health/db probe; rows go through supabase.
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from . import config

_engine = None
_SessionLocal = None


def async_url(url: str) -> str:
    """
    The Supabase dashboard hands out ``postgres://`` / ``postgresql://`` URIs;
    the async engine needs the asyncpg driver spelled out.
    """
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    parsed = make_url(url)
    if parsed.drivername == "postgresql":
        parsed = parsed.set(drivername="postgresql+asyncpg")
    return parsed.render_as_string(hide_password=False)


def _build_engine(url: str) -> AsyncEngine:
    # the Supabase pooler drops idle connections; pre-ping replaces them
    return create_async_engine(async_url(url), pool_size=2, max_overflow=3, pool_pre_ping=True)


async def get_session() -> AsyncSession:
    global _engine, _SessionLocal
    if _engine is None:
        if not config.SUPABASE_DB_URL:
            # /health/db reports this; nothing else needs a direct connection
            raise RuntimeError("SUPABASE_DB_URL is not set")
        _engine = _build_engine(config.SUPABASE_DB_URL)
        _SessionLocal = async_sessionmaker(_engine, expire_on_commit=False)
    async with _SessionLocal() as session:
        yield session


async def ping(session: AsyncSession) -> int:
    result = await session.execute(text("select 1"))
    return result.scalar_one()


async def dispose_engine() -> None:
    global _engine, _SessionLocal
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _SessionLocal = None
