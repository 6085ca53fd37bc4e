"""
Async database connection for the SQL outreach store.
Uses NullPool since the hosted Postgres pooler handles connection pooling.
"""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from backend.db.models import Base
from backend.config.settings import settings

_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker] = None


def _connect_args(url: str) -> dict:
    if not url.startswith("postgresql+asyncpg"):
        return {}
    return {
        "statement_cache_size": 0,
        "prepared_statement_cache_size": 0,
        "server_settings": {
            "plan_cache_mode": "force_custom_plan",
        },
    }


def get_engine() -> AsyncEngine:
    """Create the engine on first use so importing this module never connects."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            settings.database_url,
            poolclass=NullPool,
            connect_args=_connect_args(settings.database_url),
            echo=False,
        )
    return _engine


def get_sessionmaker() -> async_sessionmaker:
    global _sessionmaker
    if _sessionmaker is None:
        _sessionmaker = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
    return _sessionmaker


async def init_db(engine: Optional[AsyncEngine] = None):
    """Create tables if they don't exist."""
    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine():
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None
