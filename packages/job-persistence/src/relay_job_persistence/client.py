"""Async database engine construction.

The database URL comes without credentials; user and password are supplied
separately (they live in different secrets) and merged here. `postgresql://`
URLs are switched to the asyncpg driver.
"""

from __future__ import annotations

from relay_shared.errors import ConfigurationError
from relay_shared.runtime import RuntimeContext
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine


def build_engine(context: RuntimeContext) -> AsyncEngine:
    """Create the engine for the database named in the runtime context."""
    if not context.database_url:
        raise ConfigurationError("DATABASE_URL environment variable is not set")

    url = make_url(context.database_url)
    if url.drivername in ("postgresql", "postgres"):
        url = url.set(drivername="postgresql+asyncpg")
    if context.database_user:
        url = url.set(username=context.database_user)
    if context.database_password:
        url = url.set(password=context.database_password)

    return create_async_engine(url, pool_size=10, max_overflow=0, pool_pre_ping=True)
