"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 (asyncio extension) as the storage engine
underneath the document store.

Why async?
==========
Every store call is a suspension point: a request handler awaits the store
and the event loop serves other requests in the meantime. SQLAlchemy's
asyncio extension gives us that with the same ORM and Core constructs as the
synchronous API, backed by aiosqlite locally and asyncpg for PostgreSQL.

Session Management Pattern
==========================
The document store opens one short-lived session per operation:
1. Operation starts -> create a session and begin a transaction
2. Run the reads/writes for that operation
3. Commit on success, rollback on failure
4. Close the session

No session outlives a single store call, so concurrent requests never share
session state; they only share the engine's connection pool.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    The document table is the only model; Base.metadata is what the store
    uses to create its schema on startup.
    """
    pass


# =============================================================================
# Engine Factory
# =============================================================================
def create_engine(database_url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """
    Create the async engine for the document store.

    Key parameters:
    - pool_pre_ping: Test connection health before using (prevents stale connections)
    - echo: Log all SQL statements (debug mode only)

    Args:
        database_url: SQLAlchemy async URL; defaults to settings.database_url
        echo: Override SQL echo; defaults to settings.debug

    Returns:
        Configured AsyncEngine
    """
    settings = get_settings()
    url = database_url or settings.database_url

    return create_async_engine(
        url,
        pool_pre_ping=True,
        echo=settings.debug if echo is None else echo,
    )
