"""
rolegate.db.session

Async SQLAlchemy engine, session factory and schema bootstrap.

Responsibilities:
- Create the async engine from settings.
- Create the async sessionmaker with safe defaults.
- Create tables for dev/test (production runs Alembic migrations).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rolegate.db import models  # noqa: F401  # ensure models are registered on Base.metadata
from rolegate.db.base import Base
from rolegate.settings import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    url = settings.database_url
    if url.startswith("sqlite"):
        # The audit worker and request handlers write concurrently; wait on the file lock.
        return create_async_engine(url, connect_args={"timeout": 15})
    return create_async_engine(url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: repositories hand rows back after the service commits.
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
