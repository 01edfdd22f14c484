"""
alembic.env

Migrations for the identity store (roles, profiles, MFA factors, audit trail).

Runs against the same async URL the service uses (`ROLEGATE_DATABASE_URL`),
so no separate sync driver is needed. Executed by Alembic only.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from rolegate.db.base import Base
from rolegate.db.session import init_db  # noqa: F401  # imports and registers every model
from rolegate.settings import Settings

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

DATABASE_URL = Settings().database_url


def _configure(connection: Connection | None = None) -> None:
    context.configure(
        connection=connection,
        url=None if connection is not None else DATABASE_URL,
        target_metadata=Base.metadata,
        render_as_batch=DATABASE_URL.startswith("sqlite"),  # SQLite has no ALTER CONSTRAINT
        compare_type=True,
    )


def _run_sync(connection: Connection) -> None:
    _configure(connection)
    with context.begin_transaction():
        context.run_migrations()


async def _run_online() -> None:
    engine = create_async_engine(DATABASE_URL)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_sync)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _configure()
    with context.begin_transaction():
        context.run_migrations()
else:
    asyncio.run(_run_online())
