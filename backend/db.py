"""asyncpg pool for the Supabase database. Repos go through user_conn()."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from uuid import UUID

import asyncpg

from backend import config

logger = logging.getLogger(__name__)

pool: asyncpg.Pool | None = None


async def init_pool() -> None:
    """Create the pool. Called once from the app lifespan."""
    global pool
    pool = await asyncpg.create_pool(
        dsn=config.settings.DATABASE_URL,
        min_size=1,
        max_size=10,
        command_timeout=30,
        init=_init_connection,
        # Supabase's transaction pooler (pgbouncer) cannot hold prepared statements
        statement_cache_size=0,
    )
    logger.info("Database pool initialized")


async def close_pool() -> None:
    global pool
    if pool is not None:
        await pool.close()
        pool = None
        logger.info("Database pool closed")


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Decode UUID columns to uuid.UUID instead of asyncpg's own type."""
    await conn.set_type_codec(
        "uuid",
        encoder=str,
        decoder=lambda x: UUID(x),
        schema="pg_catalog",
    )


@asynccontextmanager
async def user_conn(user_id: str):
    """
    Connection whose transaction sets app.user_id for RLS.

    The user_telegram_settings and files policies compare user_id to it,
    so queries only see the caller's link and files.
    """
    if pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")

    async with pool.acquire() as conn:
        async with conn.transaction():
            await conn.execute(
                "SELECT set_config('app.user_id', $1, true)",
                str(user_id),
            )
            yield conn
