"""Idempotent table definitions applied at startup."""

from __future__ import annotations

from app.config import logger
from .pool import get_async_pool

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS users (
    id SERIAL PRIMARY KEY,
    username TEXT NOT NULL,
    email TEXT NOT NULL,
    password_hash TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    CONSTRAINT users_username_key UNIQUE (username),
    CONSTRAINT users_email_key UNIQUE (email)
);
"""


async def ensure_schema() -> None:
    pool = await get_async_pool()
    async with pool.connection() as conn:
        await conn.execute(SCHEMA_SQL)
    logger.info("Database schema ensured")
