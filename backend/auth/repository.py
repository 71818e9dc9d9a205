"""Database access helpers for user accounts."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Optional

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import dict_row

from app.config import logger
from backend.db import get_async_pool
from .errors import ConflictError, StorageError

_COLUMNS = "id, username, email, password_hash, created_at, updated_at"


def _normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass
class AccountRecord:
    id: int
    username: str
    email: str
    password_hash: str
    created_at: datetime
    updated_at: datetime

    def to_public(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


class AuthRepository:
    """Account lookups and writes against the ``users`` table.

    Uniqueness of username and email is left to the table constraints, so a
    losing concurrent insert surfaces as ``ConflictError``.
    """

    async def create_user(self, username: str, password_hash: str, email: str) -> AccountRecord:
        try:
            row = await self._fetch_one(
                f"""
                INSERT INTO users (username, email, password_hash)
                VALUES (%s, %s, %s)
                RETURNING {_COLUMNS}
                """,
                (username, _normalize_email(email), password_hash),
            )
        except pg_errors.UniqueViolation as exc:
            constraint = exc.diag.constraint_name or ""
            raise ConflictError("email" if "email" in constraint else "username") from exc
        return AccountRecord(**row)

    async def get_user_by_id(self, user_id: int) -> Optional[AccountRecord]:
        row = await self._fetch_one(f"SELECT {_COLUMNS} FROM users WHERE id = %s", (user_id,))
        return AccountRecord(**row) if row else None

    async def get_user_by_username(self, username: str) -> Optional[AccountRecord]:
        row = await self._fetch_one(
            f"SELECT {_COLUMNS} FROM users WHERE username = %s LIMIT 1", (username,)
        )
        return AccountRecord(**row) if row else None

    async def get_user_by_email(self, email: str) -> Optional[AccountRecord]:
        row = await self._fetch_one(
            f"SELECT {_COLUMNS} FROM users WHERE email = %s LIMIT 1",
            (_normalize_email(email),),
        )
        return AccountRecord(**row) if row else None

    async def update_password(self, user_id: int, password_hash: str) -> bool:
        """Store a new hash; ``False`` when the account no longer exists."""
        updated = await self._execute(
            """
            UPDATE users
            SET password_hash = %s, updated_at = NOW()
            WHERE id = %s
            """,
            (password_hash, user_id),
        )
        return updated > 0

    async def _fetch_one(self, query: str, params: tuple) -> Optional[Dict[str, Any]]:
        async with self._cursor() as cur:
            await cur.execute(query, params)
            return await cur.fetchone()

    async def _execute(self, query: str, params: tuple) -> int:
        async with self._cursor() as cur:
            await cur.execute(query, params)
            return cur.rowcount

    @asynccontextmanager
    async def _cursor(self) -> AsyncIterator[psycopg.AsyncCursor]:
        try:
            pool = await get_async_pool()
            async with pool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    yield cur
        except pg_errors.UniqueViolation:
            raise
        except (psycopg.Error, OSError, ValueError) as exc:
            logger.error("Account query failed: %s", exc)
            raise StorageError("account store unavailable") from exc
