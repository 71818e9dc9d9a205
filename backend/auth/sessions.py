"""Server-side sessions keyed by an opaque handle, carried in a signed cookie."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from .store import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_PREFIX = "sess:"


class SessionManager:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        secret: str,
        cookie_name: str,
        ttl_days: int,
        secure_cookie: bool,
    ) -> None:
        self.store = store
        self.secret = secret
        self.cookie_name = cookie_name
        self.ttl = timedelta(days=ttl_days)
        self.secure_cookie = secure_cookie

    @staticmethod
    def new_handle() -> str:
        return secrets.token_urlsafe(32)

    @property
    def ttl_ms(self) -> int:
        return int(self.ttl.total_seconds() * 1000)

    async def create(self, account_id: int) -> str:
        handle = self.new_handle()
        await self.store.put(SESSION_PREFIX + handle, str(account_id), self.ttl_ms)
        return handle

    async def bind(self, account_id: int, handle: Optional[str] = None) -> str:
        """Point ``handle`` at ``account_id``, or start a new session.

        Only a handle that is still live server-side is reused; anything else
        gets a fresh one.
        """
        if handle and await self.store.get(SESSION_PREFIX + handle) is not None:
            await self.store.put(SESSION_PREFIX + handle, str(account_id), self.ttl_ms)
            return handle
        return await self.create(account_id)

    async def resolve(self, handle: Optional[str]) -> Optional[int]:
        if not handle:
            return None
        value = await self.store.get(SESSION_PREFIX + handle)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            logger.warning("Session holds a malformed account id")
            return None

    async def destroy(self, handle: Optional[str]) -> None:
        """Drop the session; an unknown handle is not an error."""
        if not handle:
            return
        await self.store.delete(SESSION_PREFIX + handle)

    # Cookie envelope

    def encode(self, handle: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "jti": handle,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm="HS256")

    def decode(self, cookie: Optional[str]) -> Optional[str]:
        if not cookie:
            return None
        try:
            payload = jwt.decode(cookie, self.secret, algorithms=["HS256"])
        except jwt.PyJWTError:
            return None
        return payload.get("jti")

    def cookie_kwargs(self) -> Dict[str, Any]:
        return {
            "httponly": True,
            "secure": self.secure_cookie,
            "samesite": "lax",
            "path": "/",
        }

    def max_age(self) -> int:
        return int(self.ttl.total_seconds())
