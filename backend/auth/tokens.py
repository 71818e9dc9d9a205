"""Issuing and redeeming single-use password reset tokens."""

from __future__ import annotations

import logging
import secrets
from typing import Optional

from .store import KeyValueStore

logger = logging.getLogger(__name__)

RESET_PREFIX = "reset:"
RESET_TOKEN_TTL_MS = 1000 * 60 * 60 * 24 * 3  # 3 days


class TokenService:
    """Issue random URL-safe tokens."""

    def __init__(self, *, length: int = 32) -> None:
        self.length = length

    def new_token(self) -> str:
        return secrets.token_urlsafe(self.length)


class ResetTokenStore:
    """Reset tokens live under ``reset:<token>`` and map to the account id."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        tokens: Optional[TokenService] = None,
    ) -> None:
        self.store = store
        self.tokens = tokens or TokenService()

    async def issue(self, account_id: int) -> str:
        token = self.tokens.new_token()
        await self.store.put(RESET_PREFIX + token, str(account_id), RESET_TOKEN_TTL_MS)
        return token

    async def redeem(self, token: str) -> Optional[int]:
        """Consume ``token`` and return its account id, or ``None`` if it is spent.

        Two concurrent callers may both read the value; only the one whose
        delete actually removes the key wins.
        """
        if not token:
            return None
        key = RESET_PREFIX + token
        value = await self.store.get(key)
        if value is None:
            return None
        if not await self.store.delete(key):
            logger.info("Reset token already redeemed by a concurrent request")
            return None
        try:
            return int(value)
        except ValueError:
            logger.error("Discarding reset token with malformed account id")
            return None
