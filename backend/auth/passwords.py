"""Password hashing helpers using Argon2id."""

from __future__ import annotations

import asyncio

from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError


class PasswordHasher:
    """Wrap Argon2 with optional peppering; hashing runs off the event loop."""

    def __init__(
        self,
        *,
        time_cost: int = 3,
        memory_cost: int = 64 * 1024,
        parallelism: int = 2,
        hash_len: int = 32,
        salt_len: int = 16,
        pepper: str = "",
    ) -> None:
        self._hasher = Argon2Hasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=hash_len,
            salt_len=salt_len,
        )
        self._pepper = pepper or ""

    async def hash(self, password: str) -> str:
        return await asyncio.to_thread(self._hasher.hash, self._with_pepper(password))

    async def verify(self, stored_hash: str, password: str) -> bool:
        return await asyncio.to_thread(self._verify, stored_hash, password)

    def needs_rehash(self, stored_hash: str) -> bool:
        return self._hasher.check_needs_rehash(stored_hash)

    def _verify(self, stored_hash: str, password: str) -> bool:
        try:
            return self._hasher.verify(stored_hash, self._with_pepper(password))
        except (VerificationError, InvalidHashError):
            return False

    def _with_pepper(self, password: str) -> str:
        return f"{password}{self._pepper}"
