"""Shared pytest fixtures and in-memory doubles for the auth stores."""

import asyncio
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import pytest

from backend.auth.errors import ConflictError, StorageError
from backend.auth.passwords import PasswordHasher
from backend.auth.repository import AccountRecord
from backend.auth.service import AuthService
from backend.auth.sessions import SessionManager
from backend.auth.tokens import ResetTokenStore


class InMemoryStore:
    """KeyValueStore double; every call yields to the loop like a network hop."""

    def __init__(self) -> None:
        self.data: Dict[str, Tuple[str, float]] = {}
        self.ttls: Dict[str, int] = {}
        self.fail = False

    async def put(self, key: str, value: str, ttl_ms: int) -> None:
        await self._hop()
        self.data[key] = (value, time.monotonic() + ttl_ms / 1000)
        self.ttls[key] = ttl_ms

    async def get(self, key: str) -> Optional[str]:
        await self._hop()
        entry = self.data.get(key)
        if entry is None:
            return None
        value, expires = entry
        if expires <= time.monotonic():
            del self.data[key]
            return None
        return value

    async def delete(self, key: str) -> bool:
        await self._hop()
        return self.data.pop(key, None) is not None

    def expire(self, key: str) -> None:
        value, _ = self.data[key]
        self.data[key] = (value, time.monotonic() - 1)

    def keys(self, prefix: str) -> List[str]:
        return [key for key in self.data if key.startswith(prefix)]

    async def _hop(self) -> None:
        await asyncio.sleep(0)
        if self.fail:
            raise StorageError("store down")


class InMemoryAccounts:
    """AuthRepository double with the same uniqueness rules as the table."""

    def __init__(self) -> None:
        self.rows: Dict[int, AccountRecord] = {}
        self.writes = 0
        self.fail = False
        self._next_id = 1

    async def create_user(self, username: str, password_hash: str, email: str) -> AccountRecord:
        await self._hop()
        email = email.strip().lower()
        if any(row.username == username for row in self.rows.values()):
            raise ConflictError("username")
        if any(row.email == email for row in self.rows.values()):
            raise ConflictError("email")
        now = datetime.now(timezone.utc)
        record = AccountRecord(self._next_id, username, email, password_hash, now, now)
        self.rows[record.id] = record
        self._next_id += 1
        self.writes += 1
        return _copy(record)

    async def get_user_by_id(self, user_id: int) -> Optional[AccountRecord]:
        await self._hop()
        row = self.rows.get(user_id)
        return _copy(row) if row else None

    async def get_user_by_username(self, username: str) -> Optional[AccountRecord]:
        await self._hop()
        return next((_copy(r) for r in self.rows.values() if r.username == username), None)

    async def get_user_by_email(self, email: str) -> Optional[AccountRecord]:
        await self._hop()
        email = email.strip().lower()
        return next((_copy(r) for r in self.rows.values() if r.email == email), None)

    async def update_password(self, user_id: int, password_hash: str) -> bool:
        await self._hop()
        row = self.rows.get(user_id)
        if row is None:
            return False
        row.password_hash = password_hash
        row.updated_at = datetime.now(timezone.utc)
        self.writes += 1
        return True

    async def _hop(self) -> None:
        await asyncio.sleep(0)
        if self.fail:
            raise StorageError("database down")


class RecordingEmail:
    def __init__(self) -> None:
        self.sent: List[Tuple[str, str]] = []
        self.deliver = True

    async def send_password_reset(self, recipient: str, token: str) -> bool:
        self.sent.append((recipient, token))
        return self.deliver


def _copy(record: AccountRecord) -> AccountRecord:
    return AccountRecord(**vars(record))


@pytest.fixture
def hasher():
    return PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def kv():
    return InMemoryStore()


@pytest.fixture
def accounts():
    return InMemoryAccounts()


@pytest.fixture
def mailer():
    return RecordingEmail()


@pytest.fixture
def sessions(kv):
    return SessionManager(
        kv, secret="test-secret", cookie_name="qid", ttl_days=1, secure_cookie=False
    )


@pytest.fixture
def reset_tokens(kv):
    return ResetTokenStore(kv)


@pytest.fixture
def service(accounts, hasher, sessions, reset_tokens, mailer):
    return AuthService(
        repo=accounts,
        hasher=hasher,
        sessions=sessions,
        reset_tokens=reset_tokens,
        email=mailer,
    )
