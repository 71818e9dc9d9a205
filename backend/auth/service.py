"""High-level authentication workflows.

Every workflow takes the caller's current session handle explicitly and reports
the handle to hand back to the client through ``UserResponse.session``. Store
failures never escape: they come back as field errors, ``False`` or ``None``
depending on the workflow.
"""

from __future__ import annotations

import logging
from typing import Optional

from app.config import (
    AUTH_PEPPER,
    AUTH_SESSION_COOKIE,
    AUTH_SESSION_COOKIE_SECURE,
    AUTH_SESSION_SECRET,
    AUTH_SESSION_TTL_DAYS,
)
from .emailer import EmailService
from .errors import ConflictError, StorageError, UserResponse
from .passwords import PasswordHasher
from .repository import AccountRecord, AuthRepository
from .sessions import SessionManager
from .store import RedisStore
from .tokens import ResetTokenStore
from .validation import validate_password, validate_registration

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "something went wrong"


class AuthService:
    def __init__(
        self,
        *,
        repo: Optional[AuthRepository] = None,
        hasher: Optional[PasswordHasher] = None,
        sessions: Optional[SessionManager] = None,
        reset_tokens: Optional[ResetTokenStore] = None,
        email: Optional[EmailService] = None,
    ) -> None:
        kv = None
        if sessions is None or reset_tokens is None:
            kv = RedisStore()
        self.repo = repo or AuthRepository()
        self.hasher = hasher or PasswordHasher(pepper=AUTH_PEPPER)
        self.sessions = sessions or SessionManager(
            kv,
            secret=AUTH_SESSION_SECRET,
            cookie_name=AUTH_SESSION_COOKIE,
            ttl_days=AUTH_SESSION_TTL_DAYS,
            secure_cookie=AUTH_SESSION_COOKIE_SECURE,
        )
        self.reset_tokens = reset_tokens or ResetTokenStore(kv)
        self.email = email or EmailService()

    async def register(
        self, username: str, password: str, email: str, session: Optional[str] = None
    ) -> UserResponse:
        errors = validate_registration(username, password, email)
        if errors:
            return UserResponse(errors=errors)

        try:
            # fast path only; the unique constraint is what actually decides
            if await self.repo.get_user_by_username(username):
                return UserResponse.failure("username", "username already taken")
            hashed = await self.hasher.hash(password)
            user = await self.repo.create_user(username, hashed, email)
        except ConflictError as exc:
            return UserResponse.failure(exc.field, f"{exc.field} already taken")
        except StorageError:
            logger.exception("Registration failed for %s", username)
            return UserResponse.failure("username", GENERIC_FAILURE)

        logger.info("Registered account %s", user.id)
        return await self._sign_in(user, session)

    async def login(
        self, username_or_email: str, password: str, session: Optional[str] = None
    ) -> UserResponse:
        try:
            if "@" in username_or_email:
                user = await self.repo.get_user_by_email(username_or_email)
            else:
                user = await self.repo.get_user_by_username(username_or_email)
        except StorageError:
            logger.exception("Account lookup failed during login")
            return UserResponse.failure("usernameOrEmail", GENERIC_FAILURE)

        if not user:
            return UserResponse.failure("usernameOrEmail", "that username doesn't exist")
        if not await self.hasher.verify(user.password_hash, password):
            return UserResponse.failure("password", "incorrect password")

        await self._upgrade_hash(user, password)
        return await self._sign_in(user, session, field="usernameOrEmail")

    async def logout(self, session: Optional[str]) -> bool:
        try:
            await self.sessions.destroy(session)
        except StorageError:
            logger.exception("Session destroy failed")
            return False
        return True

    async def me(self, session: Optional[str]) -> Optional[AccountRecord]:
        try:
            user_id = await self.sessions.resolve(session)
            if user_id is None:
                return None
            return await self.repo.get_user_by_id(user_id)
        except StorageError:
            logger.exception("Could not resolve current user")
            return None

    async def forgot_password(self, email: str) -> bool:
        """Start a reset for ``email``; the answer is ``True`` whether or not it is known."""
        try:
            user = await self.repo.get_user_by_email(email)
            if not user:
                return True
            token = await self.reset_tokens.issue(user.id)
        except StorageError:
            logger.exception("Could not issue password reset token")
            return True

        if not await self.email.send_password_reset(user.email, token):
            logger.error("Password reset email for account %s was not delivered", user.id)
        return True

    async def change_password(
        self, token: str, new_password: str, session: Optional[str] = None
    ) -> UserResponse:
        errors = validate_password(new_password, field="newPassword")
        if errors:
            return UserResponse(errors=errors)

        try:
            user_id = await self.reset_tokens.redeem(token)
            if user_id is None:
                return UserResponse.failure("token", "token expired")
            user = await self.repo.get_user_by_id(user_id)
            if not user:
                return UserResponse.failure("token", "user no longer exists")
            user.password_hash = await self.hasher.hash(new_password)
            if not await self.repo.update_password(user.id, user.password_hash):
                return UserResponse.failure("token", "user no longer exists")
        except StorageError:
            logger.exception("Password change failed")
            return UserResponse.failure("token", GENERIC_FAILURE)

        logger.info("Password changed for account %s", user.id)
        return await self._sign_in(user, session)

    async def _sign_in(
        self, user: AccountRecord, session: Optional[str], *, field: Optional[str] = None
    ) -> UserResponse:
        """Bind a session to ``user``.

        Without ``field`` the account change is already committed, so a session
        failure still reports the user, just without a handle; the client then
        signs in normally.
        """
        try:
            handle = await self.sessions.bind(user.id, session)
        except StorageError:
            logger.exception("Could not bind session for account %s", user.id)
            if field is None:
                return UserResponse(user=user)
            return UserResponse.failure(field, GENERIC_FAILURE)
        return UserResponse(user=user, session=handle)

    async def _upgrade_hash(self, user: AccountRecord, password: str) -> None:
        if not self.hasher.needs_rehash(user.password_hash):
            return
        try:
            user.password_hash = await self.hasher.hash(password)
            await self.repo.update_password(user.id, user.password_hash)
        except StorageError:
            logger.warning("Could not upgrade password hash for account %s", user.id)
