"""Authentication utilities for the board API."""

from .repository import AccountRecord, AuthRepository
from .passwords import PasswordHasher
from .tokens import ResetTokenStore, TokenService
from .sessions import SessionManager
from .service import AuthService

__all__ = [
    "AccountRecord",
    "AuthRepository",
    "AuthService",
    "PasswordHasher",
    "ResetTokenStore",
    "SessionManager",
    "TokenService",
]
