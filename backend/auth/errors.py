"""Result and error types shared by the authentication workflows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class AuthError(Exception):
    """Base class for failures raised by auth stores."""


class StorageError(AuthError):
    """A backing store (Postgres, Redis) failed unexpectedly."""


class ConflictError(AuthError):
    """A unique account attribute is already taken."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"{field_name} already taken")
        self.field = field_name


@dataclass
class FieldError:
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass
class UserResponse:
    """Outcome of register/login/change_password.

    ``session`` is the handle the caller must hand back to the client, or
    ``None`` when the session is left untouched.
    """

    errors: Optional[List[FieldError]] = None
    user: Optional[Any] = None
    session: Optional[str] = field(default=None, repr=False)

    @classmethod
    def failure(cls, field_name: str, message: str) -> "UserResponse":
        return cls(errors=[FieldError(field_name, message)])

    @property
    def ok(self) -> bool:
        return not self.errors and self.user is not None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.errors:
            payload["errors"] = [error.to_dict() for error in self.errors]
        if self.user is not None:
            payload["user"] = self.user.to_public()
        return payload
