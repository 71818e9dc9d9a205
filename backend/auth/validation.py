"""Structural checks for registration and password-change input."""

from __future__ import annotations

from typing import List

from email_validator import EmailNotValidError, validate_email

from .errors import FieldError

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 3


def validate_password(password: str, field: str = "password") -> List[FieldError]:
    if len(password) < MIN_PASSWORD_LENGTH:
        return [FieldError(field, f"length must be greater than {MIN_PASSWORD_LENGTH - 1}")]
    return []


def validate_registration(username: str, password: str, email: str) -> List[FieldError]:
    """Return one error per offending field; an empty list means the input is valid.

    A username may never contain ``@``: login relies on that character to tell
    an email address from a username.
    """
    errors: List[FieldError] = []

    if len(username) < MIN_USERNAME_LENGTH:
        errors.append(FieldError("username", f"length must be greater than {MIN_USERNAME_LENGTH - 1}"))
    elif "@" in username:
        errors.append(FieldError("username", "cannot include an @"))

    if "@" not in email or not _looks_like_address(email):
        errors.append(FieldError("email", "invalid email"))

    errors.extend(validate_password(password))
    return errors


def _looks_like_address(email: str) -> bool:
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True
