"""Signup request validation rules.

Rules are applied in order and the first failure wins:
1. MissingField  - email or password empty / whitespace-only
2. InvalidFormat - email is not shaped like local-part@domain.tld
3. WeakPassword  - password shorter than MIN_PASSWORD_LENGTH characters
"""

from __future__ import annotations

import re

from apps.accounts.exceptions import SignupValidationError

MISSING_FIELD = "MissingField"
INVALID_FORMAT = "InvalidFormat"
WEAK_PASSWORD = "WeakPassword"

MIN_PASSWORD_LENGTH = 6

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email) is not None


def validate_signup(email: str | None, password: str | None) -> None:
    """
    Check a signup request against the rules above.

    Raises:
        SignupValidationError: with error_kind set to the first rule that failed.
    """
    if _is_blank(email) or _is_blank(password):
        raise SignupValidationError(MISSING_FIELD, "Email and Password are required.")

    if not is_valid_email(email):
        raise SignupValidationError(INVALID_FORMAT, "Invalid email format.")

    # len() counts code points, not encoded bytes.
    if len(password) < MIN_PASSWORD_LENGTH:
        raise SignupValidationError(
            WEAK_PASSWORD,
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
        )
