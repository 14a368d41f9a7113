"""Exceptions raised by the accounts app.

Each exception carries the error kind reported to the signup pipeline.
"""

from __future__ import annotations


class AccountError(Exception):
    """Base class for account errors."""

    error_kind: str = "AccountError"
    retryable: bool = False


class SignupValidationError(AccountError):
    """A signup request failed one of the validation rules."""

    def __init__(self, error_kind: str, message: str):
        self.error_kind = error_kind
        super().__init__(message)


class DuplicateAccountError(AccountError):
    """The email address is already registered."""

    error_kind = "DuplicateAccount"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"An account already exists for {email}")


class StoreUnavailableError(AccountError):
    """The account store could not be reached."""

    error_kind = "StoreUnavailable"
    retryable = True
