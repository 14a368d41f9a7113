"""
Error taxonomy for the signup pipeline.

Every stage failure is reported with one ErrorKind. Kinds fall into three
categories that decide how a failed run may be handled:
- input: caused by caller data, surfaced verbatim, never retried
- resource: transient, safe to re-run the whole pipeline
- conflict: terminal for the request, never retried blindly
"""

from __future__ import annotations

from django.db import models


class ErrorCategory(models.TextChoices):
    INPUT = "input", "Input"
    RESOURCE = "resource", "Resource"
    CONFLICT = "conflict", "Conflict"


class ErrorKind(models.TextChoices):
    MISSING_FIELD = "MissingField", "Missing field"
    INVALID_FORMAT = "InvalidFormat", "Invalid format"
    WEAK_PASSWORD = "WeakPassword", "Weak password"
    DUPLICATE_ACCOUNT = "DuplicateAccount", "Duplicate account"
    STORE_UNAVAILABLE = "StoreUnavailable", "Store unavailable"
    DISPATCH_UNAVAILABLE = "DispatchUnavailable", "Dispatch unavailable"
    UNEXPECTED = "UnexpectedError", "Unexpected error"


ERROR_CATEGORIES: dict[str, ErrorCategory] = {
    ErrorKind.MISSING_FIELD: ErrorCategory.INPUT,
    ErrorKind.INVALID_FORMAT: ErrorCategory.INPUT,
    ErrorKind.WEAK_PASSWORD: ErrorCategory.INPUT,
    ErrorKind.DUPLICATE_ACCOUNT: ErrorCategory.CONFLICT,
    ErrorKind.STORE_UNAVAILABLE: ErrorCategory.RESOURCE,
    ErrorKind.DISPATCH_UNAVAILABLE: ErrorCategory.RESOURCE,
    ErrorKind.UNEXPECTED: ErrorCategory.RESOURCE,
}


def categorize(error_kind: str) -> ErrorCategory:
    """Return the category of an error kind; unknown kinds count as resource errors."""
    return ERROR_CATEGORIES.get(error_kind, ErrorCategory.RESOURCE)


def is_retryable(error_kind: str) -> bool:
    return categorize(error_kind) == ErrorCategory.RESOURCE


class InvalidTransition(Exception):
    """Raised when the state machine is asked to leave a terminal state."""

    def __init__(self, state: str):
        self.state = state
        super().__init__(f"No transition out of terminal state: {state}")
