"""Exceptions raised by the notify app."""

from __future__ import annotations


class DispatchUnavailableError(Exception):
    """The outbound channel could not be reached or refused the message."""

    error_kind = "DispatchUnavailable"
    retryable = True

    def __init__(self, message: str, driver: str = ""):
        self.driver = driver
        super().__init__(message)
