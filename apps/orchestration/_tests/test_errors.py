"""Tests for the error taxonomy."""

from django.test import SimpleTestCase

from apps.orchestration.errors import (
    ErrorCategory,
    ErrorKind,
    InvalidTransition,
    categorize,
    is_retryable,
)


class ErrorTaxonomyTests(SimpleTestCase):
    def test_input_errors(self):
        for kind in (ErrorKind.MISSING_FIELD, ErrorKind.INVALID_FORMAT, ErrorKind.WEAK_PASSWORD):
            assert categorize(kind) == ErrorCategory.INPUT
            assert not is_retryable(kind)

    def test_conflict_errors(self):
        assert categorize(ErrorKind.DUPLICATE_ACCOUNT) == ErrorCategory.CONFLICT
        assert not is_retryable(ErrorKind.DUPLICATE_ACCOUNT)

    def test_resource_errors(self):
        for kind in (
            ErrorKind.STORE_UNAVAILABLE,
            ErrorKind.DISPATCH_UNAVAILABLE,
            ErrorKind.UNEXPECTED,
        ):
            assert categorize(kind) == ErrorCategory.RESOURCE
            assert is_retryable(kind)

    def test_unknown_kind_is_resource(self):
        assert categorize("SomethingNew") == ErrorCategory.RESOURCE

    def test_kinds_match_domain_exceptions(self):
        from apps.accounts.exceptions import DuplicateAccountError, StoreUnavailableError
        from apps.notify.exceptions import DispatchUnavailableError

        assert DuplicateAccountError.error_kind == ErrorKind.DUPLICATE_ACCOUNT
        assert StoreUnavailableError.error_kind == ErrorKind.STORE_UNAVAILABLE
        assert DispatchUnavailableError.error_kind == ErrorKind.DISPATCH_UNAVAILABLE

    def test_invalid_transition_message(self):
        err = InvalidTransition("completed")
        assert err.state == "completed"
        assert "completed" in str(err)
