"""
Stage executors for each signup pipeline stage.

Each executor wraps the corresponding app's functionality and turns it into
the uniform stage contract: execute(value, ctx) returns a StageResult holding
either the next stage's input value or a StageError. Executors keep no state
between calls and never call downstream stages.

    ValidateExecutor:          SignupRequest    → ValidatedRequest
    CreateAccountExecutor:     ValidatedRequest → AccountResult
    SendVerificationExecutor:  AccountResult    → NotificationReceipt
    NotifyFailureExecutor:     FailureRecord    → FailureAck (never fails)
"""

from __future__ import annotations

import logging
import time
import traceback
from abc import ABC, abstractmethod
from typing import Any

from django.db import transaction

from apps.accounts.exceptions import AccountError, SignupValidationError
from apps.notify.exceptions import DispatchUnavailableError
from apps.orchestration.dtos import (
    AccountResult,
    FailureAck,
    FailureRecord,
    NotificationReceipt,
    SignupRequest,
    StageContext,
    StageError,
    StageResult,
    ValidatedRequest,
)
from apps.orchestration.errors import ErrorKind, is_retryable
from apps.orchestration.models import PipelineStage

logger = logging.getLogger(__name__)

VERIFICATION_SENT_MESSAGE = "Verification email sent"
FAILURE_LOGGED_MESSAGE = "Failure logged"

# Domain errors carry their own error_kind.
STAGE_ERRORS = (AccountError, DispatchUnavailableError)


class BaseExecutor(ABC):
    """Base class for stage executors."""

    name: str = "base"

    @abstractmethod
    def run(self, value: Any, ctx: StageContext) -> Any:
        """Perform the stage's work and return its output value.

        Raises a domain error (AccountError, DispatchUnavailableError) on failure.
        """
        raise NotImplementedError

    def execute(self, value: Any, ctx: StageContext) -> StageResult:
        """Run the stage and wrap its outcome in a StageResult."""
        start_time = time.perf_counter()
        result = StageResult(stage=self.name)

        try:
            result.output = self.run(value, ctx)
        except STAGE_ERRORS as e:
            result.error = StageError(
                error_kind=e.error_kind,
                message=str(e),
                retryable=is_retryable(e.error_kind),
            )
        except Exception as e:
            logger.exception(
                f"Unexpected error in {type(self).__name__}",
                extra={"trace_id": ctx.trace_id, "run_id": ctx.run_id},
            )
            result.error = StageError(
                error_kind=ErrorKind.UNEXPECTED,
                message=f"{type(e).__name__}: {e}",
                retryable=True,
                stack_trace=traceback.format_exc(),
            )

        result.duration_ms = (time.perf_counter() - start_time) * 1000
        return result


class ValidateExecutor(BaseExecutor):
    """
    Validation stage.

    Pure and deterministic: the same request always gets the same verdict.
    """

    name = PipelineStage.VALIDATE

    def run(self, value: SignupRequest, ctx: StageContext) -> ValidatedRequest:
        from apps.accounts.validation import validate_signup

        validate_signup(value.email, value.password)
        return ValidatedRequest(email=value.email, password=value.password)


class CreateAccountExecutor(BaseExecutor):
    """
    Account creation stage.

    Wraps apps.accounts to allocate a fresh random account id and write the
    account in one atomic operation. With ctx.idempotency_key set, a repeated
    invocation for the same request returns the account created the first time.
    """

    name = PipelineStage.CREATE_ACCOUNT

    def run(self, value: ValidatedRequest, ctx: StageContext) -> AccountResult:
        if not isinstance(value, ValidatedRequest):
            raise TypeError(f"{self.name} requires a ValidatedRequest, got {type(value).__name__}")

        from apps.accounts.services import AccountService

        account, replayed = AccountService().create_account(
            value.email,
            value.password,
            idempotency_key=ctx.idempotency_key,
        )
        return AccountResult(
            account_id=account.account_id,
            email=account.email,
            message=f"Account created with ID: {account.account_id}",
            replayed=replayed,
        )

    def compensate(self, account: AccountResult, ctx: StageContext, reason: str) -> bool:
        """Deactivate an account created earlier in the run. Returns True when done."""
        from apps.accounts.services import AccountService

        try:
            deactivated = AccountService().deactivate_account(
                account.account_id, reason=reason, compensated=True
            )
        except AccountError as e:
            logger.error(
                f"Compensation failed for account {account.account_id}: {e}",
                extra={"trace_id": ctx.trace_id, "run_id": ctx.run_id},
            )
            return False
        return deactivated is not None


class SendVerificationExecutor(BaseExecutor):
    """
    Notification stage.

    Wraps apps.notify to send the verification email to the account's address.
    Success means the outbound channel accepted the message, not that it was
    delivered. With ctx.idempotency_key set, a repeated invocation does not
    send again.
    """

    name = PipelineStage.SEND_VERIFICATION

    def __init__(self, driver_name: str | None = None, config: dict[str, Any] | None = None):
        self.driver_name = driver_name
        self.config = config

    def run(self, value: AccountResult, ctx: StageContext) -> NotificationReceipt:
        if not isinstance(value, AccountResult):
            raise TypeError(f"{self.name} requires an AccountResult, got {type(value).__name__}")
        if not value.account_id.strip() or not value.email.strip():
            raise SignupValidationError(
                ErrorKind.MISSING_FIELD, "Account ID and email are required."
            )

        from apps.notify.services import NotificationService

        service = NotificationService(driver_name=self.driver_name, config=self.config)
        dispatch = service.send_verification(
            value.email,
            value.account_id,
            idempotency_key=ctx.idempotency_key,
        )
        return NotificationReceipt(
            message=VERIFICATION_SENT_MESSAGE,
            message_id=dispatch.message_id,
            replayed=dispatch.replayed,
        )


class NotifyFailureExecutor(BaseExecutor):
    """
    Failure stage.

    Records the failure in FailureLog, logs it, and alerts operators when
    SIGNUP_FAILURE_ALERT_RECIPIENTS is set. If any of those side effects fail
    it falls back to the log alone and still acknowledges (degraded=True).
    """

    name = PipelineStage.NOTIFY_FAILURE

    def run(self, value: FailureRecord, ctx: StageContext) -> FailureAck:
        degraded = False
        log_extra = {
            "trace_id": ctx.trace_id,
            "run_id": ctx.run_id,
            "error_kind": value.error_kind,
        }

        logger.error(f"Signup pipeline failed: {value.error_kind}: {value.cause}", extra=log_extra)

        try:
            from apps.orchestration.models import FailureLog

            with transaction.atomic():
                FailureLog.objects.create(
                    run_id=ctx.run_id,
                    trace_id=ctx.trace_id,
                    error_kind=value.error_kind,
                    cause=value.cause,
                    retryable=is_retryable(value.error_kind),
                )
        except Exception as e:
            degraded = True
            logger.warning(f"Failure log unavailable, kept local record only: {e}", extra=log_extra)

        try:
            from apps.notify.services import NotificationService

            NotificationService().send_failure_alert(
                value.error_kind,
                value.cause,
                run_id=ctx.run_id,
                trace_id=ctx.trace_id,
            )
        except Exception as e:
            degraded = True
            logger.warning(f"Failure alert not sent: {e}", extra=log_extra)

        return FailureAck(message=FAILURE_LOGGED_MESSAGE, degraded=degraded)
