"""Celery tasks for the signup pipeline.

Each stage is exposed as its own task taking and returning a JSON-compatible
dict, so an external invoker can schedule stages independently. A stage
failure is returned (not raised) as {"error_kind", "cause", "retryable"}.

run_signup_task wraps the SignupOrchestrator and re-runs the whole pipeline
with backoff when the failure is retryable. run_signup_submission_task does
the same for a request stored as a SignupSubmission, keeping the password out
of task arguments.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from celery import shared_task
from django.conf import settings

from apps.orchestration.dtos import (
    AccountResult,
    FailureRecord,
    SignupRequest,
    StageContext,
    StageResult,
)

logger = logging.getLogger(__name__)


def _context(
    source: str,
    trace_id: str | None = None,
    idempotency_key: str | None = None,
) -> StageContext:
    run_id = str(uuid.uuid4())
    return StageContext(
        trace_id=trace_id or run_id,
        run_id=run_id,
        environment=getattr(settings, "SIGNUP_ENVIRONMENT", "production"),
        source=source,
        idempotency_key=idempotency_key,
    )


def _request_key(request: SignupRequest) -> str | None:
    if getattr(settings, "SIGNUP_IDEMPOTENCY_ENABLED", True):
        return request.idempotency_key()
    return None


def _response(result: StageResult) -> dict[str, Any]:
    if result.has_errors:
        return {
            "error_kind": result.error.error_kind,
            "cause": f"{result.stage}: {result.error.message}",
            "retryable": result.error.retryable,
        }
    return result.output.to_dict()


@shared_task
def validate_input(payload: dict[str, Any], trace_id: str | None = None) -> dict[str, Any]:
    """{email, password} → {message, email, password}."""
    from apps.orchestration.executors import ValidateExecutor

    request = SignupRequest.from_dict(payload)
    return _response(ValidateExecutor().execute(request, _context("celery", trace_id)))


@shared_task
def create_account(payload: dict[str, Any], trace_id: str | None = None) -> dict[str, Any]:
    """
    {email, password} → {message, email, account_id}.

    The payload crosses a serialization boundary, so it is validated again
    before an account is created from it.
    """
    from apps.orchestration.executors import CreateAccountExecutor, ValidateExecutor

    request = SignupRequest.from_dict(payload)
    ctx = _context("celery", trace_id, idempotency_key=_request_key(request))

    validated = ValidateExecutor().execute(request, ctx)
    if validated.has_errors:
        return _response(validated)
    return _response(CreateAccountExecutor().execute(validated.output, ctx))


@shared_task
def send_verification(
    payload: dict[str, Any],
    trace_id: str | None = None,
    idempotency_key: str | None = None,
) -> dict[str, Any]:
    """{email, account_id} → {message}."""
    from apps.orchestration.executors import SendVerificationExecutor

    account = AccountResult(
        account_id=str(payload.get("account_id") or ""),
        email=str(payload.get("email") or ""),
    )
    ctx = _context("celery", trace_id, idempotency_key=idempotency_key)
    return _response(SendVerificationExecutor().execute(account, ctx))


@shared_task
def notify_failure(payload: dict[str, Any], trace_id: str | None = None) -> dict[str, Any]:
    """{error_kind, cause} → {message}."""
    from apps.orchestration.executors import NotifyFailureExecutor

    record = FailureRecord(
        error_kind=str(payload.get("error_kind") or ""),
        cause=str(payload.get("cause") or ""),
    )
    result = NotifyFailureExecutor().execute(record, _context("celery", trace_id))
    if result.has_errors:
        # The failure stage always acknowledges.
        return {"message": "Failure logged", "degraded": True}
    return result.output.to_dict()


def _max_retries() -> int:
    return int(getattr(settings, "SIGNUP_PIPELINE_MAX_RETRIES", 3))


def _retry_countdown(task, result) -> float | None:
    """Seconds to wait before re-running the pipeline, or None when it should not be retried."""
    if not (result.failure and result.retryable and task.request.retries < _max_retries()):
        return None

    attempt = task.request.retries + 1
    backoff = float(getattr(settings, "SIGNUP_BACKOFF_FACTOR", 2.0))
    countdown = backoff**attempt
    logger.info(
        f"Retrying signup pipeline in {countdown}s: {result.failure.error_kind}",
        extra={"trace_id": result.trace_id, "run_id": result.run_id, "attempt": attempt},
    )
    return countdown


@shared_task(bind=True)
def run_signup_task(
    self,
    email: str,
    password: str,
    source: str = "celery",
    trace_id: str | None = None,
) -> dict[str, Any]:
    """
    Celery task to run the signup pipeline asynchronously.

    Retryable failures (resource errors) re-run the whole pipeline after
    SIGNUP_BACKOFF_FACTOR ** attempt seconds, up to SIGNUP_PIPELINE_MAX_RETRIES
    times. Input and conflict failures are returned as-is.

    Returns:
        PipelineResult as dict.
    """
    from apps.orchestration.orchestrator import SignupOrchestrator

    result = SignupOrchestrator().run(
        {"email": email, "password": password},
        source=source,
        trace_id=trace_id,
        attempt=self.request.retries + 1,
    )

    countdown = _retry_countdown(self, result)
    if countdown is not None:
        raise self.retry(
            kwargs={
                "email": email,
                "password": password,
                "source": source,
                "trace_id": result.trace_id,
            },
            countdown=countdown,
            max_retries=_max_retries(),
        )

    return result.to_dict()


@shared_task(bind=True)
def run_signup_submission_task(self, submission_id: str) -> dict[str, Any]:
    """
    Run the signup pipeline for a stored SignupSubmission.

    Used by the HTTP async endpoint so task arguments and retries only carry
    the submission id. Retries follow run_signup_task; the submission is
    deleted once no retry is scheduled.
    """
    from apps.orchestration.models import SignupSubmission
    from apps.orchestration.orchestrator import SignupOrchestrator

    submission = SignupSubmission.objects.filter(submission_id=submission_id).first()
    if submission is None:
        logger.warning(f"Signup submission not found: {submission_id}")
        return {
            "status": "FAILED",
            "submission_id": submission_id,
            "error": "Unknown signup submission",
        }

    result = SignupOrchestrator().run(
        {"email": submission.email, "password": submission.password},
        source=submission.source,
        trace_id=submission.trace_id or None,
        attempt=self.request.retries + 1,
    )

    countdown = _retry_countdown(self, result)
    if countdown is not None:
        if submission.trace_id != result.trace_id:
            submission.trace_id = result.trace_id
            submission.save(update_fields=["trace_id"])
        raise self.retry(
            kwargs={"submission_id": submission_id},
            countdown=countdown,
            max_retries=_max_retries(),
        )

    submission.delete()
    return result.to_dict()
