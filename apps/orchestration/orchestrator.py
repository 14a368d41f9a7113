"""
Signup Orchestrator service.

The main entry point for the signup pipeline. Drives one signup request
through: validate → create_account → send_verification, and routes any
failure to notify_failure.

Key responsibilities:
1. State machine: RECEIVED → VALIDATING → CREATING → NOTIFYING → COMPLETED,
   with FAILED reachable from every non-terminal state
2. Correlation IDs: trace_id/run_id attached to all logs/signals/records
3. Contracts: each stage takes and returns typed DTOs
4. Observability: signals at every stage boundary, audit trail in the DB
5. Failure policy: failure stage invoked exactly once per failed run, no
   stage-local retries, optional compensation when notification fails
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.orchestration.dtos import (
    AccountResult,
    FailureAck,
    FailureRecord,
    NotificationReceipt,
    PipelineResult,
    SignupRequest,
    StageContext,
    StageResult,
)
from apps.orchestration.errors import InvalidTransition
from apps.orchestration.executors import (
    FAILURE_LOGGED_MESSAGE,
    BaseExecutor,
    CreateAccountExecutor,
    NotifyFailureExecutor,
    SendVerificationExecutor,
    ValidateExecutor,
)
from apps.orchestration.models import (
    PipelineRun,
    PipelineStage,
    PipelineState,
    StageExecution,
)
from apps.orchestration.signals import (
    SignalTags,
    emit_compensated,
    emit_pipeline_completed,
    emit_pipeline_started,
    emit_stage_failed,
    emit_stage_started,
    emit_stage_succeeded,
)

logger = logging.getLogger(__name__)


# state → state reached when the work done in that state succeeds
TRANSITIONS = {
    PipelineState.RECEIVED: PipelineState.VALIDATING,
    PipelineState.VALIDATING: PipelineState.CREATING,
    PipelineState.CREATING: PipelineState.NOTIFYING,
    PipelineState.NOTIFYING: PipelineState.COMPLETED,
}

TERMINAL_STATES = frozenset({PipelineState.COMPLETED, PipelineState.FAILED})

# Which stage runs while the pipeline is in a given state
STATE_TO_STAGE = {
    PipelineState.VALIDATING: PipelineStage.VALIDATE,
    PipelineState.CREATING: PipelineStage.CREATE_ACCOUNT,
    PipelineState.NOTIFYING: PipelineStage.SEND_VERIFICATION,
}


def next_state(state: str, succeeded: bool = True) -> str:
    """
    Pure transition function of the signup state machine.

    Any failure leads to FAILED. Terminal states have no way out.
    """
    if state in TERMINAL_STATES:
        raise InvalidTransition(state)
    if state not in TRANSITIONS:
        raise ValueError(f"Unknown pipeline state: {state}")
    if not succeeded:
        return PipelineState.FAILED
    return TRANSITIONS[state]


@dataclass
class StageSet:
    """The stages the orchestrator drives, injected as one capability set."""

    validate: BaseExecutor
    create: BaseExecutor
    notify: BaseExecutor
    fail: BaseExecutor

    @classmethod
    def default(cls) -> "StageSet":
        return cls(
            validate=ValidateExecutor(),
            create=CreateAccountExecutor(),
            notify=SendVerificationExecutor(),
            fail=NotifyFailureExecutor(),
        )

    def for_state(self, state: str) -> BaseExecutor:
        """Return the stage that runs in the given non-terminal state."""
        stage = STATE_TO_STAGE.get(state)
        if stage == PipelineStage.VALIDATE:
            return self.validate
        if stage == PipelineStage.CREATE_ACCOUNT:
            return self.create
        if stage == PipelineStage.SEND_VERIFICATION:
            return self.notify
        raise ValueError(f"No stage runs in state: {state}")


class SignupOrchestrator:
    """
    Main orchestrator service for signup pipeline execution.

    Usage:
        orchestrator = SignupOrchestrator()
        result = orchestrator.run({"email": "a@b.com", "password": "secret1"}, source="http")
    """

    stages: StageSet
    idempotency_enabled: bool
    compensate_on_notify_failure: bool
    environment: str

    def __init__(
        self,
        stages: StageSet | None = None,
        idempotency_enabled: bool | None = None,
        compensate_on_notify_failure: bool | None = None,
        environment: str | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            stages: Stage implementations (default: the production executors).
            idempotency_enabled: Thread an idempotency key through the stages
                (default from settings).
            compensate_on_notify_failure: Deactivate the created account when
                notification fails (default from settings).
            environment: Environment name recorded on runs and signals.
        """
        self.stages = stages if stages is not None else StageSet.default()
        self.idempotency_enabled = (
            idempotency_enabled
            if idempotency_enabled is not None
            else bool(getattr(settings, "SIGNUP_IDEMPOTENCY_ENABLED", True))
        )
        self.compensate_on_notify_failure = (
            compensate_on_notify_failure
            if compensate_on_notify_failure is not None
            else bool(getattr(settings, "SIGNUP_COMPENSATE_ON_NOTIFY_FAILURE", False))
        )
        self.environment = (
            environment
            if environment is not None
            else getattr(settings, "SIGNUP_ENVIRONMENT", "production")
        )

    def start_run(
        self,
        request: SignupRequest,
        source: str = "unknown",
        trace_id: str | None = None,
        idempotency_key: str | None = None,
        attempt: int = 1,
    ) -> PipelineRun:
        """
        Create the PipelineRun record with correlation IDs.

        When the run cannot be recorded an unsaved PipelineRun is returned and
        the pipeline still runs.
        """
        if trace_id is None:
            trace_id = str(uuid.uuid4())
        run_id = str(uuid.uuid4())

        try:
            with transaction.atomic():
                pipeline_run = PipelineRun.objects.create(
                    trace_id=trace_id,
                    run_id=run_id,
                    idempotency_key=idempotency_key or "",
                    email=request.email[:254],
                    source=source,
                    environment=self.environment,
                    attempt=attempt,
                    state=PipelineState.RECEIVED,
                )
        except DatabaseError as e:
            logger.warning(
                f"Pipeline run not recorded: {e}",
                extra={"trace_id": trace_id, "run_id": run_id},
            )
            return PipelineRun(
                trace_id=trace_id,
                run_id=run_id,
                source=source,
                environment=self.environment,
                attempt=attempt,
            )

        logger.info(
            f"Signup pipeline started: trace_id={trace_id}, run_id={run_id}",
            extra={"trace_id": trace_id, "run_id": run_id, "source": source},
        )
        return pipeline_run

    def run(
        self,
        request: SignupRequest | dict[str, Any],
        source: str = "unknown",
        trace_id: str | None = None,
        idempotency_key: str | None = None,
        attempt: int = 1,
    ) -> PipelineResult:
        """
        Run the complete signup pipeline synchronously.

        Never raises for a stage failure: the caller observes either a
        COMPLETED result or a FAILED result carrying one FailureRecord.

        Args:
            request: SignupRequest or a dict with "email" and "password".
            source: What triggered the run (http, celery, cli, ...).
            trace_id: Optional trace ID (generated if not provided).
            idempotency_key: Explicit key; derived from the request when
                idempotency is enabled and none is given.
            attempt: Attempt number assigned by a retrying caller.
        """
        if isinstance(request, dict):
            request = SignupRequest.from_dict(request)

        if self.idempotency_enabled:
            idempotency_key = idempotency_key or request.idempotency_key()
        else:
            idempotency_key = None

        start_time = time.perf_counter()
        pipeline_run = self.start_run(
            request,
            source=source,
            trace_id=trace_id,
            idempotency_key=idempotency_key,
            attempt=attempt,
        )

        ctx = StageContext(
            trace_id=pipeline_run.trace_id,
            run_id=pipeline_run.run_id,
            attempt=attempt,
            environment=self.environment,
            source=source,
            idempotency_key=idempotency_key,
        )
        base_tags = SignalTags(
            trace_id=ctx.trace_id,
            run_id=ctx.run_id,
            stage="pipeline",
            source=source,
            environment=self.environment,
            attempt=attempt,
        )
        result = PipelineResult(
            trace_id=ctx.trace_id,
            run_id=ctx.run_id,
            status="RUNNING",
            state=PipelineState.RECEIVED,
            email=request.email,
            started_at=timezone.now(),
        )

        emit_pipeline_started(base_tags)

        state = next_state(PipelineState.RECEIVED)
        value: Any = request
        failed_stage: StageResult | None = None

        while state not in TERMINAL_STATES:
            self._save_state(pipeline_run, state)
            executor = self.stages.for_state(state)
            stage_result = self._execute_stage(pipeline_run, executor, value, ctx, base_tags)

            if stage_result.has_errors:
                failed_stage = stage_result
                state = next_state(state, succeeded=False)
                break

            value = stage_result.output
            result.stages_completed.append(stage_result.stage)
            if isinstance(value, AccountResult):
                result.account = value
            elif isinstance(value, NotificationReceipt):
                result.notification = value
            state = next_state(state, succeeded=True)

        if failed_stage is None:
            duration_ms = (time.perf_counter() - start_time) * 1000
            result.status = "COMPLETED"
            result.state = state
            result.total_duration_ms = duration_ms
            result.completed_at = timezone.now()
            self._save_completed(pipeline_run, result)
            emit_pipeline_completed(base_tags, duration_ms, "COMPLETED")
            logger.info(
                f"Signup pipeline completed: account_id={result.account.account_id}",
                extra={"trace_id": ctx.trace_id, "run_id": ctx.run_id},
            )
            return result

        error = failed_stage.error
        failure = FailureRecord(
            error_kind=error.error_kind,
            cause=f"{failed_stage.stage}: {error.message}",
        )
        result.failure = failure
        result.retryable = error.retryable

        if (
            self.compensate_on_notify_failure
            and failed_stage.stage == PipelineStage.SEND_VERIFICATION
            and result.account is not None
        ):
            result.compensated = self._compensate(result.account, ctx, base_tags, failure.cause)

        result.failure_ack = self._notify_failure(pipeline_run, failure, ctx, base_tags)

        duration_ms = (time.perf_counter() - start_time) * 1000
        result.status = "FAILED"
        result.state = state
        result.total_duration_ms = duration_ms
        result.completed_at = timezone.now()
        self._save_failed(pipeline_run, result)
        emit_pipeline_completed(base_tags, duration_ms, "FAILED")
        return result

    def _execute_stage(
        self,
        pipeline_run: PipelineRun,
        executor: BaseExecutor,
        value: Any,
        ctx: StageContext,
        base_tags: SignalTags,
    ) -> StageResult:
        """Invoke one stage once, recording a StageExecution and emitting signals."""
        tags = base_tags.for_stage(executor.name)
        stage_execution = self._record_stage_start(pipeline_run, executor.name)
        emit_stage_started(tags)

        stage_result = executor.execute(value, ctx)

        if stage_result.has_errors:
            error = stage_result.error
            logger.warning(
                f"Stage {executor.name} failed: {error.error_kind}: {error.message}",
                extra={
                    "trace_id": ctx.trace_id,
                    "run_id": ctx.run_id,
                    "stage": executor.name,
                    "error_kind": error.error_kind,
                },
            )
            emit_stage_failed(
                tags,
                error_kind=error.error_kind,
                error_message=error.message,
                retryable=error.retryable,
                duration_ms=stage_result.duration_ms,
            )
            self._record_stage_finish(
                stage_execution,
                stage_result.duration_ms,
                error_kind=error.error_kind,
                error_message=error.message,
            )
        else:
            emit_stage_succeeded(tags, stage_result.duration_ms)
            self._record_stage_finish(stage_execution, stage_result.duration_ms)

        return stage_result

    def _notify_failure(
        self,
        pipeline_run: PipelineRun,
        failure: FailureRecord,
        ctx: StageContext,
        base_tags: SignalTags,
    ) -> FailureAck:
        """Invoke the failure stage. Always returns an acknowledgement."""
        stage_result = self._execute_stage(pipeline_run, self.stages.fail, failure, ctx, base_tags)
        if stage_result.has_errors or not isinstance(stage_result.output, FailureAck):
            logger.error(
                f"Failure stage did not acknowledge, local record only: "
                f"{failure.error_kind}: {failure.cause}",
                extra={"trace_id": ctx.trace_id, "run_id": ctx.run_id},
            )
            return FailureAck(message=FAILURE_LOGGED_MESSAGE, degraded=True)
        return stage_result.output

    def _compensate(
        self,
        account: AccountResult,
        ctx: StageContext,
        base_tags: SignalTags,
        reason: str,
    ) -> bool:
        compensate = getattr(self.stages.create, "compensate", None)
        if compensate is None:
            return False

        compensated = bool(compensate(account, ctx, reason))
        if compensated:
            emit_compensated(base_tags.for_stage(self.stages.create.name), account.account_id)
            logger.info(
                f"Account {account.account_id} deactivated after notification failure",
                extra={"trace_id": ctx.trace_id, "run_id": ctx.run_id},
            )
        return compensated

    # Run bookkeeping. The audit trail must never decide the run's outcome.

    def _save_state(self, pipeline_run: PipelineRun, state: str):
        pipeline_run.state = state
        if pipeline_run.pk is None:
            return
        self._persist(pipeline_run.advance_to, state)

    def _save_completed(self, pipeline_run: PipelineRun, result: PipelineResult):
        pipeline_run.state = result.state
        if pipeline_run.pk is None:
            return
        self._persist(
            pipeline_run.mark_completed,
            account_id=result.account.account_id if result.account else "",
            duration_ms=result.total_duration_ms,
        )

    def _save_failed(self, pipeline_run: PipelineRun, result: PipelineResult):
        pipeline_run.state = result.state
        if pipeline_run.pk is None:
            return
        self._persist(
            pipeline_run.mark_failed,
            error_kind=result.failure.error_kind,
            message=result.failure.cause,
            retryable=result.retryable,
            duration_ms=result.total_duration_ms,
            account_id=result.account.account_id if result.account else "",
            compensated=result.compensated,
        )

    def _record_stage_start(self, pipeline_run: PipelineRun, stage: str) -> StageExecution | None:
        if pipeline_run.pk is None:
            return None
        return self._persist(StageExecution.objects.create, pipeline_run=pipeline_run, stage=stage)

    def _record_stage_finish(
        self,
        stage_execution: StageExecution | None,
        duration_ms: float,
        error_kind: str = "",
        error_message: str = "",
    ):
        if stage_execution is None:
            return
        self._persist(
            stage_execution.mark_finished,
            duration_ms,
            error_kind=error_kind,
            error_message=error_message,
        )

    def _persist(self, func, *args, **kwargs):
        try:
            with transaction.atomic():
                return func(*args, **kwargs)
        except DatabaseError as e:
            logger.warning(f"Pipeline audit write failed: {e}")
            return None
