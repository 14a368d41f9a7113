"""
Models for signup pipeline orchestration.

Provides an audit trail of pipeline runs and stage executions, and the
failure log written by the failure stage.
"""

from django.db import models
from django.utils import timezone

from apps.orchestration.errors import ErrorKind


class PipelineStage(models.TextChoices):
    """Pipeline stages."""

    VALIDATE = "validate", "Validate input"
    CREATE_ACCOUNT = "create_account", "Create account"
    SEND_VERIFICATION = "send_verification", "Send verification"
    NOTIFY_FAILURE = "notify_failure", "Notify failure"


class PipelineState(models.TextChoices):
    """Pipeline state machine states."""

    RECEIVED = "received", "Received"
    VALIDATING = "validating", "Validating"
    CREATING = "creating", "Creating"
    NOTIFYING = "notifying", "Notifying"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class StageStatus(models.TextChoices):
    """Status for individual stage executions."""

    RUNNING = "running", "Running"
    SUCCEEDED = "succeeded", "Succeeded"
    FAILED = "failed", "Failed"


class PipelineRun(models.Model):
    """
    Represents a single signup pipeline run.

    A retried signup (same idempotency key) produces a new run each time.
    """

    trace_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Correlation ID for tracing across all stages and logs.",
    )
    run_id = models.CharField(
        max_length=64,
        unique=True,
        db_index=True,
        help_text="Unique ID for this specific pipeline run.",
    )
    idempotency_key = models.CharField(
        max_length=128,
        blank=True,
        default="",
        db_index=True,
        help_text="Key derived from the signup request (empty when disabled).",
    )
    email = models.CharField(max_length=254, blank=True, default="", db_index=True)

    state = models.CharField(
        max_length=20,
        choices=PipelineState.choices,
        default=PipelineState.RECEIVED,
        db_index=True,
    )
    source = models.CharField(
        max_length=100,
        default="unknown",
        db_index=True,
        help_text="What triggered the run (e.g. 'http', 'celery', 'cli').",
    )
    environment = models.CharField(max_length=50, default="production")
    attempt = models.PositiveIntegerField(
        default=1,
        help_text="Attempt number when the run was re-invoked by a retrying caller.",
    )

    account_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    compensated = models.BooleanField(
        default=False,
        help_text="Whether the created account was deactivated after a later failure.",
    )

    error_kind = models.CharField(
        max_length=32,
        choices=ErrorKind.choices,
        blank=True,
        default="",
    )
    error_message = models.TextField(blank=True, default="")
    error_retryable = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    total_duration_ms = models.FloatField(default=0.0)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["trace_id", "run_id"], name="orchestrati_trace_i_5d1a2c_idx"),
            models.Index(fields=["state", "created_at"], name="orchestrati_state_8c3f1e_idx"),
        ]

    def __str__(self):
        return f"Signup {self.run_id} [{self.state}]"

    @property
    def is_terminal(self) -> bool:
        return self.state in (PipelineState.COMPLETED, PipelineState.FAILED)

    def advance_to(self, state: str):
        """Move the run to a new state."""
        self.state = state
        self.save(update_fields=["state", "updated_at"])

    def mark_completed(self, account_id: str, duration_ms: float):
        self.state = PipelineState.COMPLETED
        self.account_id = account_id
        self.completed_at = timezone.now()
        self.total_duration_ms = duration_ms
        self.save(
            update_fields=[
                "state",
                "account_id",
                "completed_at",
                "total_duration_ms",
                "updated_at",
            ]
        )

    def mark_failed(
        self,
        error_kind: str,
        message: str,
        retryable: bool,
        duration_ms: float,
        account_id: str = "",
        compensated: bool = False,
    ):
        self.state = PipelineState.FAILED
        self.error_kind = error_kind
        self.error_message = message
        self.error_retryable = retryable
        self.account_id = account_id
        self.compensated = compensated
        self.completed_at = timezone.now()
        self.total_duration_ms = duration_ms
        self.save(
            update_fields=[
                "state",
                "error_kind",
                "error_message",
                "error_retryable",
                "account_id",
                "compensated",
                "completed_at",
                "total_duration_ms",
                "updated_at",
            ]
        )


class StageExecution(models.Model):
    """One invocation of one stage within a pipeline run."""

    pipeline_run = models.ForeignKey(
        PipelineRun,
        on_delete=models.CASCADE,
        related_name="stage_executions",
    )
    stage = models.CharField(max_length=32, choices=PipelineStage.choices, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=StageStatus.choices,
        default=StageStatus.RUNNING,
        db_index=True,
    )

    error_kind = models.CharField(max_length=32, choices=ErrorKind.choices, blank=True, default="")
    error_message = models.TextField(blank=True, default="")

    started_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(null=True, blank=True)
    duration_ms = models.FloatField(default=0.0)

    class Meta:
        ordering = ["pipeline_run", "started_at", "id"]
        indexes = [
            models.Index(fields=["pipeline_run", "stage"], name="orchestrati_pipelin_4b7e9a_idx"),
        ]

    def __str__(self):
        return f"{self.pipeline_run.run_id} / {self.stage} [{self.status}]"

    def mark_finished(self, duration_ms: float, error_kind: str = "", error_message: str = ""):
        self.status = StageStatus.FAILED if error_kind else StageStatus.SUCCEEDED
        self.error_kind = error_kind
        self.error_message = error_message
        self.completed_at = timezone.now()
        self.duration_ms = duration_ms
        self.save(
            update_fields=["status", "error_kind", "error_message", "completed_at", "duration_ms"]
        )


class FailureLog(models.Model):
    """A terminal pipeline failure, written once by the failure stage."""

    run_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    trace_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    error_kind = models.CharField(max_length=32, db_index=True)
    cause = models.TextField()
    retryable = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.error_kind}: {self.cause[:60]}"


class SignupSubmission(models.Model):
    """
    A signup request queued for asynchronous execution.

    The queued task only carries submission_id, so the password never reaches
    the broker or result backend. The row is deleted once the pipeline
    reaches an outcome that will not be retried.
    """

    submission_id = models.CharField(max_length=64, unique=True, db_index=True)
    email = models.TextField()
    password = models.TextField()
    source = models.CharField(max_length=100, default="http")
    trace_id = models.CharField(max_length=64, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return f"Submission {self.submission_id} ({self.email})"
