"""
Data Transfer Objects (DTOs) for the signup pipeline stage contracts.

Every stage takes one of these values and returns the next one. Values are
frozen: data only flows forward, nothing is shared or mutated between stages.

    SignupRequest → ValidatedRequest → AccountResult → NotificationReceipt
    FailureRecord → FailureAck
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from django.utils.crypto import salted_hmac

IDEMPOTENCY_KEY_SALT = "apps.orchestration.signup-request"


@dataclass(frozen=True)
class SignupRequest:
    """Raw signup input as provided by the caller."""

    email: str
    password: str = field(repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SignupRequest":
        return cls(
            email=str(data.get("email") or ""),
            password=str(data.get("password") or ""),
        )

    def idempotency_key(self) -> str:
        """
        Deterministic key for this request.

        Same email and password give the same key. The email is normalized the
        way accounts store it (surrounding whitespace and domain case ignored).
        Keyed with SECRET_KEY so the password cannot be recovered from it.
        """
        from apps.accounts.services import normalize_email

        value = f"{normalize_email(self.email)}\x00{self.password}"
        return salted_hmac(IDEMPOTENCY_KEY_SALT, value, algorithm="sha256").hexdigest()

    def to_dict(self) -> dict[str, Any]:
        return {"email": self.email, "password": self.password}


@dataclass(frozen=True)
class ValidatedRequest:
    """
    A SignupRequest that passed validation.

    Same shape as SignupRequest. Only ValidateExecutor builds these, and
    account creation accepts nothing else.
    """

    email: str
    password: str = field(repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {"message": "Validation passed", "email": self.email, "password": self.password}


@dataclass(frozen=True)
class AccountResult:
    """Identity of a created account."""

    account_id: str
    email: str
    message: str = ""
    replayed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NotificationReceipt:
    """Proof that a verification email was handed to the outbound channel."""

    message: str
    message_id: str = ""
    replayed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FailureRecord:
    """The terminal failure of a pipeline run."""

    error_kind: str
    cause: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FailureAck:
    """Acknowledgement returned by the failure stage."""

    message: str
    degraded: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class StageContext:
    """
    Correlation data passed to every stage alongside its input value.

    idempotency_key is None when duplicate suppression is disabled.
    """

    trace_id: str
    run_id: str
    attempt: int = 1
    environment: str = "production"
    source: str = "unknown"
    idempotency_key: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class StageError:
    """Represents an error that occurred during stage execution."""

    error_kind: str
    message: str
    retryable: bool = False
    stack_trace: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class StageResult:
    """Outcome of one stage invocation: an output value or an error."""

    stage: str
    output: Any = None
    error: StageError | None = None
    duration_ms: float = 0.0

    @property
    def has_errors(self) -> bool:
        return self.error is not None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        output = self.output.to_dict() if hasattr(self.output, "to_dict") else self.output
        return {
            "stage": self.stage,
            "output": output,
            "error": self.error.to_dict() if self.error else None,
            "duration_ms": self.duration_ms,
        }


@dataclass
class PipelineResult:
    """
    Final result of a signup pipeline run.

    status is COMPLETED or FAILED; state is the terminal state machine state.
    The password never appears in the result.
    """

    trace_id: str
    run_id: str
    status: str  # COMPLETED, FAILED
    state: str
    email: str = ""
    account: AccountResult | None = None
    notification: NotificationReceipt | None = None
    failure: FailureRecord | None = None
    failure_ack: FailureAck | None = None
    retryable: bool = False
    compensated: bool = False
    started_at: datetime | None = None
    completed_at: datetime | None = None
    total_duration_ms: float = 0.0
    stages_completed: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == "COMPLETED"

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "trace_id": self.trace_id,
            "run_id": self.run_id,
            "status": self.status,
            "state": self.state,
            "email": self.email,
            "retryable": self.retryable,
            "compensated": self.compensated,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "total_duration_ms": self.total_duration_ms,
            "stages_completed": self.stages_completed,
        }
        if self.account:
            result["account"] = self.account.to_dict()
        if self.notification:
            result["notification"] = self.notification.to_dict()
        if self.failure:
            result["failure"] = self.failure.to_dict()
        if self.failure_ack:
            result["failure_ack"] = self.failure_ack.to_dict()
        return result
