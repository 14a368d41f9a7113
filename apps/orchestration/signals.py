"""
Monitoring signals for the signup pipeline.

Emits structured signals at every stage boundary:
- pipeline.started / pipeline.completed (with final status)
- pipeline.stage.started
- pipeline.stage.succeeded
- pipeline.stage.failed (with error kind and retryable flag)
- pipeline.stage.duration (stage timing)
- pipeline.compensated

Tags on every signal:
- trace_id/run_id
- stage (validate|create_account|send_verification|notify_failure|pipeline)
- source
- environment
- attempt

The backend is chosen by settings.SIGNUP_METRICS_BACKEND (dotted path to a
MonitoringBackend subclass); the default logs each signal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger("apps.orchestration.signals")

DEFAULT_BACKEND = "apps.orchestration.signals.LoggingBackend"


@dataclass
class SignalTags:
    """Required tags for all monitoring signals."""

    trace_id: str
    run_id: str
    stage: str
    source: str = "unknown"
    environment: str = "production"
    attempt: int = 1
    extra: dict[str, Any] = field(default_factory=dict)

    def for_stage(self, stage: str) -> "SignalTags":
        return replace(self, stage=stage, extra=dict(self.extra))

    def to_dict(self) -> dict[str, Any]:
        base = {
            "trace_id": self.trace_id,
            "run_id": self.run_id,
            "stage": self.stage,
            "source": self.source,
            "environment": self.environment,
            "attempt": self.attempt,
        }
        base.update(self.extra)
        return base


class MonitoringBackend:
    """
    Abstract monitoring backend.

    Override emit() to send signals to your preferred monitoring system.
    """

    def emit(
        self,
        signal_name: str,
        tags: SignalTags,
        value: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Emit a monitoring signal."""
        raise NotImplementedError


class LoggingBackend(MonitoringBackend):
    """Default backend: structured logging."""

    def emit(
        self,
        signal_name: str,
        tags: SignalTags,
        value: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        data = {
            "signal": signal_name,
            "value": value,
            **tags.to_dict(),
            **(extra or {}),
        }
        logger.info(f"[SIGNAL] {signal_name}", extra={"signal_data": data})


def get_monitoring_backend() -> MonitoringBackend:
    """Instantiate the configured monitoring backend."""
    path = getattr(settings, "SIGNUP_METRICS_BACKEND", DEFAULT_BACKEND) or DEFAULT_BACKEND
    backend_cls = import_string(path)
    return backend_cls()


_backend: MonitoringBackend | None = None


def _get_backend() -> MonitoringBackend:
    global _backend
    if _backend is None:
        _backend = get_monitoring_backend()
    return _backend


def reset_backend() -> None:
    """Drop the cached backend so the next signal re-reads settings."""
    global _backend
    _backend = None


def _emit(
    signal_name: str,
    tags: SignalTags,
    value: float | None = None,
    extra: dict[str, Any] | None = None,
) -> None:
    # Monitoring must never break a pipeline run.
    try:
        _get_backend().emit(signal_name, tags, value=value, extra=extra)
    except Exception:
        logger.exception(f"Monitoring backend failed to emit {signal_name}")


def emit_stage_started(tags: SignalTags) -> None:
    """Emit signal when a stage starts execution."""
    _emit("pipeline.stage.started", tags)


def emit_stage_succeeded(tags: SignalTags, duration_ms: float) -> None:
    """Emit signal when a stage completes successfully."""
    _emit("pipeline.stage.succeeded", tags, extra={"duration_ms": duration_ms})
    _emit("pipeline.stage.duration", tags, value=duration_ms)


def emit_stage_failed(
    tags: SignalTags,
    error_kind: str,
    error_message: str,
    retryable: bool,
    duration_ms: float,
) -> None:
    """Emit signal when a stage fails."""
    _emit(
        "pipeline.stage.failed",
        tags,
        extra={
            "error_kind": error_kind,
            "error_message": error_message,
            "retryable": retryable,
            "duration_ms": duration_ms,
        },
    )
    _emit("pipeline.stage.duration", tags, value=duration_ms)
    _emit("pipeline.stage.failure_count", tags, value=1)


def emit_compensated(tags: SignalTags, account_id: str) -> None:
    """Emit signal when a created account was rolled back by compensation."""
    _emit("pipeline.compensated", tags, extra={"account_id": account_id})


def emit_pipeline_started(tags: SignalTags) -> None:
    """Emit signal when a pipeline starts."""
    _emit("pipeline.started", tags)


def emit_pipeline_completed(tags: SignalTags, duration_ms: float, status: str) -> None:
    """Emit signal when a pipeline completes (success or failure)."""
    _emit(
        "pipeline.completed",
        tags,
        extra={"duration_ms": duration_ms, "final_status": status},
    )
    _emit("pipeline.duration", tags, value=duration_ms)
