"""
Views for the orchestration app.

Provides HTTP endpoints for submitting signups and monitoring pipeline runs.
"""

import json
import logging
import uuid
from typing import Any

from django.db import DatabaseError
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from apps.orchestration.errors import ErrorCategory, ErrorKind, categorize
from apps.orchestration.models import PipelineRun, SignupSubmission
from apps.orchestration.orchestrator import SignupOrchestrator
from apps.orchestration.tasks import run_signup_submission_task

logger = logging.getLogger(__name__)

CATEGORY_STATUS = {
    ErrorCategory.INPUT: 400,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.RESOURCE: 503,
}


def failure_status(error_kind: str) -> int:
    """HTTP status code for a failed run's error kind."""
    if error_kind == ErrorKind.UNEXPECTED:
        return 500
    return CATEGORY_STATUS[categorize(error_kind)]


class JSONResponseMixin:
    """Mixin for JSON responses."""

    def json_response(self, data: Any, status: int = 200) -> JsonResponse:
        return JsonResponse(data, status=status)

    def error_response(self, message: str, status: int = 400) -> JsonResponse:
        return JsonResponse({"error": message}, status=status)

    def parse_body(self, request) -> dict[str, Any] | None:
        try:
            body = json.loads(request.body) if request.body else {}
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
        return body if isinstance(body, dict) else None


@method_decorator(csrf_exempt, name="dispatch")
class SignupView(JSONResponseMixin, View):
    """
    API endpoint for submitting a signup.

    POST /signup/
        Run the signup pipeline and wait for the outcome.

    POST /signup/async/
        Queue the signup pipeline on Celery (202).

    Request body:
    {
        "email": "a@b.com",
        "password": "secret1",
        "trace_id": "..."  // Optional: correlation ID
    }
    """

    def post(self, request, mode: str = "sync"):
        """Handle signup request."""
        body = self.parse_body(request)
        if body is None:
            return self.error_response("Invalid JSON body", status=400)

        email = str(body.get("email") or "")
        password = str(body.get("password") or "")
        trace_id = body.get("trace_id")

        if mode == "async":
            try:
                submission = SignupSubmission.objects.create(
                    submission_id=str(uuid.uuid4()),
                    email=email,
                    password=password,
                    source="http",
                    trace_id=str(trace_id or ""),
                )
            except DatabaseError as e:
                logger.error(f"Could not store signup submission: {e}")
                return self.error_response("Signup could not be queued", status=503)

            task_result = run_signup_submission_task.delay(
                submission_id=submission.submission_id
            )
            return self.json_response(
                {
                    "status": "queued",
                    "task_id": task_result.id,
                    "submission_id": submission.submission_id,
                    "message": "Signup queued for execution",
                },
                status=202,
            )

        result = SignupOrchestrator().run(
            {"email": email, "password": password},
            source="http",
            trace_id=trace_id,
        )
        if result.succeeded:
            return self.json_response(result.to_dict(), status=201)
        return self.json_response(result.to_dict(), status=failure_status(result.failure.error_kind))


@method_decorator(csrf_exempt, name="dispatch")
class RunStatusView(JSONResponseMixin, View):
    """
    API endpoint for checking a signup run.

    GET /signup/runs/<run_id>/
        Get state of a pipeline run.
    """

    def get(self, request, run_id: str):
        """Get pipeline run state."""
        try:
            pipeline_run = PipelineRun.objects.get(run_id=run_id)
        except PipelineRun.DoesNotExist:
            return self.error_response(f"Pipeline run not found: {run_id}", status=404)

        stage_executions = [
            {
                "stage": se.stage,
                "status": se.status,
                "started_at": se.started_at.isoformat(),
                "completed_at": se.completed_at.isoformat() if se.completed_at else None,
                "duration_ms": se.duration_ms,
                "error_kind": se.error_kind,
                "error_message": se.error_message,
            }
            for se in pipeline_run.stage_executions.all()
        ]

        return self.json_response(
            {
                "trace_id": pipeline_run.trace_id,
                "run_id": pipeline_run.run_id,
                "state": pipeline_run.state,
                "email": pipeline_run.email,
                "account_id": pipeline_run.account_id,
                "source": pipeline_run.source,
                "environment": pipeline_run.environment,
                "attempt": pipeline_run.attempt,
                "compensated": pipeline_run.compensated,
                "created_at": pipeline_run.created_at.isoformat(),
                "completed_at": (
                    pipeline_run.completed_at.isoformat() if pipeline_run.completed_at else None
                ),
                "total_duration_ms": pipeline_run.total_duration_ms,
                "failure": (
                    {
                        "error_kind": pipeline_run.error_kind,
                        "cause": pipeline_run.error_message,
                        "retryable": pipeline_run.error_retryable,
                    }
                    if pipeline_run.error_kind
                    else None
                ),
                "stage_executions": stage_executions,
            }
        )


@method_decorator(csrf_exempt, name="dispatch")
class RunListView(JSONResponseMixin, View):
    """
    API endpoint for listing signup runs.

    GET /signup/runs/

    Query params:
        state: Filter by state (received, validating, creating, notifying, completed, failed)
        source: Filter by source
        limit: Max results (default 50)
    """

    def get(self, request):
        """List pipeline runs."""
        state = request.GET.get("state")
        source = request.GET.get("source")
        try:
            limit = int(request.GET.get("limit", 50))
        except ValueError:
            return self.error_response("limit must be an integer", status=400)

        queryset = PipelineRun.objects.all()
        if state:
            queryset = queryset.filter(state=state)
        if source:
            queryset = queryset.filter(source=source)

        queryset = queryset.order_by("-created_at")[: max(limit, 0)]

        runs = [
            {
                "trace_id": run.trace_id,
                "run_id": run.run_id,
                "state": run.state,
                "email": run.email,
                "error_kind": run.error_kind,
                "source": run.source,
                "created_at": run.created_at.isoformat(),
                "total_duration_ms": run.total_duration_ms,
            }
            for run in queryset
        ]

        return self.json_response({"count": len(runs), "runs": runs})
