"""Admin configuration for orchestration models."""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.safestring import mark_safe

from apps.orchestration.models import (
    FailureLog,
    PipelineRun,
    PipelineStage,
    StageExecution,
    StageStatus,
)


class StageExecutionInline(admin.TabularInline):
    """Inline display of stage executions within a pipeline run."""

    model = StageExecution
    extra = 0
    readonly_fields = [
        "stage",
        "status",
        "started_at",
        "completed_at",
        "duration_ms",
        "error_kind",
        "error_message",
    ]
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(PipelineRun)
class PipelineRunAdmin(admin.ModelAdmin):
    """Admin for PipelineRun model. Runs are an audit trail and are read-only."""

    list_display = [
        "run_id",
        "email",
        "state",
        "error_kind",
        "source",
        "attempt",
        "compensated",
        "created_at",
        "total_duration_ms",
    ]
    list_filter = ["state", "error_kind", "source", "environment", "compensated"]
    search_fields = ["run_id", "trace_id", "email", "account_id"]
    readonly_fields = [
        "pipeline_flow",
        "trace_id",
        "run_id",
        "idempotency_key",
        "email",
        "source",
        "environment",
        "attempt",
        "state",
        "account_id",
        "compensated",
        "error_kind",
        "error_message",
        "error_retryable",
        "created_at",
        "updated_at",
        "completed_at",
        "total_duration_ms",
    ]
    inlines = [StageExecutionInline]

    fieldsets = [
        (
            "Identification",
            {"fields": ["pipeline_flow", "trace_id", "run_id", "idempotency_key", "email"]},
        ),
        (
            "State",
            {"fields": ["state", "source", "environment", "attempt", "account_id", "compensated"]},
        ),
        (
            "Errors",
            {
                "fields": ["error_kind", "error_message", "error_retryable"],
                "classes": ["collapse"],
            },
        ),
        (
            "Timestamps",
            {"fields": ["created_at", "updated_at", "completed_at", "total_duration_ms"]},
        ),
    ]

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related("stage_executions")

    def has_add_permission(self, request):
        return False

    @admin.display(description="Pipeline Flow")
    def pipeline_flow(self, obj):
        """Render a horizontal stage flow with status indicators.

        Only for the detail view: it reads obj.stage_executions.all().
        """
        stages = [
            (PipelineStage.VALIDATE, "VALIDATE"),
            (PipelineStage.CREATE_ACCOUNT, "CREATE"),
            (PipelineStage.SEND_VERIFICATION, "NOTIFY"),
            (PipelineStage.NOTIFY_FAILURE, "FAILURE"),
        ]
        executions = {se.stage: se.status for se in obj.stage_executions.all()}
        parts = []
        for stage_value, stage_label in stages:
            status = executions.get(stage_value)
            if status == StageStatus.SUCCEEDED:
                color, icon = "#28a745", "✓"
            elif status == StageStatus.RUNNING:
                color, icon = "#ffc107", "●"
            elif status == StageStatus.FAILED:
                color, icon = "#dc3545", "✗"
            else:
                color, icon = "#ccc", "○"
            parts.append(
                format_html(
                    '<span style="display:inline-block;text-align:center;margin:0 4px;">'
                    '<span style="color:{};font-size:18px;">{}</span><br>'
                    '<span style="font-size:11px;">{}</span></span>',
                    color,
                    icon,
                    stage_label,
                )
            )

        # Parts are already escaped by format_html; only the static arrow is marked safe.
        arrow = mark_safe('<span style="color:#999;margin:0 2px;">→</span>')
        stages_html = mark_safe(arrow.join(parts))

        return format_html(
            '<div style="display:flex;align-items:center;padding:8px 0;">{}</div>',
            stages_html,
        )


@admin.register(FailureLog)
class FailureLogAdmin(admin.ModelAdmin):
    """Admin for FailureLog model."""

    list_display = ["error_kind", "short_cause", "retryable", "run_id", "created_at"]
    list_filter = ["error_kind", "retryable"]
    search_fields = ["run_id", "trace_id", "cause"]
    readonly_fields = ["run_id", "trace_id", "error_kind", "cause", "retryable", "created_at"]

    def has_add_permission(self, request):
        return False

    @admin.display(description="Cause")
    def short_cause(self, obj):
        return obj.cause[:80]
