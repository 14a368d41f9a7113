import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

ERROR_KIND_CHOICES = [
    ("MissingField", "Missing field"),
    ("InvalidFormat", "Invalid format"),
    ("WeakPassword", "Weak password"),
    ("DuplicateAccount", "Duplicate account"),
    ("StoreUnavailable", "Store unavailable"),
    ("DispatchUnavailable", "Dispatch unavailable"),
    ("UnexpectedError", "Unexpected error"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PipelineRun",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                (
                    "trace_id",
                    models.CharField(
                        db_index=True,
                        help_text="Correlation ID for tracing across all stages and logs.",
                        max_length=64,
                    ),
                ),
                (
                    "run_id",
                    models.CharField(
                        db_index=True,
                        help_text="Unique ID for this specific pipeline run.",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "idempotency_key",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        default="",
                        help_text="Key derived from the signup request (empty when disabled).",
                        max_length=128,
                    ),
                ),
                (
                    "email",
                    models.CharField(blank=True, db_index=True, default="", max_length=254),
                ),
                (
                    "state",
                    models.CharField(
                        choices=[
                            ("received", "Received"),
                            ("validating", "Validating"),
                            ("creating", "Creating"),
                            ("notifying", "Notifying"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="received",
                        max_length=20,
                    ),
                ),
                (
                    "source",
                    models.CharField(
                        db_index=True,
                        default="unknown",
                        help_text="What triggered the run (e.g. 'http', 'celery', 'cli').",
                        max_length=100,
                    ),
                ),
                ("environment", models.CharField(default="production", max_length=50)),
                (
                    "attempt",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Attempt number when the run was re-invoked by a retrying caller.",
                    ),
                ),
                (
                    "account_id",
                    models.CharField(blank=True, db_index=True, default="", max_length=64),
                ),
                (
                    "compensated",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the created account was deactivated after a later failure.",
                    ),
                ),
                (
                    "error_kind",
                    models.CharField(
                        blank=True, choices=ERROR_KIND_CHOICES, default="", max_length=32
                    ),
                ),
                ("error_message", models.TextField(blank=True, default="")),
                ("error_retryable", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("total_duration_ms", models.FloatField(default=0.0)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["trace_id", "run_id"], name="orchestrati_trace_i_5d1a2c_idx"),
                    models.Index(fields=["state", "created_at"], name="orchestrati_state_8c3f1e_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="FailureLog",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("run_id", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                (
                    "trace_id",
                    models.CharField(blank=True, db_index=True, default="", max_length=64),
                ),
                ("error_kind", models.CharField(db_index=True, max_length=32)),
                ("cause", models.TextField()),
                ("retryable", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="StageExecution",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                (
                    "stage",
                    models.CharField(
                        choices=[
                            ("validate", "Validate input"),
                            ("create_account", "Create account"),
                            ("send_verification", "Send verification"),
                            ("notify_failure", "Notify failure"),
                        ],
                        db_index=True,
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("running", "Running"),
                            ("succeeded", "Succeeded"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="running",
                        max_length=20,
                    ),
                ),
                (
                    "error_kind",
                    models.CharField(
                        blank=True, choices=ERROR_KIND_CHOICES, default="", max_length=32
                    ),
                ),
                ("error_message", models.TextField(blank=True, default="")),
                ("started_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("duration_ms", models.FloatField(default=0.0)),
                (
                    "pipeline_run",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stage_executions",
                        to="orchestration.pipelinerun",
                    ),
                ),
            ],
            options={
                "ordering": ["pipeline_run", "started_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["pipeline_run", "stage"], name="orchestrati_pipelin_4b7e9a_idx"
                    ),
                ],
            },
        ),
    ]
