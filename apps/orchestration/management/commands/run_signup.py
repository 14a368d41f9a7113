"""
Management command to run the signup pipeline end-to-end.

Usage:
    python manage.py run_signup --email a@b.com --password secret1

    # Machine-readable output
    python manage.py run_signup --email a@b.com --password secret1 --json

    # Correlate with an upstream request
    python manage.py run_signup --email a@b.com --password secret1 --trace-id abc123
"""

import json

from django.core.management.base import BaseCommand, CommandError

from apps.orchestration.orchestrator import SignupOrchestrator


class Command(BaseCommand):
    help = "Run the signup pipeline: validate → create account → send verification"

    def add_arguments(self, parser):
        parser.add_argument("--email", type=str, required=True, help="Email to sign up")
        parser.add_argument("--password", type=str, required=True, help="Password to sign up")
        parser.add_argument(
            "--source",
            type=str,
            default="cli",
            help="Source recorded on the run (default: cli)",
        )
        parser.add_argument(
            "--trace-id",
            type=str,
            help="Custom trace ID for correlation",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            help="Output result as JSON",
        )

    def handle(self, *args, **options):
        if not options["json"]:
            self.stdout.write(self.style.NOTICE("Starting signup pipeline..."))
            self.stdout.write(f"  Email: {options['email']}")
            self.stdout.write(f"  Source: {options['source']}")
            self.stdout.write("")

        result = SignupOrchestrator().run(
            {"email": options["email"], "password": options["password"]},
            source=options["source"],
            trace_id=options.get("trace_id"),
        )

        if options["json"]:
            self.stdout.write(json.dumps(result.to_dict(), indent=2, default=str))
        else:
            self._display_result(result)

        if not result.succeeded:
            raise CommandError(f"Signup failed: {result.failure.error_kind}")

    def _display_result(self, result):
        """Display pipeline result in human-readable format."""
        self.stdout.write("=" * 60)
        self.stdout.write(self.style.HTTP_INFO("SIGNUP RESULT"))
        self.stdout.write("=" * 60)

        if result.succeeded:
            self.stdout.write(self.style.SUCCESS(f"Status: {result.status}"))
        else:
            self.stdout.write(self.style.ERROR(f"Status: {result.status}"))
        self.stdout.write(f"State: {result.state}")
        self.stdout.write(f"Trace ID: {result.trace_id}")
        self.stdout.write(f"Run ID: {result.run_id}")
        self.stdout.write(f"Duration: {result.total_duration_ms:.2f}ms")
        self.stdout.write(f"Stages completed: {', '.join(result.stages_completed) or '-'}")
        self.stdout.write("")

        if result.account:
            self.stdout.write(f"  {result.account.message}")
            if result.account.replayed:
                self.stdout.write(self.style.WARNING("  (existing account returned)"))
        if result.notification:
            self.stdout.write(f"  {result.notification.message}")

        if result.succeeded:
            self.stdout.write(self.style.SUCCESS("✓ Signup completed successfully"))
            return

        self.stdout.write(
            self.style.ERROR(f"✗ {result.failure.error_kind}: {result.failure.cause}")
        )
        if result.compensated:
            self.stdout.write(self.style.WARNING("  Created account was deactivated"))
        if result.retryable:
            self.stdout.write(self.style.WARNING("  This failure is retryable"))
