"""Tests for the signup Celery tasks (called synchronously)."""

from unittest.mock import patch

from celery.exceptions import Retry
from django.test import TestCase, override_settings

from apps.accounts.exceptions import StoreUnavailableError
from apps.accounts.models import Account
from apps.notify.exceptions import DispatchUnavailableError
from apps.notify.models import NotificationLog
from apps.orchestration.models import FailureLog, PipelineRun, SignupSubmission
from apps.orchestration.tasks import (
    create_account,
    notify_failure,
    run_signup_submission_task,
    run_signup_task,
    send_verification,
    validate_input,
)


@override_settings(SIGNUP_NOTIFY_DRIVER="log", SIGNUP_FAILURE_ALERT_RECIPIENTS=[])
class StageTaskTests(TestCase):
    def test_validate_input(self):
        result = validate_input({"email": "a@b.com", "password": "secret1"})
        self.assertEqual(
            result, {"message": "Validation passed", "email": "a@b.com", "password": "secret1"}
        )

    def test_validate_input_failure(self):
        result = validate_input({"email": "a@b.com", "password": "123"})
        self.assertEqual(result["error_kind"], "WeakPassword")
        self.assertEqual(result["cause"], "validate: Password must be at least 6 characters.")
        self.assertFalse(result["retryable"])

    def test_create_account(self):
        result = create_account({"email": "a@b.com", "password": "secret1"})
        self.assertEqual(result["email"], "a@b.com")
        self.assertTrue(result["account_id"])
        self.assertEqual(result["message"], f"Account created with ID: {result['account_id']}")

    def test_create_account_revalidates(self):
        result = create_account({"email": "", "password": "secret1"})
        self.assertEqual(result["error_kind"], "MissingField")
        self.assertFalse(Account.objects.exists())

    def test_create_account_repeated_invocation_is_idempotent(self):
        first = create_account({"email": "a@b.com", "password": "secret1"})
        second = create_account({"email": "a@b.com", "password": "secret1"})
        self.assertEqual(first["account_id"], second["account_id"])
        self.assertTrue(second["replayed"])

    @override_settings(SIGNUP_IDEMPOTENCY_ENABLED=False)
    def test_create_account_without_idempotency_is_duplicate(self):
        create_account({"email": "a@b.com", "password": "secret1"})
        second = create_account({"email": "a@b.com", "password": "secret1"})
        self.assertEqual(second["error_kind"], "DuplicateAccount")

    def test_create_account_store_unavailable(self):
        with patch(
            "apps.accounts.services.AccountService.create_account",
            side_effect=StoreUnavailableError("Account store unavailable: down"),
        ):
            result = create_account({"email": "a@b.com", "password": "secret1"})
        self.assertEqual(result["error_kind"], "StoreUnavailable")
        self.assertTrue(result["retryable"])

    def test_send_verification(self):
        result = send_verification({"email": "a@b.com", "account_id": "acc-1"})
        self.assertEqual(result["message"], "Verification email sent")

    def test_send_verification_requires_account(self):
        result = send_verification({})
        self.assertEqual(result["error_kind"], "MissingField")
        self.assertEqual(result["cause"], "send_verification: Account ID and email are required.")
        self.assertFalse(result["retryable"])
        self.assertFalse(NotificationLog.objects.exists())

    def test_send_verification_requires_email(self):
        result = send_verification({"account_id": "acc-1", "email": "  "})
        self.assertEqual(result["error_kind"], "MissingField")

    def test_send_verification_unavailable(self):
        with patch(
            "apps.notify.services.NotificationService.send_verification",
            side_effect=DispatchUnavailableError("refused"),
        ):
            result = send_verification({"email": "a@b.com", "account_id": "acc-1"})
        self.assertEqual(result["error_kind"], "DispatchUnavailable")
        self.assertEqual(result["cause"], "send_verification: refused")

    def test_notify_failure(self):
        result = notify_failure({"error_kind": "MissingField", "cause": "validate: missing"})
        self.assertEqual(result, {"message": "Failure logged", "degraded": False})
        self.assertEqual(FailureLog.objects.get().error_kind, "MissingField")


@override_settings(
    SIGNUP_NOTIFY_DRIVER="log",
    SIGNUP_FAILURE_ALERT_RECIPIENTS=[],
    SIGNUP_PIPELINE_MAX_RETRIES=3,
    SIGNUP_BACKOFF_FACTOR=2.0,
)
class RunSignupTaskTests(TestCase):
    def test_completed_run(self):
        result = run_signup_task(email="a@b.com", password="secret1")

        self.assertEqual(result["status"], "COMPLETED")
        self.assertEqual(result["notification"]["message"], "Verification email sent")
        self.assertEqual(PipelineRun.objects.get().source, "celery")

    def test_input_error_is_not_retried(self):
        with patch.object(run_signup_task, "retry") as mock_retry:
            result = run_signup_task(email="", password="secret1")

        mock_retry.assert_not_called()
        self.assertEqual(result["status"], "FAILED")
        self.assertEqual(result["failure"]["error_kind"], "MissingField")

    def test_resource_error_is_retried_with_backoff(self):
        with patch(
            "apps.accounts.services.AccountService.create_account",
            side_effect=StoreUnavailableError("down"),
        ):
            with patch.object(run_signup_task, "retry", side_effect=Retry()) as mock_retry:
                with self.assertRaises(Retry):
                    run_signup_task(email="a@b.com", password="secret1", trace_id="trace-1")

        kwargs = mock_retry.call_args.kwargs
        self.assertEqual(kwargs["countdown"], 2.0)
        self.assertEqual(kwargs["max_retries"], 3)
        self.assertEqual(kwargs["kwargs"]["trace_id"], "trace-1")
        self.assertEqual(kwargs["kwargs"]["email"], "a@b.com")

    def test_retries_exhausted_returns_failure(self):
        with patch(
            "apps.accounts.services.AccountService.create_account",
            side_effect=StoreUnavailableError("down"),
        ):
            result = run_signup_task.apply(
                kwargs={"email": "a@b.com", "password": "secret1"}, retries=3
            ).get()

        self.assertEqual(result["status"], "FAILED")
        self.assertEqual(result["failure"]["error_kind"], "StoreUnavailable")
        self.assertTrue(result["retryable"])
        self.assertEqual(PipelineRun.objects.get().attempt, 4)


@override_settings(
    SIGNUP_NOTIFY_DRIVER="log",
    SIGNUP_FAILURE_ALERT_RECIPIENTS=[],
    SIGNUP_PIPELINE_MAX_RETRIES=3,
    SIGNUP_BACKOFF_FACTOR=2.0,
)
class RunSignupSubmissionTaskTests(TestCase):
    def _submit(self, **kwargs):
        fields = {"submission_id": "sub-1", "email": "a@b.com", "password": "secret1"}
        fields.update(kwargs)
        return SignupSubmission.objects.create(**fields)

    def test_completed_run_deletes_submission(self):
        self._submit(trace_id="trace-1")

        result = run_signup_submission_task(submission_id="sub-1")

        self.assertEqual(result["status"], "COMPLETED")
        self.assertEqual(result["trace_id"], "trace-1")
        self.assertNotIn("secret1", str(result))
        self.assertEqual(PipelineRun.objects.get().source, "http")
        self.assertFalse(SignupSubmission.objects.exists())

    def test_input_error_deletes_submission(self):
        self._submit(password="123")

        result = run_signup_submission_task(submission_id="sub-1")

        self.assertEqual(result["failure"]["error_kind"], "WeakPassword")
        self.assertFalse(SignupSubmission.objects.exists())

    def test_retry_carries_only_submission_id(self):
        self._submit()
        with patch(
            "apps.accounts.services.AccountService.create_account",
            side_effect=StoreUnavailableError("down"),
        ):
            with patch.object(
                run_signup_submission_task, "retry", side_effect=Retry()
            ) as mock_retry:
                with self.assertRaises(Retry):
                    run_signup_submission_task(submission_id="sub-1")

        kwargs = mock_retry.call_args.kwargs
        self.assertEqual(kwargs["kwargs"], {"submission_id": "sub-1"})
        self.assertEqual(kwargs["countdown"], 2.0)

        submission = SignupSubmission.objects.get()
        self.assertEqual(submission.trace_id, PipelineRun.objects.get().trace_id)

    def test_retries_exhausted_deletes_submission(self):
        self._submit()
        with patch(
            "apps.accounts.services.AccountService.create_account",
            side_effect=StoreUnavailableError("down"),
        ):
            result = run_signup_submission_task.apply(
                kwargs={"submission_id": "sub-1"}, retries=3
            ).get()

        self.assertEqual(result["failure"]["error_kind"], "StoreUnavailable")
        self.assertFalse(SignupSubmission.objects.exists())

    def test_unknown_submission(self):
        with self.assertLogs("apps.orchestration.tasks", level="WARNING"):
            result = run_signup_submission_task(submission_id="missing")

        self.assertEqual(result["status"], "FAILED")
        self.assertEqual(result["error"], "Unknown signup submission")
