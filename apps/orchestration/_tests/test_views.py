"""Tests for orchestration views."""

import json
from unittest.mock import MagicMock, patch

from django.db import DatabaseError
from django.test import Client, SimpleTestCase, TestCase, override_settings

from apps.accounts.exceptions import StoreUnavailableError
from apps.orchestration.models import PipelineRun, PipelineState, SignupSubmission
from apps.orchestration.views import failure_status


def _post(client, url, body):
    return client.post(url, data=json.dumps(body), content_type="application/json")


class FailureStatusTests(SimpleTestCase):
    def test_status_per_category(self):
        assert failure_status("MissingField") == 400
        assert failure_status("InvalidFormat") == 400
        assert failure_status("WeakPassword") == 400
        assert failure_status("DuplicateAccount") == 409
        assert failure_status("StoreUnavailable") == 503
        assert failure_status("DispatchUnavailable") == 503
        assert failure_status("UnexpectedError") == 500


@override_settings(SIGNUP_NOTIFY_DRIVER="log", SIGNUP_FAILURE_ALERT_RECIPIENTS=[])
class TestSignupView(TestCase):
    def setUp(self):
        self.client = Client()

    def test_signup_completed(self):
        response = _post(self.client, "/signup/", {"email": "a@b.com", "password": "secret1"})

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "COMPLETED"
        assert data["account"]["account_id"]
        assert data["notification"]["message"] == "Verification email sent"
        assert "secret1" not in response.content.decode()

    def test_signup_input_error(self):
        response = _post(self.client, "/signup/", {"email": "", "password": "secret1"})

        assert response.status_code == 400
        data = response.json()
        assert data["failure"]["error_kind"] == "MissingField"
        assert data["failure"]["cause"] == "validate: Email and Password are required."

    def test_signup_conflict(self):
        _post(self.client, "/signup/", {"email": "a@b.com", "password": "secret1"})
        response = _post(self.client, "/signup/", {"email": "a@b.com", "password": "secret2"})

        assert response.status_code == 409
        assert response.json()["failure"]["error_kind"] == "DuplicateAccount"

    def test_signup_resource_error(self):
        with patch(
            "apps.accounts.services.AccountService.create_account",
            side_effect=StoreUnavailableError("down"),
        ):
            response = _post(self.client, "/signup/", {"email": "a@b.com", "password": "secret1"})

        assert response.status_code == 503
        assert response.json()["retryable"] is True

    def test_signup_passes_trace_id(self):
        response = _post(
            self.client,
            "/signup/",
            {"email": "a@b.com", "password": "secret1", "trace_id": "trace-123"},
        )
        assert response.json()["trace_id"] == "trace-123"
        assert PipelineRun.objects.get().source == "http"

    def test_invalid_json(self):
        response = self.client.post("/signup/", data="{not json", content_type="application/json")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON body"}

    def test_non_object_body(self):
        response = _post(self.client, "/signup/", ["a@b.com", "secret1"])
        assert response.status_code == 400

    def test_get_not_allowed(self):
        assert self.client.get("/signup/").status_code == 405

    @patch("apps.orchestration.views.run_signup_submission_task")
    def test_signup_async(self, mock_task):
        mock_task.delay.return_value = MagicMock(id="task-1")

        response = _post(
            self.client,
            "/signup/async/",
            {"email": "a@b.com", "password": "secret1", "trace_id": "trace-9"},
        )

        assert response.status_code == 202
        data = response.json()
        assert data["task_id"] == "task-1"

        submission = SignupSubmission.objects.get()
        assert data["submission_id"] == submission.submission_id
        assert submission.email == "a@b.com"
        assert submission.source == "http"
        assert submission.trace_id == "trace-9"
        mock_task.delay.assert_called_once_with(submission_id=submission.submission_id)
        assert "secret1" not in str(mock_task.delay.call_args)

    @patch("apps.orchestration.views.run_signup_submission_task")
    def test_signup_async_store_unavailable(self, mock_task):
        with patch(
            "apps.orchestration.views.SignupSubmission.objects.create",
            side_effect=DatabaseError("down"),
        ):
            response = _post(
                self.client, "/signup/async/", {"email": "a@b.com", "password": "secret1"}
            )

        assert response.status_code == 503
        mock_task.delay.assert_not_called()


@override_settings(SIGNUP_NOTIFY_DRIVER="log", SIGNUP_FAILURE_ALERT_RECIPIENTS=[])
class TestRunViews(TestCase):
    def setUp(self):
        self.client = Client()

    def test_run_status(self):
        created = _post(self.client, "/signup/", {"email": "a@b.com", "password": "secret1"}).json()

        response = self.client.get(f"/signup/runs/{created['run_id']}/")

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == PipelineState.COMPLETED
        assert data["account_id"] == created["account"]["account_id"]
        assert data["failure"] is None
        assert [se["stage"] for se in data["stage_executions"]] == [
            "validate",
            "create_account",
            "send_verification",
        ]

    def test_failed_run_status(self):
        created = _post(self.client, "/signup/", {"email": "bad", "password": "secret1"}).json()

        data = self.client.get(f"/signup/runs/{created['run_id']}/").json()

        assert data["state"] == PipelineState.FAILED
        assert data["failure"]["error_kind"] == "InvalidFormat"
        assert data["stage_executions"][-1]["stage"] == "notify_failure"

    def test_run_status_not_found(self):
        response = self.client.get("/signup/runs/missing/")
        assert response.status_code == 404

    def test_run_list_with_filters(self):
        _post(self.client, "/signup/", {"email": "a@b.com", "password": "secret1"})
        _post(self.client, "/signup/", {"email": "", "password": "secret1"})

        data = self.client.get("/signup/runs/").json()
        assert data["count"] == 2

        failed = self.client.get("/signup/runs/", {"state": "failed"}).json()
        assert failed["count"] == 1
        assert failed["runs"][0]["error_kind"] == "MissingField"

        limited = self.client.get("/signup/runs/", {"limit": "1"}).json()
        assert limited["count"] == 1

    def test_run_list_bad_limit(self):
        response = self.client.get("/signup/runs/", {"limit": "many"})
        assert response.status_code == 400
