"""Notification services.

Builds account emails from templates and hands them to the configured
driver. Used by the verification and failure stages of the signup pipeline.

Driver and configuration resolution:
- driver name: constructor argument, else settings.SIGNUP_NOTIFY_DRIVER ("log")
- config: constructor argument, else settings.SIGNUP_EMAIL
- timeout: constructor argument, else settings.SIGNUP_NOTIFY_TIMEOUT_SECONDS
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from django.conf import settings
from django.db import DatabaseError, transaction

from apps.notify.drivers import NotificationMessage, get_driver
from apps.notify.exceptions import DispatchUnavailableError
from apps.notify.models import NotificationKind, NotificationLog
from apps.notify.templating import render_template

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "Verify your email address"
FAILURE_ALERT_SUBJECT = "Signup pipeline failure"


@dataclass
class DispatchResult:
    """Outcome of a successful dispatch."""

    driver: str
    message_id: str = ""
    replayed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class NotificationService:
    """
    Sends verification emails and failure alerts.

    Usage:
        service = NotificationService()
        result = service.send_verification("user@example.com", account_id)
    """

    def __init__(
        self,
        driver_name: str | None = None,
        config: dict[str, Any] | None = None,
        timeout: float | None = None,
    ):
        self.driver_name = driver_name or getattr(settings, "SIGNUP_NOTIFY_DRIVER", "log")
        self.config = dict(config if config is not None else getattr(settings, "SIGNUP_EMAIL", {}))
        self.timeout = (
            timeout
            if timeout is not None
            else float(getattr(settings, "SIGNUP_NOTIFY_TIMEOUT_SECONDS", 10.0))
        )
        self.config["timeout"] = self.timeout

    def send_verification(
        self,
        email: str,
        account_id: str,
        idempotency_key: str | None = None,
    ) -> DispatchResult:
        """
        Send the verification email for a new account.

        With an idempotency key, a previous dispatch for the same key is
        returned (replayed=True) and nothing is sent.

        Raises:
            DispatchUnavailableError: The outbound channel could not take the message.
        """
        log_key = f"verification:{idempotency_key}" if idempotency_key else None

        if log_key:
            previous = self._find_log(log_key)
            if previous is not None:
                logger.info(
                    f"Verification already sent to {previous.recipient}, skipping",
                    extra={"account_id": account_id},
                )
                return DispatchResult(
                    driver=previous.driver, message_id=previous.message_id, replayed=True
                )

        body = render_template("verification_email.txt", {"email": email, "account_id": account_id})
        message = NotificationMessage(
            subject=VERIFICATION_SUBJECT,
            body=body,
            recipients=[email],
            severity="info",
            tags={"account_id": account_id},
        )

        result = self._dispatch(message)
        self._record(NotificationKind.VERIFICATION, log_key, email, account_id, result)
        return result

    def send_failure_alert(
        self,
        error_kind: str,
        cause: str,
        run_id: str = "",
        trace_id: str = "",
        recipients: list[str] | None = None,
    ) -> DispatchResult | None:
        """
        Alert operators about a failed pipeline run.

        Returns None when no alert recipients are configured.

        Raises:
            DispatchUnavailableError: The outbound channel could not take the message.
        """
        if recipients is None:
            recipients = list(getattr(settings, "SIGNUP_FAILURE_ALERT_RECIPIENTS", []))
        if not recipients:
            return None

        body = render_template(
            "failure_alert.txt",
            {"error_kind": error_kind, "cause": cause, "run_id": run_id, "trace_id": trace_id},
        )
        message = NotificationMessage(
            subject=f"{FAILURE_ALERT_SUBJECT}: {error_kind}",
            body=body,
            recipients=recipients,
            severity="warning",
            tags={"run_id": run_id, "trace_id": trace_id},
        )

        result = self._dispatch(message)
        self._record(NotificationKind.FAILURE_ALERT, None, ", ".join(recipients), "", result)
        return result

    def _dispatch(self, message: NotificationMessage) -> DispatchResult:
        try:
            driver = get_driver(self.driver_name)
        except KeyError as e:
            raise DispatchUnavailableError(str(e), driver=self.driver_name) from e

        if not driver.validate_config(self.config):
            raise DispatchUnavailableError(
                f"Invalid configuration for notify driver: {self.driver_name}",
                driver=self.driver_name,
            )

        result = driver.send(message, self.config)
        if not result.get("success"):
            raise DispatchUnavailableError(
                result.get("error") or "Notification dispatch failed",
                driver=self.driver_name,
            )

        return DispatchResult(driver=self.driver_name, message_id=result.get("message_id", ""))

    def _find_log(self, log_key: str) -> NotificationLog | None:
        try:
            return NotificationLog.objects.filter(idempotency_key=log_key).first()
        except DatabaseError as e:
            # Without the log we cannot tell whether this is a repeat; refuse to send.
            raise DispatchUnavailableError(f"Dispatch log unavailable: {e}") from e

    def _record(
        self,
        kind: str,
        log_key: str | None,
        recipient: str,
        account_id: str,
        result: DispatchResult,
    ) -> None:
        # The message is already out; a failed log write must not fail the send.
        try:
            with transaction.atomic():
                NotificationLog.objects.create(
                    kind=kind,
                    idempotency_key=log_key,
                    recipient=recipient[:254],
                    account_id=account_id,
                    driver=result.driver,
                    message_id=result.message_id,
                )
        except DatabaseError as e:
            logger.warning(f"Could not record {kind} notification for {recipient}: {e}")
