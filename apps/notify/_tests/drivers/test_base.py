"""Tests for BaseNotifyDriver helpers, NotificationMessage and the driver registry."""

import pytest
from django.test import SimpleTestCase

from apps.notify.drivers import DRIVER_REGISTRY, get_driver
from apps.notify.drivers.base import BaseNotifyDriver, NotificationMessage
from apps.notify.drivers.email import EmailNotifyDriver
from apps.notify.drivers.log import LogNotifyDriver


class DummyDriver(BaseNotifyDriver):
    name = "dummy"

    def validate_config(self, config: dict[str, object]) -> bool:
        return True

    def send(self, message: NotificationMessage, config: dict[str, object]) -> dict[str, object]:
        return {"success": True}


class TestNotificationMessage(SimpleTestCase):
    """Tests for NotificationMessage."""

    def test_notification_message_normalization(self):
        msg = NotificationMessage(subject="S", body="B", recipients=["a@b.com"], severity="CRITICAL")
        assert msg.severity == "critical"

        msg2 = NotificationMessage(subject="S", body="B", recipients=["a@b.com"], severity="loud")
        assert msg2.severity == "info"

    def test_empty_recipients_are_dropped(self):
        msg = NotificationMessage(subject="S", body="B", recipients=["", "a@b.com", ""])
        assert msg.recipients == ["a@b.com"]


class TestHandleException(SimpleTestCase):
    def test_handle_exception_returns_failure(self):
        result = DummyDriver()._handle_exception(OSError("down"), "Email", "connect to SMTP")
        assert result["success"] is False
        assert result["error"] == "Failed to connect to SMTP Email: down"


class TestLogDriver(SimpleTestCase):
    def test_log_driver_succeeds(self):
        msg = NotificationMessage(subject="S", body="B", recipients=["a@b.com"])
        with self.assertLogs("apps.notify.drivers.log", level="INFO") as logs:
            result = LogNotifyDriver().send(msg, {})
        assert result["success"] is True
        assert result["message_id"]
        assert "a@b.com" in logs.output[0]

    def test_log_driver_rejects_no_recipients(self):
        msg = NotificationMessage(subject="S", body="B", recipients=[""])
        result = LogNotifyDriver().send(msg, {})
        assert result == {"success": False, "error": "No recipients"}


class TestRegistry(SimpleTestCase):
    def test_registry_contents(self):
        assert set(DRIVER_REGISTRY) == {"email", "log"}

    def test_get_driver(self):
        assert isinstance(get_driver("email"), EmailNotifyDriver)
        assert isinstance(get_driver("log"), LogNotifyDriver)

    def test_get_driver_unknown(self):
        with pytest.raises(KeyError, match="Unknown notify driver: sms"):
            get_driver("sms")
