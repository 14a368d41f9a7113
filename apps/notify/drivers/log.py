"""Log notification driver.

Writes the message to the application log instead of sending it. Useful for
local development and as the default when no SMTP server is configured.
"""

import logging
import uuid
from typing import Any

from apps.notify.drivers.base import BaseNotifyDriver, NotificationMessage

logger = logging.getLogger(__name__)


class LogNotifyDriver(BaseNotifyDriver):
    """Driver that logs notifications."""

    name = "log"

    def validate_config(self, config: dict[str, Any]) -> bool:
        return True

    def send(self, message: NotificationMessage, config: dict[str, Any]) -> dict[str, Any]:
        if not message.recipients:
            return {"success": False, "error": "No recipients"}

        message_id = str(uuid.uuid4())
        logger.info(
            f"[{message.severity.upper()}] {message.subject} -> {', '.join(message.recipients)}",
            extra={"message_id": message_id, "notification_body": message.body},
        )
        return {
            "success": True,
            "message_id": message_id,
            "metadata": {"to": message.recipients, "subject": message.subject},
        }
