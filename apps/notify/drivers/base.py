"""Base driver and data structures for notification delivery.

Drivers hand a rendered message to an outbound channel (SMTP, logger) and
normalize the result. A driver never raises for delivery problems; it returns
a result dict with success False and an error string.

Public API:
- NotificationMessage
- BaseNotifyDriver
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class NotificationMessage:
    """Standardized notification message format that all drivers handle."""

    subject: str
    body: str
    recipients: list[str]
    severity: str = "info"  # "critical", "warning", "info", "success"
    tags: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.severity = (self.severity or "").lower()
        if self.severity not in ("critical", "warning", "info", "success"):
            self.severity = "info"
        self.recipients = [r for r in self.recipients if r]


class BaseNotifyDriver(ABC):
    """Abstract base class for notification delivery drivers."""

    name: str = "base"

    PRIORITY_MAP = {
        "critical": "1",
        "warning": "2",
        "info": "3",
        "success": "3",
    }

    @abstractmethod
    def validate_config(self, config: dict[str, Any]) -> bool:
        """Validate that the driver configuration is valid."""

    @abstractmethod
    def send(self, message: NotificationMessage, config: dict[str, Any]) -> dict[str, Any]:
        """Send a notification and return result metadata.

        Args:
            message: The notification message to send
            config: Driver-specific configuration

        Returns:
            Dictionary with keys like:
            - success: bool
            - message_id: str (if available)
            - error: str (if failed)
            - metadata: dict (any additional info)
        """

    def _handle_exception(self, e: Exception, service_name: str, action: str) -> dict[str, Any]:
        """Handle general exceptions consistently across drivers."""
        logger.warning(f"Failed to {action} {service_name}: {e}")
        return {"success": False, "error": f"Failed to {action} {service_name}: {e}"}
