"""
Notification drivers for sending account emails.
"""

from apps.notify.drivers.base import BaseNotifyDriver, NotificationMessage
from apps.notify.drivers.email import EmailNotifyDriver
from apps.notify.drivers.log import LogNotifyDriver

__all__ = [
    "NotificationMessage",
    "BaseNotifyDriver",
    "DRIVER_REGISTRY",
    "get_driver",
]

# Registry of available notification drivers
DRIVER_REGISTRY: dict[str, type[BaseNotifyDriver]] = {
    "email": EmailNotifyDriver,
    "log": LogNotifyDriver,
}


def get_driver(name: str) -> BaseNotifyDriver:
    """
    Instantiate a driver by registry name.

    Raises:
        KeyError: Unknown driver name.
    """
    try:
        driver_cls = DRIVER_REGISTRY[name]
    except KeyError:
        raise KeyError(
            f"Unknown notify driver: {name}. Available: {list(DRIVER_REGISTRY.keys())}"
        ) from None
    return driver_cls()
