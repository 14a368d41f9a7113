"""
Management command to list available notification drivers and their requirements.

Usage:
    python manage.py list_notify_drivers
    python manage.py list_notify_drivers --verbose
"""

from django.conf import settings
from django.core.management.base import BaseCommand

from apps.notify.drivers import DRIVER_REGISTRY

DRIVER_INFO = {
    "email": {
        "description": "Send account emails via SMTP",
        "required_config": ["smtp_host", "from_address"],
        "optional_config": ["smtp_port", "use_tls", "use_ssl", "username", "password"],
    },
    "log": {
        "description": "Write account emails to the application log (development)",
        "required_config": [],
        "optional_config": [],
    },
}


class Command(BaseCommand):
    help = "List available notification drivers and their configuration requirements"

    def add_arguments(self, parser):
        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Show detailed configuration requirements",
        )

    def handle(self, *args, **options):
        verbose = options.get("verbose", False)
        active = getattr(settings, "SIGNUP_NOTIFY_DRIVER", "log")

        self.stdout.write(self.style.SUCCESS("Available Notification Drivers"))
        self.stdout.write("-" * 60)

        for name in DRIVER_REGISTRY:
            info = DRIVER_INFO.get(name, {})
            marker = " (active)" if name == active else ""
            self.stdout.write(f"\n{self.style.WARNING(name)}{marker}")
            self.stdout.write(f"  {info.get('description', '')}")

            if verbose:
                required = info.get("required_config", [])
                optional = info.get("optional_config", [])
                if required:
                    self.stdout.write("  Required config:")
                    for key in required:
                        self.stdout.write(f"    - {key}")
                else:
                    self.stdout.write("  Required config: none")
                if optional:
                    self.stdout.write("  Optional config:")
                    for key in optional:
                        self.stdout.write(f"    - {key}")

        self.stdout.write("\n" + "-" * 60)
        self.stdout.write("\nSelect a driver with SIGNUP_NOTIFY_DRIVER=<name>")
