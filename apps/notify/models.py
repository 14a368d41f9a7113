"""
Notification models.

NotificationLog records every dispatched email. Rows written with an
idempotency key make repeated dispatches of the same request detectable.
"""

from django.db import models


class NotificationKind(models.TextChoices):
    """What a notification was sent for."""

    VERIFICATION = "verification", "Verification"
    FAILURE_ALERT = "failure_alert", "Failure alert"


class NotificationLog(models.Model):
    """A dispatched notification."""

    kind = models.CharField(
        max_length=32,
        choices=NotificationKind.choices,
        db_index=True,
    )
    idempotency_key = models.CharField(
        max_length=160,
        unique=True,
        null=True,
        blank=True,
        help_text="Key of the request that triggered this notification.",
    )
    recipient = models.CharField(max_length=254, db_index=True)
    account_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    driver = models.CharField(max_length=50)
    message_id = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.kind} -> {self.recipient} via {self.driver}"
