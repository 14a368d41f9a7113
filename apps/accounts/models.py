"""
Models for the accounts app.

An Account is written once by the signup pipeline and never mutated by it
afterwards. Deactivation (compensation or admin) is the only later change,
and a compensated account is reactivated when its signup request is replayed.
"""

from django.db import models
from django.utils import timezone


class Account(models.Model):
    """A registered user account."""

    account_id = models.CharField(
        max_length=64,
        unique=True,
        db_index=True,
        help_text="Opaque, randomly generated account identifier.",
    )
    email = models.EmailField(
        max_length=254,
        unique=True,
        help_text="Normalized email address; one account per address.",
    )
    password = models.CharField(
        max_length=128,
        help_text="Hashed password (Django password hasher format).",
    )
    idempotency_key = models.CharField(
        max_length=128,
        unique=True,
        null=True,
        blank=True,
        help_text="Key of the signup request that created this account.",
    )

    is_active = models.BooleanField(default=True, db_index=True)
    deactivated_at = models.DateTimeField(null=True, blank=True)
    deactivation_reason = models.CharField(max_length=255, blank=True, default="")
    compensated = models.BooleanField(
        default=False,
        help_text="Deactivated by the signup pipeline after a later stage failed.",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.email} ({self.account_id})"

    def deactivate(self, reason: str = "", compensated: bool = False):
        """Mark the account inactive."""
        self.is_active = False
        self.deactivated_at = timezone.now()
        self.deactivation_reason = reason[:255]
        self.compensated = compensated
        self.save(
            update_fields=["is_active", "deactivated_at", "deactivation_reason", "compensated"]
        )

    def reactivate(self):
        self.is_active = True
        self.deactivated_at = None
        self.deactivation_reason = ""
        self.compensated = False
        self.save(
            update_fields=["is_active", "deactivated_at", "deactivation_reason", "compensated"]
        )
