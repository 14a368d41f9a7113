"""Admin configuration for notify models."""

from django.contrib import admin

from apps.notify.models import NotificationLog


@admin.register(NotificationLog)
class NotificationLogAdmin(admin.ModelAdmin):
    """Read-only admin for the dispatch log."""

    list_display = ["kind", "recipient", "driver", "account_id", "created_at"]
    list_filter = ["kind", "driver"]
    search_fields = ["recipient", "account_id", "message_id"]
    readonly_fields = [
        "kind",
        "idempotency_key",
        "recipient",
        "account_id",
        "driver",
        "message_id",
        "created_at",
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
