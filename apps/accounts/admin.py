"""Admin configuration for account models."""

from django.contrib import admin
from django_object_actions import DjangoObjectActions
from django_object_actions import action as object_action

from apps.accounts.models import Account
from apps.accounts.services import AccountService


@admin.register(Account)
class AccountAdmin(DjangoObjectActions, admin.ModelAdmin):
    """Admin for Account model."""

    list_display = ["email", "account_id", "is_active", "created_at"]
    list_filter = ["is_active", "compensated"]
    search_fields = ["email", "account_id"]
    readonly_fields = [
        "account_id",
        "email",
        "idempotency_key",
        "created_at",
        "deactivated_at",
        "deactivation_reason",
        "compensated",
    ]
    exclude = ["password"]
    actions = ["deactivate_selected"]
    change_actions = ["deactivate"]

    def has_add_permission(self, request):
        return False

    @admin.action(description="Deactivate selected accounts")
    def deactivate_selected(self, request, queryset):
        service = AccountService()
        count = 0
        for account in queryset.filter(is_active=True):
            service.deactivate_account(account.account_id, reason="Deactivated via admin")
            count += 1
        self.message_user(request, f"{count} account(s) deactivated.")

    @object_action(label="Deactivate", description="Deactivate this account")
    def deactivate(self, request, obj):
        if obj.is_active:
            AccountService().deactivate_account(obj.account_id, reason="Deactivated via admin")
            self.message_user(request, f"Account '{obj.email}' deactivated.")
        else:
            self.message_user(request, "Account is already inactive.", level="warning")
