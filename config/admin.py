"""Custom admin site for the signup pipeline console."""

from datetime import timedelta

from django.contrib.admin import AdminSite
from django.db.models import Count, Q
from django.utils import timezone


class SignupAdminSite(AdminSite):
    site_header = "Signup Pipeline"
    site_title = "Signup Pipeline"
    index_title = "Dashboard"
    index_template = "admin/dashboard.html"

    def index(self, request, extra_context=None):
        extra_context = extra_context or {}
        extra_context.update(self._get_dashboard_context())
        return super().index(request, extra_context=extra_context)

    def _get_dashboard_context(self):
        from apps.accounts.models import Account
        from apps.orchestration.models import FailureLog, PipelineRun, PipelineState

        now = timezone.now()
        last_24h = now - timedelta(hours=24)

        runs = PipelineRun.objects.filter(created_at__gte=last_24h).aggregate(
            total=Count("id"),
            completed=Count("id", filter=Q(state=PipelineState.COMPLETED)),
            failed=Count("id", filter=Q(state=PipelineState.FAILED)),
        )

        failures_by_kind = list(
            FailureLog.objects.filter(created_at__gte=last_24h)
            .values("error_kind")
            .annotate(count=Count("id"))
            .order_by("-count")
        )

        accounts = Account.objects.aggregate(
            total=Count("id"),
            active=Count("id", filter=Q(is_active=True)),
            created_24h=Count("id", filter=Q(created_at__gte=last_24h)),
        )

        return {
            "pipeline_runs_24h": runs,
            "failures_by_kind": failures_by_kind,
            "accounts": accounts,
        }
