"""Custom Django admin app configuration."""

from django.contrib.admin.apps import AdminConfig


class SignupAdminConfig(AdminConfig):
    default_site = "config.admin.SignupAdminSite"
