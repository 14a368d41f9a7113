"""URL configuration for the orchestration app."""

from django.urls import path

from apps.orchestration.views import RunListView, RunStatusView, SignupView

app_name = "orchestration"

urlpatterns = [
    # Signup endpoints
    path("", SignupView.as_view(), name="signup"),
    path("async/", SignupView.as_view(), {"mode": "async"}, name="signup-async"),
    # Run status/listing endpoints
    path("runs/", RunListView.as_view(), name="run-list"),
    path("runs/<str:run_id>/", RunStatusView.as_view(), name="run-status"),
]
