"""Shared test fixtures for orchestration app."""

import pytest

from apps.orchestration.signals import reset_backend


@pytest.fixture(autouse=True)
def fresh_monitoring_backend():
    """Each test resolves SIGNUP_METRICS_BACKEND from its own settings."""
    reset_backend()
    yield
    reset_backend()


@pytest.fixture
def signup_payload():
    return {"email": "a@b.com", "password": "secret1"}
