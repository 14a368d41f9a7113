"""Celery application bootstrap for the signup service.

Every pipeline stage is exposed as its own task so an external trigger can
invoke them one at a time, and the whole pipeline is exposed as
run_signup_task:
validate → create account → send verification → (notify failure)

Run workers with something like:
- celery -A config worker -l info

Broker/result backend are configured via Django settings (CELERY_* keys in
config/settings.py).
"""

from __future__ import annotations

import os

from celery import Celery

from config.env import load_env

load_env()

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("signup-pipeline")

app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
