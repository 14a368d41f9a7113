"""Django settings for the signup pipeline project.

All values can be overridden from the environment (see config/env.py).
"""

from __future__ import annotations

from pathlib import Path

from config.env import env_bool, env_float, env_int, env_list, env_str, load_env

BASE_DIR = Path(__file__).resolve().parent.parent

load_env(BASE_DIR)

SECRET_KEY = env_str("DJANGO_SECRET_KEY", "django-insecure-signup-pipeline-dev-key")
DEBUG = env_bool("DJANGO_DEBUG", True)
ALLOWED_HOSTS = env_list("DJANGO_ALLOWED_HOSTS", ["localhost", "127.0.0.1", "testserver"])

INSTALLED_APPS = [
    "config.apps.SignupAdminConfig",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django_object_actions",
    "apps.accounts",
    "apps.notify",
    "apps.orchestration",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "config" / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": env_str("DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": env_str("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": env_str("DB_USER", ""),
        "PASSWORD": env_str("DB_PASSWORD", ""),
        "HOST": env_str("DB_HOST", ""),
        "PORT": env_str("DB_PORT", ""),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

# --- Celery -----------------------------------------------------------------

CELERY_BROKER_URL = env_str("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = env_str("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")
CELERY_TASK_ALWAYS_EAGER = env_bool("CELERY_TASK_ALWAYS_EAGER", False)
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]

# --- Signup pipeline ---------------------------------------------------------

# Whole-pipeline retries performed by run_signup_task for retryable failures.
SIGNUP_PIPELINE_MAX_RETRIES = env_int("SIGNUP_PIPELINE_MAX_RETRIES", 3)
SIGNUP_BACKOFF_FACTOR = env_float("SIGNUP_BACKOFF_FACTOR", 2.0)

SIGNUP_IDEMPOTENCY_ENABLED = env_bool("SIGNUP_IDEMPOTENCY_ENABLED", True)
SIGNUP_COMPENSATE_ON_NOTIFY_FAILURE = env_bool("SIGNUP_COMPENSATE_ON_NOTIFY_FAILURE", False)
SIGNUP_ENVIRONMENT = env_str("SIGNUP_ENVIRONMENT", "development")

SIGNUP_NOTIFY_DRIVER = env_str("SIGNUP_NOTIFY_DRIVER", "log")
SIGNUP_NOTIFY_TIMEOUT_SECONDS = env_float("SIGNUP_NOTIFY_TIMEOUT_SECONDS", 10.0)
SIGNUP_EMAIL = {
    "smtp_host": env_str("SIGNUP_SMTP_HOST", "localhost"),
    "smtp_port": env_int("SIGNUP_SMTP_PORT", 587),
    "use_tls": env_bool("SIGNUP_SMTP_USE_TLS", True),
    "use_ssl": env_bool("SIGNUP_SMTP_USE_SSL", False),
    "username": env_str("SIGNUP_SMTP_USERNAME", ""),
    "password": env_str("SIGNUP_SMTP_PASSWORD", ""),
    "from_address": env_str("SIGNUP_FROM_ADDRESS", "no-reply@example.com"),
}
SIGNUP_FAILURE_ALERT_RECIPIENTS = env_list("SIGNUP_FAILURE_ALERT_RECIPIENTS", [])

# Dotted path to a MonitoringBackend subclass.
SIGNUP_METRICS_BACKEND = env_str(
    "SIGNUP_METRICS_BACKEND", "apps.orchestration.signals.LoggingBackend"
)

# --- Logging ----------------------------------------------------------------

LOG_LEVEL = env_str("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "apps": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "django.db.backends": {
            "level": "WARNING",
        },
    },
}
