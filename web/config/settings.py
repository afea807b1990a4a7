"""Django settings for the storefront integrations project.

Every value is read from the environment with a development default.
PostgreSQL is used when ``DATABASE_HOST`` is set, SQLite otherwise.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-insecure-change-me")
DEBUG = os.getenv("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = [h for h in os.getenv("DJANGO_ALLOWED_HOSTS", "*").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "rest_framework",
    "apps.checkout.apps.CheckoutConfig",
]

MIDDLEWARE = [
    "gateway.middleware.RequestIdMiddleware",
    "gateway.middleware.ApiSizeLimitMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

if os.getenv("DATABASE_HOST"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("DATABASE_NAME", "storefront"),
            "USER": os.getenv("DATABASE_USER", "postgres"),
            "PASSWORD": os.getenv("DATABASE_PASSWORD", "password"),
            "HOST": os.getenv("DATABASE_HOST"),
            "PORT": int(os.getenv("DATABASE_PORT", "5432")),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.getenv("SQLITE_PATH", str(BASE_DIR / "db.sqlite3")),
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
USE_TZ = True
TIME_ZONE = "UTC"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": ["rest_framework.parsers.JSONParser"],
}

# ---- Outbound HTTP ----
HTTP_TIMEOUT_SECS = float(os.getenv("HTTP_TIMEOUT_SECS", "10"))

# ---- Payments ----
PAYMENT_METHOD_HANDLERS = [c.strip() for c in os.getenv("PAYMENT_METHOD_HANDLERS", "dummy,paypal").split(",") if c.strip()]
BRAINTREE_ENVIRONMENT = os.getenv("BRAINTREE_ENVIRONMENT", "Sandbox")
BRAINTREE_MERCHANT_ID = os.getenv("BRAINTREE_MERCHANT_ID", "")
BRAINTREE_PUBLIC_KEY = os.getenv("BRAINTREE_PUBLIC_KEY", "")
BRAINTREE_PRIVATE_KEY = os.getenv("BRAINTREE_PRIVATE_KEY", "")
PAYPAL_CAPTURE_MODE = os.getenv("PAYPAL_CAPTURE_MODE", "immediate")

# ---- Automation webhook ----
ORDER_WEBHOOK_ENABLED = os.getenv("ORDER_WEBHOOK_ENABLED", "1") == "1"
# deliver order transition signals on a worker pool instead of the request thread
ORDER_EVENTS_IN_BACKGROUND = os.getenv("ORDER_EVENTS_IN_BACKGROUND", "1") == "1"
AUTOMATION_BASE_URL = os.getenv("AUTOMATION_BASE_URL", "http://localhost:3002")
AUTOMATION_SECRET_KEY = os.getenv("AUTOMATION_SECRET_KEY", "change-me")
AUTOMATION_TRIGGER_STATES = os.getenv("AUTOMATION_TRIGGER_STATES", "PaymentSettled")
AUTOMATION_TIMEOUT_SECS = float(os.getenv("AUTOMATION_TIMEOUT_SECS", "5"))

# ---- Bootstrap ----
STATIC_ROOT_DIR = Path(os.getenv("STATIC_ROOT_DIR", str(BASE_DIR.parent / "static")))
BOOTSTRAP_PROBE_TABLE = os.getenv("BOOTSTRAP_PROBE_TABLE", "checkout_channel")
REQUIRE_VERIFICATION = os.getenv("REQUIRE_VERIFICATION", "1") == "1"
SUPERADMIN_USERNAME = os.getenv("SUPERADMIN_USERNAME", "superadmin")
SUPERADMIN_PASSWORD = os.getenv("SUPERADMIN_PASSWORD", "superadmin")

# ---- Logging (JSON, with request id) ----
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "request_id": {"()": "gateway.logging_filters.RequestIdFilter"},
    },
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "filters": ["request_id"],
        },
    },
    "root": {"handlers": ["console"], "level": os.getenv("LOG_LEVEL", "INFO")},
}
