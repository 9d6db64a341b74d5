# flake8: noqa
"""
Production settings: PostgreSQL, HTTPS-only cookies behind the proxy,
WhiteNoise for the admin's static files and JSON logs split by concern.

Every secret comes from .env.production or the process environment; a
missing one stops the process at import time.
"""

import logging

from .base import *
from .utils import load_environment_config, rotating_file_handler, route_loggers


def _csv(value):
    return [item.strip() for item in value.split(",") if item.strip()]


config = load_environment_config("production")

ENVIRONMENT = "production"

DEBUG = False
SECRET_KEY = config("SECRET_KEY")
ALLOWED_HOSTS = config("ALLOWED_HOSTS", cast=_csv)

TELEGRAM_BOT_TOKEN = config("TELEGRAM_BOT_TOKEN")
TELEGRAM_BOT_USERNAME = config("TELEGRAM_BOT_USERNAME")

# The Mini App is served from its own origin inside Telegram's web view
CORS_ALLOWED_ORIGINS = config("CORS_ALLOWED_ORIGINS", default="https://web.telegram.org", cast=_csv)
CORS_ALLOW_ALL_ORIGINS = False

SECURE_SSL_REDIRECT = True
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_CONTENT_TYPE_NOSNIFF = True
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": config("POSTGRES_DB"),
        "USER": config("POSTGRES_USER"),
        "PASSWORD": config("POSTGRES_PASSWORD"),
        "HOST": config("DB_HOST"),
        "PORT": config("DB_PORT", default="5432"),
        "CONN_MAX_AGE": 60,
        "OPTIONS": {"connect_timeout": 5},
    }
}

# =============================================================================
# LOGGING
# =============================================================================

LOG_DIR = Path(config("LOG_DIR", default="/var/log/django"))
os.makedirs(LOG_DIR, exist_ok=True)

LOGGING["handlers"].update(
    {
        "production_file": rotating_file_handler(LOG_DIR / "production.log", "INFO", "json", max_mb=100),
        "production_errors": rotating_file_handler(LOG_DIR / "errors.log", "ERROR", "json", max_mb=50),
        "production_security": rotating_file_handler(LOG_DIR / "security.log", "WARNING", "json", max_mb=50),
    }
)
route_loggers(
    LOGGING,
    ["django", "budget", "core"],
    ["console", "production_file", "production_errors"],
    "INFO",
)
# Rejected init data and denied space access are security events
route_loggers(
    LOGGING,
    ["users"],
    ["console", "production_file", "production_errors", "production_security"],
    "INFO",
)
route_loggers(LOGGING, ["django.security"], ["production_security"], "WARNING")
LOGGING["loggers"]["django.db.backends"]["level"] = "ERROR"

MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")

logging.getLogger(__name__).info(
    "Production environment initialized",
    extra={
        "environment": ENVIRONMENT,
        "allowed_hosts": ALLOWED_HOSTS,
        "action": "environment_startup",
        "component": "settings",
    },
)
