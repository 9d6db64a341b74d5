# flake8: noqa
"""
Development settings: local SQLite (or the docker-compose PostgreSQL when
DB_HOST is set), permissive CORS for the Vite dev server, DEBUG logging to
a rotating file and per-request query counting.
"""

import logging

from .base import *
from .utils import load_environment_config, rotating_file_handler, route_loggers

config = load_environment_config("development")

ENVIRONMENT = "development"

DEBUG = True
SECRET_KEY = config("SECRET_KEY", default="django-insecure-dev-key-change-in-production")
ALLOWED_HOSTS = ["localhost", "127.0.0.1", "0.0.0.0"]

# Init data captured from a real client stays usable while debugging
TELEGRAM_BOT_TOKEN = config("TELEGRAM_BOT_TOKEN", default="")
TELEGRAM_AUTH_MAX_AGE = config("TELEGRAM_AUTH_MAX_AGE", default=0, cast=int)

CORS_ALLOWED_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173"]
CORS_ALLOW_ALL_ORIGINS = True

# =============================================================================
# DATABASE
# =============================================================================

if config("DB_HOST", default=""):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": config("POSTGRES_DB"),
            "USER": config("POSTGRES_USER"),
            "PASSWORD": config("POSTGRES_PASSWORD"),
            "HOST": config("DB_HOST"),
            "PORT": config("DB_PORT", default="5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

# =============================================================================
# LOGGING & QUERY MONITORING
# =============================================================================

LOG_DIR = BASE_DIR / "logs"
os.makedirs(LOG_DIR, exist_ok=True)

LOGGING["handlers"]["development_file"] = rotating_file_handler(
    LOG_DIR / "django_dev.log", "DEBUG", "structured", max_mb=10, backups=5
)
route_loggers(
    LOGGING,
    ["django", "users", "budget", "core"],
    ["console", "development_file"],
    "DEBUG",
)
# "DEBUG" prints every SQL statement
LOGGING["loggers"]["django.db.backends"]["level"] = config(
    "DB_QUERY_LOGGING_LEVEL", default="INFO"
)

MIDDLEWARE.insert(
    MIDDLEWARE.index("django.middleware.security.SecurityMiddleware") + 1,
    "core.middleware.QueryCountMiddleware",
)

logging.getLogger(__name__).info(
    "Development environment initialized",
    extra={
        "environment": ENVIRONMENT,
        "database_engine": DATABASES["default"]["ENGINE"],
        "category_storage": BUDGET_CATEGORY_STORAGE,
        "action": "environment_startup",
        "component": "settings",
    },
)
