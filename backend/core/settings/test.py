# flake8: noqa
"""
Test settings: in-memory SQLite, fast password hashing, a fixed bot token.
"""

from .base import *

ENVIRONMENT = "test"

DEBUG = False
SECRET_KEY = "django-insecure-test-key"
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

TELEGRAM_BOT_TOKEN = "123456:TEST-BOT-TOKEN"
TELEGRAM_BOT_USERNAME = "test_budget_bot"
TELEGRAM_AUTH_MAX_AGE = 0

BUDGET_CATEGORY_STORAGE = "fk"

for logger_name in ["users", "budget", "core"]:
    LOGGING["loggers"][logger_name]["level"] = "WARNING"
