# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS
- In-memory SQLite (fast, isolated)
- Cheap password hashing
- Throttling off so API tests are not rate limited
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, REST_FRAMEWORK

DEBUG = False

SECRET_KEY = "test-only-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

LEDGER_AUDIT_SINK = "audit.services.log_action"
LEDGER_LOCK_ACCOUNTS = True
LEDGER_ALLOW_FUTURE_DATES = True
LEDGER_REFERENCE_PREFIX = "JE"

LOGGING = {
    **LOGGING,
    "loggers": {
        "accounting": {"handlers": ["console"], "level": "ERROR", "propagate": False},
        "audit": {"handlers": ["console"], "level": "ERROR", "propagate": False},
    },
}
