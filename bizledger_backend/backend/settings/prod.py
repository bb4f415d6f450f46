# backend/settings/prod.py
"""
Production settings for the ledger API.

Startup fails unless the secret key, hosts, Postgres URL and https
origins are all provided. The API itself is JWT-only; the session and
CSRF cookies only back the admin site.
"""

from __future__ import annotations

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F403
from .base import BASE_DIR, MIDDLEWARE, env  # explicit for Ruff (F405)

DEBUG = False


def _required(name, message):
    value = (env(name, default="") or "").strip()
    if not value:
        raise ImproperlyConfigured(message)
    return value


def _https_origins(name):
    origins = env.list(name, default=[])
    if not origins:
        raise ImproperlyConfigured(f"{name} must be set in production.")
    for origin in origins:
        if not origin.startswith("https://") or "localhost" in origin or "127.0.0.1" in origin:
            raise ImproperlyConfigured(f"{name} entry {origin!r} must be a public https:// origin.")
    return origins


# ----------------------------
# Secrets / hosts
# ----------------------------
SECRET_KEY = _required("SECRET_KEY", "SECRET_KEY must be set to a strong value in production.")
if SECRET_KEY == "dev-insecure-change-me":
    raise ImproperlyConfigured("SECRET_KEY is still the development placeholder.")

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])
if not ALLOWED_HOSTS:
    raise ImproperlyConfigured("ALLOWED_HOSTS must be set in production.")

# ----------------------------
# Database: Postgres only (row locks on accounts need it)
# ----------------------------
if _required("DATABASE_URL", "DATABASE_URL must be set in production (Postgres).").startswith("sqlite"):
    raise ImproperlyConfigured("Refusing to run the ledger on SQLite in production.")

DATABASES = {"default": env.db("DATABASE_URL")}
DATABASES["default"]["CONN_MAX_AGE"] = env.int("DB_CONN_MAX_AGE", default=60)

# ----------------------------
# Static files (admin + API schema UI) via WhiteNoise
# ----------------------------
STATIC_ROOT = env("STATIC_ROOT", default=str(BASE_DIR / "staticfiles"))
MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# ----------------------------
# TLS behind a proxy
# ----------------------------
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)
SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", default=3600)

SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
X_FRAME_OPTIONS = "DENY"

# ----------------------------
# CORS / CSRF
# ----------------------------
CORS_ALLOWED_ORIGINS = _https_origins("CORS_ALLOWED_ORIGINS")
CSRF_TRUSTED_ORIGINS = _https_origins("CSRF_TRUSTED_ORIGINS")
CORS_ALLOW_CREDENTIALS = False
