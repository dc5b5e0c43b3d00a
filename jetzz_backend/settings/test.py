"""
Test settings for the JETZZ backend.

SQLite database, in-memory cache and mail outbox, eager Celery and no
throttling, so the suite runs without Postgres, Redis or network access.
"""
from .base import *  # noqa

DEBUG = False
SECRET_KEY = "test-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    "DEFAULT_THROTTLE_CLASSES": [],
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

STRIPE_SECRET_KEY = "sk_test_dummy"
STRIPE_WEBHOOK_SECRET = "whsec_test"
STRIPE_PRICE_ID_MONTHLY = "price_monthly"
STRIPE_PRICE_ID_YEARLY = "price_yearly"
OPENAI_API_KEY = "sk-openai-test"
TICKETMASTER_API_KEY = "tm-test"
PEXELS_API_KEY = ""
IMPORT_REQUEST_DELAY_SECONDS = 0
FRONTEND_URL = "https://app.jetzz.test"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"null": {"class": "logging.NullHandler"}},
    "root": {"handlers": ["null"], "level": "WARNING"},
}
