"""
ASGI entry point for the JETZZ backend.

The default settings module is the development configuration; deployments
set ``DJANGO_SETTINGS_MODULE=jetzz_backend.settings.prod``.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "jetzz_backend.settings.dev")

application = get_asgi_application()
