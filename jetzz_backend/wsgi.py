"""
WSGI entry point for the JETZZ backend.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "jetzz_backend.settings.dev")

application = get_wsgi_application()
