"""
WSGI config for the Django application.

Serves HTTP only; websockets and the realtime channel require the ASGI
entry point in config.asgi.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
