"""
Celery configuration for the Django application.

Celery carries the realtime fan-out off the request path: chat services
schedule chat.tasks.fan_out_event with transaction.on_commit, and a worker
publishes the event to each recipient's channel group.

Redis is both the message broker and result backend. Tasks are
auto-discovered from all installed Django apps. Set
CELERY_TASK_ALWAYS_EAGER=True to run tasks inline (tests, local dev).

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
