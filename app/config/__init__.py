# Load the Celery app when Django starts so that @shared_task functions
# (chat.tasks.fan_out_event) bind to it and autodiscovery runs.
from config.celery import app as celery_app

__all__ = ("celery_app",)
