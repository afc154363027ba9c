"""Background queue adapters (Celery over Redis)."""

from .celery_app import DEFAULT_QUEUE, celery_app, create_celery_app
from .dispatcher import CeleryNotificationDispatcher
from .tasks import send_otp_email

__all__ = [
    "DEFAULT_QUEUE",
    "CeleryNotificationDispatcher",
    "celery_app",
    "create_celery_app",
    "send_otp_email",
]
