"""
Celery dispatcher adapter - Implements NotificationDispatcher protocol.

Enqueueing is fire-and-forget: the request path never waits for the
email to be delivered, only for the broker to accept the message.
"""

import logging

from celery import Task

from .celery_app import DEFAULT_QUEUE

logger = logging.getLogger(__name__)


class CeleryNotificationDispatcher:
    """
    Implements NotificationDispatcher protocol via a Celery task.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Broker errors propagate; the domain maps them to DispatchFailed.
    """

    def __init__(self, task: Task) -> None:
        self._task = task

    def enqueue_otp_email(self, to: str, name: str, code: str, purpose: str) -> None:
        self._task.apply_async(
            kwargs={"to": to, "name": name, "code": code, "purpose": purpose},
            queue=DEFAULT_QUEUE,
            retry=False,
        )
        logger.info("Queued %s email for %s", purpose, to)
