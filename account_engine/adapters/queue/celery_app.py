"""
Celery application - background delivery of OTP emails.

The broker is Redis. Every task lands on the "default" queue.
"""

from celery import Celery
from kombu import Queue

from account_engine.config.settings import Settings, get_settings

DEFAULT_QUEUE = "default"


def create_celery_app(settings: Settings) -> Celery:
    """
    Create and configure the Celery application.

    Broker socket timeouts follow enqueue_timeout_seconds so a dead
    broker fails an enqueue instead of blocking the request.
    """
    app = Celery("account_engine", broker=settings.celery_broker_url)

    app.conf.update(
        task_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_ignore_result=True,
        task_queues=(Queue(DEFAULT_QUEUE),),
        task_default_queue=DEFAULT_QUEUE,
        task_always_eager=settings.celery_task_always_eager,
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        worker_prefetch_multiplier=1,
        broker_connection_timeout=settings.enqueue_timeout_seconds,
        broker_transport_options={
            "socket_timeout": settings.enqueue_timeout_seconds,
            "socket_connect_timeout": settings.enqueue_timeout_seconds,
            "max_retries": 0,
        },
    )

    app.autodiscover_tasks(["account_engine.adapters.queue"])
    return app


# Global Celery app instance
celery_app = create_celery_app(get_settings())
