"""Celery tasks run by the worker."""

import logging
import smtplib

from account_engine.adapters.smtp import get_mailer
from account_engine.config.settings import get_settings

from .celery_app import celery_app

logger = logging.getLogger(__name__)

SEND_OTP_EMAIL = "account_engine.adapters.queue.tasks.send_otp_email"


@celery_app.task(
    bind=True,
    name=SEND_OTP_EMAIL,
    max_retries=3,
    default_retry_delay=30,
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
)
def send_otp_email(self, to: str, name: str, code: str, purpose: str) -> None:
    """
    Deliver an OTP email through the configured mailer.

    Args:
        to: Recipient email address
        name: Recipient display name
        code: 6-digit OTP
        purpose: EMAIL_VERIFICATION or PASSWORD_RESET
    """
    logger.info("Delivering %s email to %s (attempt %d)", purpose, to, self.request.retries + 1)
    get_mailer(get_settings()).send_otp(to, name, code, purpose)
