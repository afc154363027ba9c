"""
Console mailer adapter - Implements Mailer protocol.

This module provides a console-based implementation of the domain's
mailer port, logging OTP emails for development and demo purposes.
"""

import logging

from .content import render_otp_email

logger = logging.getLogger(__name__)


class ConsoleMailer:
    """
    Implements Mailer protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - logs OTP codes instead of sending mail.
    """

    def send_otp(self, to: str, name: str, code: str, purpose: str) -> None:
        """
        Log the OTP email (simulates email delivery).

        The code is logged at INFO level to be visible in docker-compose logs.

        Args:
            to: Recipient email address
            name: Recipient display name
            code: 6-digit OTP
            purpose: EMAIL_VERIFICATION or PASSWORD_RESET
        """
        content = render_otp_email(name, code, purpose)
        logger.info("[MAILER] To: %s | Subject: %s | OTP: %s", to, content.subject, code)
