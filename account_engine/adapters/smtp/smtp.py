"""
SMTP mailer adapter - Implements Mailer protocol.

Port 465 uses implicit TLS; any other port uses STARTTLS when the
server offers it.
"""

import logging
import smtplib
import ssl
from email.mime.text import MIMEText

from .content import render_otp_email

logger = logging.getLogger(__name__)


class SmtpMailer:
    """Implements Mailer protocol via smtplib."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        from_name: str = "",
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._from_address = from_address
        self._from_name = from_name
        self._timeout = timeout

    def send_otp(self, to: str, name: str, code: str, purpose: str) -> None:
        content = render_otp_email(name, code, purpose)

        message = MIMEText(content.body, "plain", "utf-8")
        message["Subject"] = content.subject
        message["From"] = (
            f"{self._from_name} <{self._from_address}>" if self._from_name else self._from_address
        )
        message["To"] = to

        context = ssl.create_default_context()
        if self._port == 465:
            with smtplib.SMTP_SSL(
                self._host, self._port, context=context, timeout=self._timeout
            ) as server:
                self._deliver(server, to, message)
        else:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls(context=context)
                    server.ehlo()
                self._deliver(server, to, message)

        logger.info("Sent %s email to %s", purpose, to)

    def _deliver(self, server: smtplib.SMTP, to: str, message: MIMEText) -> None:
        if self._username:
            server.login(self._username, self._password)
        server.sendmail(self._from_address, [to], message.as_string())
