"""Mail delivery adapters."""

from account_engine.config.settings import Settings

from .console import ConsoleMailer
from .content import OTPEmailContent, render_otp_email
from .smtp import SmtpMailer


def get_mailer(settings: Settings) -> ConsoleMailer | SmtpMailer:
    """Select the mailer named by MAIL_DRIVER."""
    if settings.mail_driver == "smtp":
        return SmtpMailer(
            host=settings.mail_host,
            port=settings.mail_port,
            username=settings.mail_username,
            password=settings.mail_password,
            from_address=settings.mail_from_address,
            from_name=settings.mail_from_name,
        )
    return ConsoleMailer()


__all__ = [
    "ConsoleMailer",
    "OTPEmailContent",
    "SmtpMailer",
    "get_mailer",
    "render_otp_email",
]
