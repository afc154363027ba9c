"""OTP email subject and body rendering."""

from dataclasses import dataclass

from account_engine.domain.models import OTP_TTL, VerificationType

_EXPIRY_MINUTES = int(OTP_TTL.total_seconds() // 60)


@dataclass(frozen=True)
class OTPEmailContent:
    subject: str
    body: str


def render_otp_email(name: str, code: str, purpose: str) -> OTPEmailContent:
    """Build the plain-text email for an OTP of the given purpose."""
    if purpose == VerificationType.PASSWORD_RESET.value:
        subject = "Reset your password"
        action = "reset your password"
    else:
        subject = "Verify your email address"
        action = "verify your email address"

    body = (
        f"Hi {name},\n\n"
        f"Use the code below to {action}:\n\n"
        f"    {code}\n\n"
        f"The code expires in {_EXPIRY_MINUTES} minutes and can be tried at most 3 times.\n"
        "If you did not request this, you can ignore this email.\n"
    )
    return OTPEmailContent(subject=subject, body=body)
