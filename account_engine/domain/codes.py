"""
Verification code and token generation.

Both artifacts come from the secrets module. The OTP and the token are
drawn independently; neither can be derived from the other.
"""

import secrets

OTP_DIGITS = 6
TOKEN_BYTES = 32


def generate_otp() -> str:
    """
    Generate a uniformly random 6-digit code.

    Returns string to preserve leading zeros ("000000" - "999999").
    """
    return f"{secrets.randbelow(10**OTP_DIGITS):0{OTP_DIGITS}d}"


def generate_token() -> str:
    """Generate a 32-byte random token, hex encoded (64 characters)."""
    return secrets.token_hex(TOKEN_BYTES)


def otp_matches(expected: str, submitted: str) -> bool:
    """Constant-time comparison of a stored OTP against a submitted one."""
    return secrets.compare_digest(expected.encode(), submitted.encode())
