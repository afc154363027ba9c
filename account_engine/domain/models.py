"""
Domain entities - Accounts, verification records and companies.

Plain dataclasses with no persistence concerns. Adapters map them to
rows, cache payloads and API responses.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

MAX_OTP_ATTEMPTS = 3
OTP_TTL = timedelta(minutes=10)


class AccountStatus(str, Enum):
    """
    Account lifecycle states.

    Transitions:
    - PENDING_VERIFICATION -> ACTIVE (successful email verification)
    - any -> SUSPENDED (external administrative action)

    ACTIVE never returns to PENDING_VERIFICATION.
    """

    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class VerificationType(str, Enum):
    """Purpose a verification record was issued for."""

    EMAIL_VERIFICATION = "EMAIL_VERIFICATION"
    PASSWORD_RESET = "PASSWORD_RESET"


class VerifyResult(Enum):
    """
    Result of checking an OTP against a verification record.

    Produced by VerificationRecord.check() in the precedence order
    used -> expired -> attempts -> code.
    """

    SUCCESS = "success"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"
    ATTEMPTS_EXCEEDED = "attempts_exceeded"
    INVALID_CODE = "invalid_code"


@dataclass
class Account:
    id: int
    email: str
    name: str
    status: AccountStatus = AccountStatus.PENDING_VERIFICATION
    password_hash: str | None = None
    phone: str | None = None
    gender: Gender | None = None
    avatar_key: str | None = None
    email_verified_at: datetime | None = None
    last_login_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


@dataclass
class VerificationRecord:
    """
    Single-use token + OTP pair bound to an account for one purpose.

    Records are never deleted by normal flow; they are logically
    invalidated by setting is_used.
    """

    id: int
    account_id: int
    type: VerificationType
    token: str
    otp_code: str
    email: str
    expires_at: datetime
    attempts_used: int = 0
    max_attempts: int = MAX_OTP_ATTEMPTS
    is_used: bool = False
    created_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def is_active(self, now: datetime) -> bool:
        return not self.is_used and not self.is_expired(now)

    def check(self, now: datetime, otp_matches: bool) -> VerifyResult:
        """
        Evaluate the state machine for one submission.

        Args:
            now: Current time (timezone-aware)
            otp_matches: Result of a constant-time comparison against otp_code

        Returns:
            VerifyResult for the first check that fails, or SUCCESS
        """
        if self.is_used:
            return VerifyResult.ALREADY_USED
        if self.is_expired(now):
            return VerifyResult.EXPIRED
        if self.attempts_used >= self.max_attempts:
            return VerifyResult.ATTEMPTS_EXCEEDED
        if not otp_matches:
            return VerifyResult.INVALID_CODE
        return VerifyResult.SUCCESS


@dataclass
class Company:
    id: int
    name: str
    code: str
    address: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


@dataclass
class Membership:
    account_id: int
    company_id: int
    joined_at: datetime


@dataclass
class SessionClaims:
    """Claims carried by a signed session token."""

    user_id: int
    email: str
    status: AccountStatus
    expires_at: int
    issued_at: int | None = None


@dataclass
class Session:
    """An authenticated account together with its signed session token."""

    account: Account
    token: str
    expires_in: int


@dataclass
class Registration:
    """Outcome of a successful registration."""

    account: Account
    verification_token: str
    expires_in: int = field(default=int(OTP_TTL.total_seconds()))
