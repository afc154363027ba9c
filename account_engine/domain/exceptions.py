"""
Domain exceptions - Semantic error types for the account engine.

Every exception carries a closed ErrorKind and a stable machine code.
The HTTP layer maps kinds to status codes; callers never branch on
message text.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Closed taxonomy of domain failures."""

    VALIDATION = "VALIDATION"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL = "INTERNAL"


class AccountError(Exception):
    """Base class for account domain errors."""

    kind: ErrorKind = ErrorKind.INTERNAL
    code: str = "INTERNAL_SERVER_ERROR"
    message: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)
        self.detail = detail or self.message


# Conflict


class EmailAlreadyRegistered(AccountError):
    """Email already belongs to an account (including soft-deleted ones)."""

    kind = ErrorKind.CONFLICT
    code = "EMAIL_ALREADY_EXISTS"
    message = "Email already registered"


class EmailAlreadyVerified(AccountError):
    kind = ErrorKind.CONFLICT
    code = "EMAIL_ALREADY_VERIFIED"
    message = "Email already verified"


class CompanyCodeAlreadyExists(AccountError):
    kind = ErrorKind.CONFLICT
    code = "COMPANY_CODE_ALREADY_EXISTS"
    message = "Company code already exists"


class AlreadyCompanyMember(AccountError):
    kind = ErrorKind.CONFLICT
    code = "ALREADY_COMPANY_MEMBER"
    message = "Already a member of this company"


# Not found


class UserNotFound(AccountError):
    kind = ErrorKind.NOT_FOUND
    code = "USER_NOT_FOUND"
    message = "User not found"


class CompanyNotFound(AccountError):
    kind = ErrorKind.NOT_FOUND
    code = "COMPANY_NOT_FOUND"
    message = "Company not found"


class NotCompanyMember(AccountError):
    kind = ErrorKind.NOT_FOUND
    code = "NOT_COMPANY_MEMBER"
    message = "Not a member of this company"


# Unauthorized


class InvalidCredentials(AccountError):
    """Unknown email, missing password hash, or wrong password (indistinguishable)."""

    kind = ErrorKind.UNAUTHORIZED
    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class InvalidSessionToken(AccountError):
    kind = ErrorKind.UNAUTHORIZED
    code = "UNAUTHORIZED"
    message = "Invalid or missing session token"


# Forbidden


class EmailNotVerified(AccountError):
    kind = ErrorKind.FORBIDDEN
    code = "EMAIL_NOT_VERIFIED"
    message = "Email not verified"


class AccountSuspended(AccountError):
    kind = ErrorKind.FORBIDDEN
    code = "ACCOUNT_SUSPENDED"
    message = "Account suspended"


# Verification state machine


class VerificationFailed(AccountError):
    """Base class for rejected verification or reset attempts."""

    kind = ErrorKind.VALIDATION
    code = "VERIFICATION_FAILED"
    message = "Verification failed"


class InvalidOrExpiredToken(VerificationFailed):
    code = "INVALID_VERIFICATION_TOKEN"
    message = "Invalid or expired verification token"


class TokenAlreadyUsed(VerificationFailed):
    code = "VERIFICATION_TOKEN_USED"
    message = "Verification token already used"


class TokenExpired(VerificationFailed):
    code = "VERIFICATION_TOKEN_EXPIRED"
    message = "Verification token expired"


class InvalidOTP(VerificationFailed):
    code = "INVALID_OTP"
    message = "Invalid OTP code"


class MaxAttemptsExceeded(VerificationFailed):
    kind = ErrorKind.RATE_LIMITED
    code = "MAX_OTP_ATTEMPTS_EXCEEDED"
    message = "Max verification attempts exceeded"


# Internal (infrastructure failures, always wrapped with context)


class InternalError(AccountError):
    kind = ErrorKind.INTERNAL
    code = "INTERNAL_SERVER_ERROR"


class HashingFailed(InternalError):
    message = "Failed to hash password"


class IDAllocationFailed(InternalError):
    message = "Failed to generate ID"


class PersistenceFailed(InternalError):
    message = "Persistence operation failed"


class DispatchFailed(InternalError):
    message = "Failed to enqueue email task"


class CodeGenerationFailed(InternalError):
    message = "Failed to generate verification code"


class TokenIssueFailed(InternalError):
    message = "Failed to generate session token"
