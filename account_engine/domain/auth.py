"""
Auth engine - Registration, login and the OTP verification lifecycle.

Verification Record State Machine
=================================

    issued(used=false, attempts=0)
      --OTP mismatch, attempts < max-->  issued(attempts+1)   InvalidOTP
      --attempts >= max-->               terminal             MaxAttemptsExceeded
      --now > expires_at-->              terminal             TokenExpired
      --already used-->                  terminal             TokenAlreadyUsed
      --OTP match-->                     used=true            success

Checks run in the order used -> expired -> attempts -> code. A failed
code check persists the attempt increment before InvalidOTP is raised.
The increment is conditional in the store; a submission whose increment
is refused is rejected as MaxAttemptsExceeded.

Resend and forgot-password invalidate every unused record of the same
type for the account before issuing a new one, so at most one record
per (account, type) can ever verify.

No in-process locking guards records or accounts. Two concurrent
verifications of the same token may both succeed; the account converges
to ACTIVE either way.

SUSPENDED is set outside this service and is never lifted here.
Activation is conditional in the store, and the other account writes
(password, last login) leave status alone.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .cache_keys import account_key
from .codes import generate_otp, generate_token, otp_matches
from .exceptions import (
    AccountError,
    AccountSuspended,
    CodeGenerationFailed,
    DispatchFailed,
    EmailAlreadyRegistered,
    EmailAlreadyVerified,
    EmailNotVerified,
    HashingFailed,
    IDAllocationFailed,
    InternalError,
    InvalidCredentials,
    InvalidOrExpiredToken,
    InvalidOTP,
    MaxAttemptsExceeded,
    PersistenceFailed,
    TokenAlreadyUsed,
    TokenExpired,
    TokenIssueFailed,
    UserNotFound,
)
from .models import (
    MAX_OTP_ATTEMPTS,
    OTP_TTL,
    Account,
    AccountStatus,
    Registration,
    Session,
    SessionClaims,
    VerificationRecord,
    VerificationType,
    VerifyResult,
)
from .ports import (
    AccountRepository,
    Cache,
    IdGenerator,
    NotificationDispatcher,
    PasswordHasher,
    SessionIssuer,
    VerificationRepository,
)

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def infrastructure(error: type[InternalError], context: str) -> Iterator[None]:
    """Wrap infrastructure failures into the given InternalError subclass."""
    try:
        yield
    except AccountError:
        raise
    except Exception as exc:
        logger.error("%s: %s", context, exc)
        raise error(context) from exc


_REJECTIONS: dict[VerifyResult, type[AccountError]] = {
    VerifyResult.ALREADY_USED: TokenAlreadyUsed,
    VerifyResult.EXPIRED: TokenExpired,
    VerifyResult.ATTEMPTS_EXCEEDED: MaxAttemptsExceeded,
    VerifyResult.INVALID_CODE: InvalidOTP,
}


@dataclass
class AuthEngine:
    """
    Domain service for the credential lifecycle.

    Orchestrates registration, login, OTP issuance, email verification,
    resend and password reset against the injected ports.
    """

    accounts: AccountRepository
    verifications: VerificationRepository
    dispatcher: NotificationDispatcher
    id_generator: IdGenerator
    hasher: PasswordHasher
    sessions: SessionIssuer
    cache: Cache | None = None
    clock: Callable[[], datetime] = utcnow
    otp_ttl: timedelta = OTP_TTL
    max_attempts: int = MAX_OTP_ATTEMPTS

    def register(self, email: str, password: str, name: str) -> Registration:
        """
        Create a PENDING_VERIFICATION account and send its first OTP.

        Args:
            email: Email address (surrounding whitespace is stripped)
            password: Plaintext password (hashed before storage)
            name: Display name

        Returns:
            Registration holding the account and the verification token

        Raises:
            EmailAlreadyRegistered: If the email belongs to any account
            HashingFailed, IDAllocationFailed, PersistenceFailed,
            DispatchFailed: On infrastructure failure
        """
        email = self._normalize_email(email)
        if self._find_by_email(email) is not None:
            raise EmailAlreadyRegistered(email)

        with infrastructure(HashingFailed, "failed to hash password"):
            password_hash = self.hasher.hash(password)

        now = self.clock()
        account = Account(
            id=self._next_id(),
            email=email,
            name=name,
            status=AccountStatus.PENDING_VERIFICATION,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )

        with infrastructure(PersistenceFailed, "failed to create user"):
            created = self.accounts.create(account)
        if not created:
            # Lost a race, or the email belongs to a soft-deleted account
            raise EmailAlreadyRegistered(email)

        logger.info("Registered account %s", account.id)
        record = self._issue_otp(account, VerificationType.EMAIL_VERIFICATION)
        return Registration(
            account=account,
            verification_token=record.token,
            expires_in=int(self.otp_ttl.total_seconds()),
        )

    def login(self, email: str, password: str) -> Session:
        """
        Authenticate with email and password.

        Status checks run before the password check, so pending and
        suspended accounts are rejected regardless of the password.
        Unknown email, missing hash and wrong password all raise the
        same InvalidCredentials.
        """
        account = self._find_by_email(self._normalize_email(email))
        if account is None:
            raise InvalidCredentials()

        if account.status == AccountStatus.PENDING_VERIFICATION:
            raise EmailNotVerified()
        if account.status == AccountStatus.SUSPENDED:
            raise AccountSuspended()

        if account.password_hash is None:
            raise InvalidCredentials()

        with infrastructure(HashingFailed, "failed to verify password"):
            valid = self.hasher.verify(password, account.password_hash)
        if not valid:
            raise InvalidCredentials()

        session = self._issue_session(account)
        self._record_login(account)
        return session

    def verify_email(self, token: str, otp: str) -> Session:
        """
        Verify an email address with a token + OTP pair and activate the account.

        Raises:
            InvalidOrExpiredToken: Unknown token, or a token of another type
            TokenAlreadyUsed, TokenExpired, MaxAttemptsExceeded, InvalidOTP:
                State machine rejections (see module docstring)
            AccountSuspended: Owner was suspended after issuance
        """
        record = self._consume(token, otp, VerificationType.EMAIL_VERIFICATION)
        account = self._load_owner(record)
        if account.status == AccountStatus.SUSPENDED:
            raise AccountSuspended()

        now = self.clock()
        with infrastructure(PersistenceFailed, "failed to activate user"):
            activated = self.accounts.activate(account.id, now)
        if not activated:
            # Suspended after the read above
            raise AccountSuspended()

        account.status = AccountStatus.ACTIVE
        account.email_verified_at = account.email_verified_at or now
        account.updated_at = now
        logger.info("Account %s verified email", account.id)
        self._evict(account.id)
        return self._issue_session(account)

    def resend_otp(self, email: str) -> str:
        """
        Invalidate outstanding email verification records and issue a new one.

        Returns:
            The new verification token
        """
        account = self._find_by_email(self._normalize_email(email))
        if account is None:
            raise UserNotFound()
        if account.status == AccountStatus.ACTIVE:
            raise EmailAlreadyVerified()
        if account.status == AccountStatus.SUSPENDED:
            raise AccountSuspended()

        self._invalidate(account.id, VerificationType.EMAIL_VERIFICATION)
        record = self._issue_otp(account, VerificationType.EMAIL_VERIFICATION)
        return record.token

    def forgot_password(self, email: str) -> str:
        """
        Issue a PASSWORD_RESET record for the account.

        Accounts still pending verification may reset their password.

        Returns:
            The reset token
        """
        account = self._find_by_email(self._normalize_email(email))
        if account is None:
            raise UserNotFound()
        if account.status == AccountStatus.SUSPENDED:
            raise AccountSuspended()

        self._invalidate(account.id, VerificationType.PASSWORD_RESET)
        record = self._issue_otp(account, VerificationType.PASSWORD_RESET)
        return record.token

    def reset_password(self, token: str, otp: str, new_password: str) -> None:
        """Replace the password after a successful PASSWORD_RESET check."""
        record = self._consume(token, otp, VerificationType.PASSWORD_RESET)
        account = self._load_owner(record)
        if account.status == AccountStatus.SUSPENDED:
            raise AccountSuspended()

        with infrastructure(HashingFailed, "failed to hash password"):
            password_hash = self.hasher.hash(new_password)
        with infrastructure(PersistenceFailed, "failed to update password"):
            self.accounts.set_password(account.id, password_hash, self.clock())

        # No previously issued reset code may be replayed after a reset
        self._invalidate(account.id, VerificationType.PASSWORD_RESET)
        logger.info("Account %s reset password", account.id)
        self._evict(account.id)

    def get_me(self, account_id: int) -> Account:
        with infrastructure(PersistenceFailed, "failed to load user"):
            account = self.accounts.find_by_id(account_id)
        if account is None:
            raise UserNotFound()
        return account

    def authenticate(self, token: str) -> SessionClaims:
        """Decode a bearer token. Raises InvalidSessionToken."""
        return self.sessions.decode(token)

    # Helpers

    def _consume(
        self, token: str, otp: str, verification_type: VerificationType
    ) -> VerificationRecord:
        """Run the state machine for one submission and mark the record used on success."""
        with infrastructure(PersistenceFailed, "failed to load verification"):
            record = self.verifications.find_by_token(token)
        if record is None or record.type != verification_type:
            raise InvalidOrExpiredToken()

        result = record.check(self.clock(), otp_matches(record.otp_code, otp))

        if result == VerifyResult.INVALID_CODE:
            with infrastructure(PersistenceFailed, "failed to record attempt"):
                counted = self.verifications.increment_attempts(record.id)
            if not counted:
                # A concurrent submission used the record or spent the last attempt
                raise MaxAttemptsExceeded()
            logger.info(
                "Invalid OTP for verification %s (attempt %d of %d)",
                record.id,
                record.attempts_used + 1,
                record.max_attempts,
            )

        if result != VerifyResult.SUCCESS:
            raise _REJECTIONS[result]()

        with infrastructure(PersistenceFailed, "failed to mark verification used"):
            self.verifications.mark_used(record.id)
        return record

    def _issue_otp(
        self, account: Account, verification_type: VerificationType
    ) -> VerificationRecord:
        try:
            otp = generate_otp()
            token = generate_token()
        except Exception as exc:
            raise CodeGenerationFailed("failed to generate OTP") from exc

        now = self.clock()
        record = VerificationRecord(
            id=self._next_id(),
            account_id=account.id,
            type=verification_type,
            token=token,
            otp_code=otp,
            email=account.email,
            expires_at=now + self.otp_ttl,
            max_attempts=self.max_attempts,
            created_at=now,
        )
        with infrastructure(PersistenceFailed, "failed to create verification"):
            self.verifications.create(record)

        with infrastructure(DispatchFailed, "failed to enqueue email task"):
            self.dispatcher.enqueue_otp_email(
                account.email, account.name, otp, verification_type.value
            )
        return record

    def _invalidate(self, account_id: int, verification_type: VerificationType) -> None:
        with infrastructure(PersistenceFailed, "failed to invalidate previous OTPs"):
            count = self.verifications.invalidate_all_active_by_account_and_type(
                account_id, verification_type
            )
        if count:
            logger.info(
                "Invalidated %d %s record(s) for account %s",
                count,
                verification_type.value,
                account_id,
            )

    def _find_by_email(self, email: str) -> Account | None:
        with infrastructure(PersistenceFailed, "failed to look up user"):
            return self.accounts.find_by_email(email)

    def _load_owner(self, record: VerificationRecord) -> Account:
        with infrastructure(PersistenceFailed, "failed to load user"):
            account = self.accounts.find_by_id(record.account_id)
        if account is None:
            raise UserNotFound()
        return account

    def _next_id(self) -> int:
        with infrastructure(IDAllocationFailed, "failed to generate ID"):
            return self.id_generator.next_id()

    def _issue_session(self, account: Account) -> Session:
        with infrastructure(TokenIssueFailed, "failed to generate token"):
            return self.sessions.issue(account)

    def _record_login(self, account: Account) -> None:
        """Best-effort last-login update; failures never fail the login."""
        account.last_login_at = self.clock()
        try:
            self.accounts.record_login(account.id, account.last_login_at)
        except Exception as exc:
            logger.warning("Failed to record last login for account %s: %s", account.id, exc)
            return
        self._evict(account.id)

    def _evict(self, account_id: int) -> None:
        if self.cache is None:
            return
        try:
            self.cache.delete(account_key(account_id))
        except Exception as exc:
            logger.warning("Failed to invalidate cache for account %s: %s", account_id, exc)

    def _normalize_email(self, email: str) -> str:
        """Strip surrounding whitespace. Case is preserved as stored."""
        return email.strip()
