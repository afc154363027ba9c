"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols through
structural subtyping; none of them inherit from the Protocol classes.

Read methods return None for "not found". Transport failures raise,
and the domain wraps them into InternalError subclasses.
"""

from datetime import datetime
from typing import Protocol, TypeVar

from .models import (
    Account,
    Company,
    Session,
    SessionClaims,
    VerificationRecord,
    VerificationType,
)

T = TypeVar("T")


class AccountRepository(Protocol):
    """Port interface for account persistence."""

    def create(self, account: Account) -> bool:
        """
        Persist a new account.

        Returns:
            True if stored, False if the email is already taken
            (including by a soft-deleted account)
        """
        ...

    def find_by_id(self, account_id: int) -> Account | None: ...

    def find_by_email(self, email: str) -> Account | None: ...

    # Only activate() writes status, and never over SUSPENDED.
    # Suspension happens outside this service.

    def update(self, account: Account) -> None:
        """Write name, phone, gender and updated_at. Status is never touched."""
        ...

    def set_password(self, account_id: int, password_hash: str, at: datetime) -> None: ...

    def activate(self, account_id: int, at: datetime) -> bool:
        """
        Mark the account ACTIVE and stamp email_verified_at if unset.

        Returns:
            False if the account is suspended or gone
        """
        ...

    def record_login(self, account_id: int, at: datetime) -> None:
        """Write last_login_at only."""
        ...

    def delete(self, account_id: int) -> bool:
        """Soft-delete an account. Returns False if no live account matched."""
        ...

    def list(self, limit: int, offset: int) -> list[Account]: ...


class VerificationRepository(Protocol):
    """Port interface for verification record persistence."""

    def create(self, record: VerificationRecord) -> None: ...

    def find_by_token(self, token: str) -> VerificationRecord | None: ...

    def find_active_by_account_and_type(
        self, account_id: int, verification_type: VerificationType, now: datetime
    ) -> VerificationRecord | None:
        """Return the newest unused, unexpired record, if any."""
        ...

    def mark_used(self, record_id: int) -> None: ...

    def increment_attempts(self, record_id: int) -> bool:
        """
        Atomically add one to attempts_used.

        Only counts while the record is unused and below max_attempts.
        Returns False when nothing was counted.
        """
        ...

    def invalidate_all_active_by_account_and_type(
        self, account_id: int, verification_type: VerificationType
    ) -> int:
        """
        Mark every unused record of this type for the account as used.

        Returns:
            Number of records invalidated
        """
        ...


class CompanyRepository(Protocol):
    """Port interface for company persistence."""

    def create(self, company: Company) -> bool:
        """Returns False if the company code is already taken."""
        ...

    def find_by_id(self, company_id: int) -> Company | None: ...

    def find_by_code(self, code: str) -> Company | None: ...

    def update(self, company: Company) -> None: ...

    def delete(self, company_id: int) -> bool: ...

    def list(self, limit: int, offset: int) -> list[Company]: ...


class MembershipRepository(Protocol):
    """Port interface for the account <-> company join table."""

    def add(self, account_id: int, company_id: int, joined_at: datetime) -> bool:
        """Returns False if the membership already exists."""
        ...

    def remove(self, account_id: int, company_id: int) -> bool:
        """Returns False if there was no membership to remove."""
        ...

    def companies_for(self, account_id: int) -> list[Company]: ...


class Cache(Protocol):
    """Port interface for a key-value cache with TTL."""

    def get(self, key: str, model: type[T]) -> T | None:
        """Return the cached value decoded as model, or None on miss."""
        ...

    def set(self, key: str, value: object, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...


class IdGenerator(Protocol):
    """Port interface for the unique ID source."""

    def next_id(self) -> int: ...


class PasswordHasher(Protocol):
    """Port interface for one-way password hashing."""

    def hash(self, password: str) -> str: ...

    def verify(self, password: str, password_hash: str) -> bool: ...


class SessionIssuer(Protocol):
    """Port interface for signed session tokens."""

    def issue(self, account: Account) -> Session: ...

    def decode(self, token: str) -> SessionClaims:
        """Raises InvalidSessionToken if the signature or expiry check fails."""
        ...


class NotificationDispatcher(Protocol):
    """Port interface for fire-and-forget OTP email delivery."""

    def enqueue_otp_email(self, to: str, name: str, code: str, purpose: str) -> None:
        """
        Enqueue delivery of an OTP email.

        Must return quickly; delivery itself happens elsewhere.
        Raises if the job could not be enqueued.
        """
        ...


class Mailer(Protocol):
    """Port interface used by the delivery worker to send OTP emails."""

    def send_otp(self, to: str, name: str, code: str, purpose: str) -> None: ...
