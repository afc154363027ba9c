"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory repositories and cache wired into the domain services
- A controllable clock and sequential IDs
- A recording notification dispatcher that captures OTPs
- A suspend fixture standing in for administrative suspension
"""

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from account_engine.adapters.cache import InMemoryCache
from account_engine.adapters.repository import (
    InMemoryAccountRepository,
    InMemoryCompanyRepository,
    InMemoryMembershipRepository,
    InMemoryVerificationRepository,
)
from account_engine.adapters.security import BcryptPasswordHasher, JWTSessionIssuer
from account_engine.domain.accounts import AccountService
from account_engine.domain.auth import AuthEngine
from account_engine.domain.companies import CompanyService
from account_engine.domain.models import AccountStatus

TEST_SECRET = "test-secret-key-with-at-least-32-bytes!"


class FakeClock:
    """Mutable UTC clock for driving expiry."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class SequentialIds:
    """IdGenerator that hands out 1, 2, 3, ..."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def next_id(self) -> int:
        return next(self._counter)


class RecordingDispatcher:
    """NotificationDispatcher that keeps every enqueued email in memory."""

    def __init__(self) -> None:
        self.sent: list[dict[str, str]] = []
        self.error: Exception | None = None

    def enqueue_otp_email(self, to: str, name: str, code: str, purpose: str) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append({"to": to, "name": name, "code": code, "purpose": purpose})

    @property
    def last_code(self) -> str:
        return self.sent[-1]["code"]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def accounts() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def suspend(accounts: InMemoryAccountRepository):
    """
    Suspend an account in place.

    Suspension is an administrative action outside the service, so no
    repository method performs it; this writes the stored row directly.
    """

    def _suspend(account_id: int) -> None:
        with accounts._lock:
            accounts._rows[account_id].status = AccountStatus.SUSPENDED

    return _suspend


@pytest.fixture
def verifications() -> InMemoryVerificationRepository:
    return InMemoryVerificationRepository()


@pytest.fixture
def companies() -> InMemoryCompanyRepository:
    return InMemoryCompanyRepository()


@pytest.fixture
def memberships(companies: InMemoryCompanyRepository) -> InMemoryMembershipRepository:
    return InMemoryMembershipRepository(companies)


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def hasher() -> BcryptPasswordHasher:
    """Low cost factor keeps the suite fast."""
    return BcryptPasswordHasher(rounds=4)


@pytest.fixture
def sessions() -> JWTSessionIssuer:
    return JWTSessionIssuer(TEST_SECRET, expiry_hours=24)


@pytest.fixture
def engine(
    accounts: InMemoryAccountRepository,
    verifications: InMemoryVerificationRepository,
    dispatcher: RecordingDispatcher,
    ids: SequentialIds,
    hasher: BcryptPasswordHasher,
    sessions: JWTSessionIssuer,
    cache: InMemoryCache,
    clock: FakeClock,
) -> AuthEngine:
    return AuthEngine(
        accounts=accounts,
        verifications=verifications,
        dispatcher=dispatcher,
        id_generator=ids,
        hasher=hasher,
        sessions=sessions,
        cache=cache,
        clock=clock,
    )


@pytest.fixture
def account_service(
    accounts: InMemoryAccountRepository,
    companies: InMemoryCompanyRepository,
    memberships: InMemoryMembershipRepository,
    cache: InMemoryCache,
    clock: FakeClock,
) -> AccountService:
    return AccountService(
        accounts=accounts,
        companies=companies,
        memberships=memberships,
        cache=cache,
        clock=clock,
    )


@pytest.fixture
def company_service(
    companies: InMemoryCompanyRepository,
    ids: SequentialIds,
    cache: InMemoryCache,
    clock: FakeClock,
) -> CompanyService:
    return CompanyService(companies=companies, id_generator=ids, cache=cache, clock=clock)

