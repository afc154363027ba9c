"""Repository adapters - Database and in-memory implementations."""

from .memory import (
    InMemoryAccountRepository,
    InMemoryCompanyRepository,
    InMemoryMembershipRepository,
    InMemoryVerificationRepository,
)
from .postgres import (
    PostgresAccountRepository,
    PostgresCompanyRepository,
    PostgresMembershipRepository,
    PostgresVerificationRepository,
    run_migrations,
)

__all__ = [
    "InMemoryAccountRepository",
    "InMemoryCompanyRepository",
    "InMemoryMembershipRepository",
    "InMemoryVerificationRepository",
    "PostgresAccountRepository",
    "PostgresCompanyRepository",
    "PostgresMembershipRepository",
    "PostgresVerificationRepository",
    "run_migrations",
]
