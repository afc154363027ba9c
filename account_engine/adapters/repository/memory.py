"""
In-memory repository adapters - Implement the repository protocols.

Used by tests and local development. Every method holds one lock and
returns copies, so callers never mutate stored state without going
through a write method. Semantics mirror the PostgreSQL adapters: email and
company code uniqueness include soft-deleted rows, and reads skip them.
"""

import copy
import threading
from datetime import datetime, timezone

from account_engine.domain.models import (
    Account,
    AccountStatus,
    Company,
    Membership,
    VerificationRecord,
    VerificationType,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryAccountRepository:
    """Implements AccountRepository protocol with a dict keyed by ID."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[int, Account] = {}

    def create(self, account: Account) -> bool:
        with self._lock:
            if any(row.email == account.email for row in self._rows.values()):
                return False
            self._rows[account.id] = copy.deepcopy(account)
            return True

    def find_by_id(self, account_id: int) -> Account | None:
        with self._lock:
            row = self._rows.get(account_id)
            if row is None or row.deleted_at is not None:
                return None
            return copy.deepcopy(row)

    def find_by_email(self, email: str) -> Account | None:
        with self._lock:
            for row in self._rows.values():
                if row.email == email and row.deleted_at is None:
                    return copy.deepcopy(row)
            return None

    def update(self, account: Account) -> None:
        with self._lock:
            row = self._live(account.id)
            if row is None:
                return
            row.name = account.name
            row.phone = account.phone
            row.gender = account.gender
            row.updated_at = account.updated_at or _now()

    def set_password(self, account_id: int, password_hash: str, at: datetime) -> None:
        with self._lock:
            row = self._live(account_id)
            if row is not None:
                row.password_hash = password_hash
                row.updated_at = at

    def activate(self, account_id: int, at: datetime) -> bool:
        with self._lock:
            row = self._live(account_id)
            if row is None or row.status == AccountStatus.SUSPENDED:
                return False
            row.status = AccountStatus.ACTIVE
            if row.email_verified_at is None:
                row.email_verified_at = at
            row.updated_at = at
            return True

    def record_login(self, account_id: int, at: datetime) -> None:
        with self._lock:
            row = self._live(account_id)
            if row is not None:
                row.last_login_at = at

    def _live(self, account_id: int) -> Account | None:
        row = self._rows.get(account_id)
        if row is None or row.deleted_at is not None:
            return None
        return row

    def delete(self, account_id: int) -> bool:
        with self._lock:
            row = self._rows.get(account_id)
            if row is None or row.deleted_at is not None:
                return False
            row.deleted_at = _now()
            return True

    def list(self, limit: int, offset: int) -> list[Account]:
        with self._lock:
            live = [row for row in self._rows.values() if row.deleted_at is None]
            live.sort(key=lambda row: row.id)
            return [copy.deepcopy(row) for row in live[offset : offset + limit]]


class InMemoryVerificationRepository:
    """Implements VerificationRepository protocol with a dict keyed by ID."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[int, VerificationRecord] = {}

    def create(self, record: VerificationRecord) -> None:
        with self._lock:
            if any(row.token == record.token for row in self._rows.values()):
                raise ValueError("duplicate verification token")
            self._rows[record.id] = copy.deepcopy(record)

    def find_by_token(self, token: str) -> VerificationRecord | None:
        with self._lock:
            for row in self._rows.values():
                if row.token == token:
                    return copy.deepcopy(row)
            return None

    def find_active_by_account_and_type(
        self, account_id: int, verification_type: VerificationType, now: datetime
    ) -> VerificationRecord | None:
        with self._lock:
            active = [
                row
                for row in self._rows.values()
                if row.account_id == account_id
                and row.type == verification_type
                and row.is_active(now)
            ]
            if not active:
                return None
            return copy.deepcopy(max(active, key=lambda row: row.id))

    def mark_used(self, record_id: int) -> None:
        with self._lock:
            row = self._rows.get(record_id)
            if row is not None:
                row.is_used = True

    def increment_attempts(self, record_id: int) -> bool:
        with self._lock:
            row = self._rows.get(record_id)
            if row is None or row.is_used or row.attempts_used >= row.max_attempts:
                return False
            row.attempts_used += 1
            return True

    def invalidate_all_active_by_account_and_type(
        self, account_id: int, verification_type: VerificationType
    ) -> int:
        count = 0
        with self._lock:
            for row in self._rows.values():
                if (
                    row.account_id == account_id
                    and row.type == verification_type
                    and not row.is_used
                ):
                    row.is_used = True
                    count += 1
        return count

    def all_for_account(self, account_id: int) -> list[VerificationRecord]:
        """Audit trail for an account, oldest first."""
        with self._lock:
            rows = [row for row in self._rows.values() if row.account_id == account_id]
            return [copy.deepcopy(row) for row in sorted(rows, key=lambda row: row.id)]


class InMemoryCompanyRepository:
    """Implements CompanyRepository protocol with a dict keyed by ID."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[int, Company] = {}

    def create(self, company: Company) -> bool:
        with self._lock:
            if any(row.code == company.code for row in self._rows.values()):
                return False
            self._rows[company.id] = copy.deepcopy(company)
            return True

    def find_by_id(self, company_id: int) -> Company | None:
        with self._lock:
            row = self._rows.get(company_id)
            if row is None or row.deleted_at is not None:
                return None
            return copy.deepcopy(row)

    def find_by_code(self, code: str) -> Company | None:
        with self._lock:
            for row in self._rows.values():
                if row.code == code and row.deleted_at is None:
                    return copy.deepcopy(row)
            return None

    def update(self, company: Company) -> None:
        with self._lock:
            if company.id in self._rows:
                self._rows[company.id] = copy.deepcopy(company)

    def delete(self, company_id: int) -> bool:
        with self._lock:
            row = self._rows.get(company_id)
            if row is None or row.deleted_at is not None:
                return False
            row.deleted_at = _now()
            return True

    def list(self, limit: int, offset: int) -> list[Company]:
        with self._lock:
            live = [row for row in self._rows.values() if row.deleted_at is None]
            live.sort(key=lambda row: row.id)
            return [copy.deepcopy(row) for row in live[offset : offset + limit]]


class InMemoryMembershipRepository:
    """Implements MembershipRepository protocol over a company repository."""

    def __init__(self, companies: InMemoryCompanyRepository) -> None:
        self._lock = threading.Lock()
        self._companies = companies
        self._rows: dict[tuple[int, int], Membership] = {}

    def add(self, account_id: int, company_id: int, joined_at: datetime) -> bool:
        with self._lock:
            key = (account_id, company_id)
            if key in self._rows:
                return False
            self._rows[key] = Membership(account_id, company_id, joined_at)
            return True

    def remove(self, account_id: int, company_id: int) -> bool:
        with self._lock:
            return self._rows.pop((account_id, company_id), None) is not None

    def companies_for(self, account_id: int) -> list[Company]:
        with self._lock:
            memberships = sorted(
                (row for row in self._rows.values() if row.account_id == account_id),
                key=lambda row: row.joined_at,
            )
        companies = (self._companies.find_by_id(row.company_id) for row in memberships)
        return [company for company in companies if company is not None]
