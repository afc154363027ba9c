"""
Account service - Profile reads and writes, company membership.

Reads by ID go through the cache (cache-aside). Writes go to the store
and then delete the cache key; the next read repopulates it. The cache
is a read accelerator only and is never written through.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .auth import infrastructure, utcnow
from .cache_keys import ACCOUNT_CACHE_TTL_SECONDS, account_key
from .exceptions import (
    AlreadyCompanyMember,
    CompanyNotFound,
    NotCompanyMember,
    PersistenceFailed,
    UserNotFound,
)
from .models import Account, Company, Gender
from .ports import AccountRepository, Cache, CompanyRepository, MembershipRepository

logger = logging.getLogger(__name__)


@dataclass
class AccountService:
    accounts: AccountRepository
    companies: CompanyRepository
    memberships: MembershipRepository
    cache: Cache
    cache_ttl_seconds: int = ACCOUNT_CACHE_TTL_SECONDS
    clock: Callable = utcnow

    def get_by_id(self, account_id: int) -> Account:
        """
        Read-through lookup of an account.

        Raises:
            UserNotFound: If no live account has this ID
        """
        key = account_key(account_id)
        try:
            cached = self.cache.get(key, Account)
        except Exception as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            cached = None
        if cached is not None:
            return cached

        with infrastructure(PersistenceFailed, "failed to load user"):
            account = self.accounts.find_by_id(account_id)
        if account is None:
            raise UserNotFound()

        try:
            self.cache.set(key, account, self.cache_ttl_seconds)
        except Exception as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)
        return account

    def update_profile(
        self,
        account_id: int,
        name: str,
        phone: str | None = None,
        gender: Gender | None = None,
    ) -> Account:
        """Replace the name; phone and gender change only when given."""
        with infrastructure(PersistenceFailed, "failed to load user"):
            account = self.accounts.find_by_id(account_id)
        if account is None:
            raise UserNotFound()

        account.name = name
        if phone is not None:
            account.phone = phone
        if gender is not None:
            account.gender = gender
        account.updated_at = self.clock()
        with infrastructure(PersistenceFailed, "failed to update user"):
            self.accounts.update(account)

        self._evict(account_id)
        return account

    def delete(self, account_id: int) -> None:
        with infrastructure(PersistenceFailed, "failed to delete user"):
            deleted = self.accounts.delete(account_id)
        if not deleted:
            raise UserNotFound()
        logger.info("Deleted account %s", account_id)
        self._evict(account_id)

    def list_accounts(self, limit: int = 20, offset: int = 0) -> list[Account]:
        with infrastructure(PersistenceFailed, "failed to list users"):
            return self.accounts.list(limit, offset)

    def join_company(self, account_id: int, company_id: int) -> None:
        """
        Add a membership after checking both sides exist.

        Raises:
            UserNotFound, CompanyNotFound: If either side is missing
            AlreadyCompanyMember: If the membership already exists
        """
        with infrastructure(PersistenceFailed, "failed to join company"):
            if self.accounts.find_by_id(account_id) is None:
                raise UserNotFound()
            if self.companies.find_by_id(company_id) is None:
                raise CompanyNotFound()
            added = self.memberships.add(account_id, company_id, self.clock())
        if not added:
            raise AlreadyCompanyMember()
        logger.info("Account %s joined company %s", account_id, company_id)

    def leave_company(self, account_id: int, company_id: int) -> None:
        with infrastructure(PersistenceFailed, "failed to leave company"):
            removed = self.memberships.remove(account_id, company_id)
        if not removed:
            raise NotCompanyMember()
        logger.info("Account %s left company %s", account_id, company_id)

    def list_companies(self, account_id: int) -> list[Company]:
        with infrastructure(PersistenceFailed, "failed to list companies"):
            if self.accounts.find_by_id(account_id) is None:
                raise UserNotFound()
            return self.memberships.companies_for(account_id)

    def _evict(self, account_id: int) -> None:
        try:
            self.cache.delete(account_key(account_id))
        except Exception as exc:
            logger.warning("Failed to invalidate cache for account %s: %s", account_id, exc)
