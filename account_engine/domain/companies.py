"""Company service - Company CRUD with cache-aside reads by ID and by code."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .auth import infrastructure, utcnow
from .cache_keys import COMPANY_CACHE_TTL_SECONDS, company_code_key, company_key
from .exceptions import (
    CompanyCodeAlreadyExists,
    CompanyNotFound,
    IDAllocationFailed,
    PersistenceFailed,
)
from .models import Company
from .ports import Cache, CompanyRepository, IdGenerator

logger = logging.getLogger(__name__)


@dataclass
class CompanyService:
    companies: CompanyRepository
    id_generator: IdGenerator
    cache: Cache
    cache_ttl_seconds: int = COMPANY_CACHE_TTL_SECONDS
    clock: Callable = utcnow

    def create(self, name: str, code: str, address: str = "") -> Company:
        """
        Create a company with a unique code.

        Raises:
            CompanyCodeAlreadyExists: If the code is taken
        """
        with infrastructure(PersistenceFailed, "failed to look up company"):
            existing = self.companies.find_by_code(code)
        if existing is not None:
            raise CompanyCodeAlreadyExists(code)

        with infrastructure(IDAllocationFailed, "failed to generate ID"):
            company_id = self.id_generator.next_id()

        now = self.clock()
        company = Company(
            id=company_id,
            name=name,
            code=code,
            address=address,
            created_at=now,
            updated_at=now,
        )
        with infrastructure(PersistenceFailed, "failed to create company"):
            created = self.companies.create(company)
        if not created:
            raise CompanyCodeAlreadyExists(code)

        logger.info("Created company %s (%s)", company.id, company.code)
        return company

    def get_by_id(self, company_id: int) -> Company:
        return self._read_through(
            company_key(company_id), lambda: self.companies.find_by_id(company_id)
        )

    def get_by_code(self, code: str) -> Company:
        return self._read_through(
            company_code_key(code), lambda: self.companies.find_by_code(code)
        )

    def update(self, company_id: int, name: str, address: str = "") -> Company:
        with infrastructure(PersistenceFailed, "failed to load company"):
            company = self.companies.find_by_id(company_id)
        if company is None:
            raise CompanyNotFound()

        company.name = name
        company.address = address
        company.updated_at = self.clock()
        with infrastructure(PersistenceFailed, "failed to update company"):
            self.companies.update(company)

        self._evict(company)
        return company

    def delete(self, company_id: int) -> None:
        # Loaded first so the code-keyed cache entry can be evicted too
        with infrastructure(PersistenceFailed, "failed to delete company"):
            company = self.companies.find_by_id(company_id)
            if company is None:
                raise CompanyNotFound()
            if not self.companies.delete(company_id):
                raise CompanyNotFound()

        logger.info("Deleted company %s", company_id)
        self._evict(company)

    def list(self, limit: int = 20, offset: int = 0) -> list[Company]:
        with infrastructure(PersistenceFailed, "failed to list companies"):
            return self.companies.list(limit, offset)

    def _read_through(self, key: str, load: Callable[[], Company | None]) -> Company:
        try:
            cached = self.cache.get(key, Company)
        except Exception as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            cached = None
        if cached is not None:
            return cached

        with infrastructure(PersistenceFailed, "failed to load company"):
            company = load()
        if company is None:
            raise CompanyNotFound()

        try:
            self.cache.set(key, company, self.cache_ttl_seconds)
        except Exception as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)
        return company

    def _evict(self, company: Company) -> None:
        for key in (company_key(company.id), company_code_key(company.code)):
            try:
                self.cache.delete(key)
            except Exception as exc:
                logger.warning("Failed to invalidate cache key %s: %s", key, exc)
