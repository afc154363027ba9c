"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from datetime import timedelta

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from account_engine.adapters.cache import RedisCache
from account_engine.adapters.queue import CeleryNotificationDispatcher, send_otp_email
from account_engine.adapters.repository import (
    PostgresAccountRepository,
    PostgresCompanyRepository,
    PostgresMembershipRepository,
    PostgresVerificationRepository,
)
from account_engine.adapters.security import BcryptPasswordHasher, JWTSessionIssuer
from account_engine.config.settings import get_settings
from account_engine.domain.accounts import AccountService
from account_engine.domain.auth import AuthEngine
from account_engine.domain.companies import CompanyService
from account_engine.domain.exceptions import InvalidSessionToken
from account_engine.domain.models import SessionClaims

# Module-level singletons - stateless adapters
_settings = get_settings()
_hasher = BcryptPasswordHasher(rounds=_settings.bcrypt_cost)
_sessions = JWTSessionIssuer(_settings.jwt_secret, expiry_hours=_settings.jwt_expiry_hours)
_dispatcher = CeleryNotificationDispatcher(send_otp_email)


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_cache(request: Request) -> RedisCache:
    """Wrap the shared Redis client from app state."""
    return RedisCache(request.app.state.redis)


def get_auth_engine(request: Request) -> AuthEngine:
    """
    Create the auth engine with injected dependencies.

    Wires repositories, hasher, session issuer, dispatcher and the shared
    ID generator together for the domain service.
    """
    pool = get_pool(request)
    return AuthEngine(
        accounts=PostgresAccountRepository(pool),
        verifications=PostgresVerificationRepository(pool),
        dispatcher=_dispatcher,
        id_generator=request.app.state.id_generator,
        hasher=_hasher,
        sessions=_sessions,
        cache=get_cache(request),
        otp_ttl=timedelta(seconds=_settings.otp_ttl_seconds),
        max_attempts=_settings.otp_max_attempts,
    )


def get_account_service(request: Request) -> AccountService:
    pool = get_pool(request)
    return AccountService(
        accounts=PostgresAccountRepository(pool),
        companies=PostgresCompanyRepository(pool),
        memberships=PostgresMembershipRepository(pool),
        cache=get_cache(request),
        cache_ttl_seconds=_settings.account_cache_ttl_seconds,
    )


def get_company_service(request: Request) -> CompanyService:
    return CompanyService(
        companies=PostgresCompanyRepository(get_pool(request)),
        id_generator=request.app.state.id_generator,
        cache=get_cache(request),
        cache_ttl_seconds=_settings.company_cache_ttl_seconds,
    )


# Bearer security scheme for OpenAPI documentation.
# auto_error is off so a missing header maps to the same 401 as a bad token.
http_bearer = HTTPBearer(auto_error=False)


def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    engine: AuthEngine = Depends(get_auth_engine),
) -> SessionClaims:
    """
    Decode the bearer token of the request.

    Raises:
        InvalidSessionToken: Missing header, wrong scheme, bad signature or expired token
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise InvalidSessionToken()
    return engine.authenticate(credentials.credentials)
