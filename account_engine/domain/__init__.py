"""
Domain layer - Pure business logic with zero framework imports.

This package contains the account engine: registration, login, the OTP
verification state machine, password reset, and the account and company
services. It defines its own port interfaces for infrastructure
abstraction; adapters live in account_engine.adapters.
"""

from .accounts import AccountService
from .auth import AuthEngine
from .companies import CompanyService
from .exceptions import AccountError, ErrorKind, VerificationFailed
from .models import (
    Account,
    AccountStatus,
    Company,
    Registration,
    Session,
    SessionClaims,
    VerificationRecord,
    VerificationType,
    VerifyResult,
)

__all__ = [
    "Account",
    "AccountError",
    "AccountService",
    "AccountStatus",
    "AuthEngine",
    "Company",
    "CompanyService",
    "ErrorKind",
    "Registration",
    "Session",
    "SessionClaims",
    "VerificationFailed",
    "VerificationRecord",
    "VerificationType",
    "VerifyResult",
]
