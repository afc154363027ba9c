"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Snowflake IDs are rendered as strings so JavaScript clients keep full
64-bit precision; timestamps are Unix seconds.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from account_engine.domain.models import Account, Company, Gender


def _unix(value: datetime | None) -> int | None:
    return int(value.timestamp()) if value is not None else None


# Auth


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    email: EmailStr
    password: str = Field(
        ..., min_length=8, max_length=72, description="User password (8-72 characters)"
    )
    name: str = Field(..., min_length=2, max_length=100, description="Display name")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class VerifyEmailRequest(BaseModel):
    """Request model for email verification."""

    token: str = Field(..., min_length=1, description="Verification token returned at registration")
    otp: str = Field(
        ...,
        min_length=6,
        max_length=6,
        pattern=r"^\d{6}$",
        description="6-digit code sent by email",
    )


class ResendOTPRequest(BaseModel):
    email: EmailStr


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")
    new_password: str = Field(
        ..., min_length=8, max_length=72, description="New password (8-72 characters)"
    )


# Users


class UserResponse(BaseModel):
    """Public representation of an account. The password hash never leaves the service."""

    id: str
    email: str
    name: str
    phone: str | None = None
    gender: str | None = None
    avatar_key: str | None = None
    status: str
    email_verified_at: int | None = None
    last_login_at: int | None = None
    created_at: int | None = None
    updated_at: int | None = None

    @classmethod
    def from_domain(cls, account: Account) -> "UserResponse":
        return cls(
            id=str(account.id),
            email=account.email,
            name=account.name,
            phone=account.phone,
            gender=account.gender.value if account.gender is not None else None,
            avatar_key=account.avatar_key,
            status=account.status.value,
            email_verified_at=_unix(account.email_verified_at),
            last_login_at=_unix(account.last_login_at),
            created_at=_unix(account.created_at),
            updated_at=_unix(account.updated_at),
        )


class UpdateUserRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    phone: str | None = Field(default=None, min_length=1, max_length=50)
    gender: Gender | None = None


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    message: str
    user: UserResponse
    verification_token: str
    expires_in_seconds: int


class VerificationTokenResponse(BaseModel):
    """Response for flows that issue a fresh token + OTP pair."""

    message: str
    verification_token: str
    expires_in_seconds: int


class SessionResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


# Companies


class CompanyResponse(BaseModel):
    id: str
    name: str
    code: str
    address: str
    created_at: int | None = None
    updated_at: int | None = None

    @classmethod
    def from_domain(cls, company: Company) -> "CompanyResponse":
        return cls(
            id=str(company.id),
            name=company.name,
            code=company.code,
            address=company.address,
            created_at=_unix(company.created_at),
            updated_at=_unix(company.updated_at),
        )


class CreateCompanyRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    code: str = Field(..., min_length=2, max_length=50, pattern=r"^[A-Za-z0-9_-]+$")
    address: str = Field(default="", max_length=500)


class UpdateCompanyRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    address: str = Field(default="", max_length=500)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    code: str
