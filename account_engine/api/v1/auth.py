"""
Auth routes - Registration, login, verification and password reset.

Domain errors propagate to the handler in account_engine.api.errors.
"""

from fastapi import APIRouter, Depends, status

from account_engine.api.dependencies import get_auth_engine, get_current_claims
from account_engine.api.models import (
    ErrorResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResendOTPRequest,
    ResetPasswordRequest,
    SessionResponse,
    UserResponse,
    VerificationTokenResponse,
    VerifyEmailRequest,
)
from account_engine.domain.auth import AuthEngine
from account_engine.domain.models import Session, SessionClaims

router = APIRouter(prefix="/auth", tags=["auth"])


def _session_response(session: Session) -> SessionResponse:
    return SessionResponse(
        token=session.token,
        expires_in=session.expires_in,
        user=UserResponse.from_domain(session.account),
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email already registered"},
        422: {"description": "Validation error"},
    },
    summary="Register a new user",
    description="Submit email, password and name to create an account. "
    "A 6-digit code is emailed; submit it with the returned verification token.",
)
def register(
    request_data: RegisterRequest,
    engine: AuthEngine = Depends(get_auth_engine),
) -> RegisterResponse:
    """
    Register a new user and send a verification code.

    - **email**: Valid email address to register
    - **password**: Password (minimum 8 characters)
    - **name**: Display name
    """
    registration = engine.register(request_data.email, request_data.password, request_data.name)
    return RegisterResponse(
        message="Verification code sent",
        user=UserResponse.from_domain(registration.account),
        verification_token=registration.verification_token,
        expires_in_seconds=registration.expires_in,
    )


@router.post(
    "/login",
    response_model=SessionResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid email or password"},
        403: {"model": ErrorResponse, "description": "Email not verified or account suspended"},
    },
    summary="Log in with email and password",
)
def login(
    request_data: LoginRequest,
    engine: AuthEngine = Depends(get_auth_engine),
) -> SessionResponse:
    return _session_response(engine.login(request_data.email, request_data.password))


@router.post(
    "/verify-email",
    response_model=SessionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Rejected token or wrong code"},
        429: {"model": ErrorResponse, "description": "Too many failed attempts"},
    },
    summary="Verify email with token and code",
)
def verify_email(
    request_data: VerifyEmailRequest,
    engine: AuthEngine = Depends(get_auth_engine),
) -> SessionResponse:
    """Activate the account and return a session on success."""
    return _session_response(engine.verify_email(request_data.token, request_data.otp))


@router.post(
    "/resend-otp",
    response_model=VerificationTokenResponse,
    responses={
        404: {"model": ErrorResponse, "description": "User not found"},
        409: {"model": ErrorResponse, "description": "Email already verified"},
    },
    summary="Issue a new verification code",
)
def resend_otp(
    request_data: ResendOTPRequest,
    engine: AuthEngine = Depends(get_auth_engine),
) -> VerificationTokenResponse:
    """Previously issued verification codes stop working."""
    token = engine.resend_otp(request_data.email)
    return VerificationTokenResponse(
        message="Verification code sent",
        verification_token=token,
        expires_in_seconds=int(engine.otp_ttl.total_seconds()),
    )


@router.post(
    "/forgot-password",
    response_model=VerificationTokenResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Request a password reset code",
)
def forgot_password(
    request_data: ForgotPasswordRequest,
    engine: AuthEngine = Depends(get_auth_engine),
) -> VerificationTokenResponse:
    token = engine.forgot_password(request_data.email)
    return VerificationTokenResponse(
        message="Password reset code sent",
        verification_token=token,
        expires_in_seconds=int(engine.otp_ttl.total_seconds()),
    )


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Rejected token or wrong code"},
        429: {"model": ErrorResponse, "description": "Too many failed attempts"},
    },
    summary="Set a new password with a reset token and code",
)
def reset_password(
    request_data: ResetPasswordRequest,
    engine: AuthEngine = Depends(get_auth_engine),
) -> MessageResponse:
    engine.reset_password(request_data.token, request_data.otp, request_data.new_password)
    return MessageResponse(message="Password updated")


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid token"}},
    summary="Current user",
)
def me(
    claims: SessionClaims = Depends(get_current_claims),
    engine: AuthEngine = Depends(get_auth_engine),
) -> UserResponse:
    return UserResponse.from_domain(engine.get_me(claims.user_id))
