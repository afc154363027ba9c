"""User routes - Profile management and company membership."""

from fastapi import APIRouter, Depends, Query, status

from account_engine.api.dependencies import get_account_service, get_current_claims
from account_engine.api.models import (
    CompanyResponse,
    ErrorResponse,
    UpdateUserRequest,
    UserResponse,
)
from account_engine.domain.accounts import AccountService
from account_engine.domain.models import SessionClaims

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid token"}},
)


# /me routes are declared before /{user_id} so "me" is never parsed as an ID


@router.get("/me", response_model=UserResponse, summary="Get my profile")
def get_my_profile(
    claims: SessionClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
) -> UserResponse:
    return UserResponse.from_domain(service.get_by_id(claims.user_id))


@router.put("/me", response_model=UserResponse, summary="Update my profile")
def update_my_profile(
    request_data: UpdateUserRequest,
    claims: SessionClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
) -> UserResponse:
    account = service.update_profile(
        claims.user_id, request_data.name, request_data.phone, request_data.gender
    )
    return UserResponse.from_domain(account)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT, summary="Delete my account")
def delete_my_account(
    claims: SessionClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
) -> None:
    """Soft delete. The email stays reserved."""
    service.delete(claims.user_id)


@router.get("/me/companies", response_model=list[CompanyResponse], summary="List my companies")
def list_my_companies(
    claims: SessionClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
) -> list[CompanyResponse]:
    return [CompanyResponse.from_domain(c) for c in service.list_companies(claims.user_id)]


@router.post(
    "/companies/{company_id}/join",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ErrorResponse, "description": "Company not found"},
        409: {"model": ErrorResponse, "description": "Already a member"},
    },
    summary="Join a company",
)
def join_company(
    company_id: int,
    claims: SessionClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
) -> None:
    service.join_company(claims.user_id, company_id)


@router.delete(
    "/companies/{company_id}/leave",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Not a member"}},
    summary="Leave a company",
)
def leave_company(
    company_id: int,
    claims: SessionClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
) -> None:
    service.leave_company(claims.user_id, company_id)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Get a user by ID",
)
def get_user(
    user_id: int,
    claims: SessionClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
) -> UserResponse:
    return UserResponse.from_domain(service.get_by_id(user_id))


@router.get("", response_model=list[UserResponse], summary="List users")
def list_users(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    claims: SessionClaims = Depends(get_current_claims),
    service: AccountService = Depends(get_account_service),
) -> list[UserResponse]:
    return [UserResponse.from_domain(a) for a in service.list_accounts(limit, offset)]
