"""Company routes - CRUD and lookup by code."""

from fastapi import APIRouter, Depends, Query, status

from account_engine.api.dependencies import get_company_service, get_current_claims
from account_engine.api.models import (
    CompanyResponse,
    CreateCompanyRequest,
    ErrorResponse,
    UpdateCompanyRequest,
)
from account_engine.domain.companies import CompanyService

router = APIRouter(
    prefix="/companies",
    tags=["companies"],
    dependencies=[Depends(get_current_claims)],
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid token"},
        404: {"model": ErrorResponse, "description": "Company not found"},
    },
)


@router.post(
    "",
    response_model=CompanyResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse, "description": "Company code already exists"}},
    summary="Create a company",
)
def create_company(
    request_data: CreateCompanyRequest,
    service: CompanyService = Depends(get_company_service),
) -> CompanyResponse:
    company = service.create(request_data.name, request_data.code, request_data.address)
    return CompanyResponse.from_domain(company)


@router.get("/code/{code}", response_model=CompanyResponse, summary="Get a company by code")
def get_company_by_code(
    code: str,
    service: CompanyService = Depends(get_company_service),
) -> CompanyResponse:
    return CompanyResponse.from_domain(service.get_by_code(code))


@router.get("/{company_id}", response_model=CompanyResponse, summary="Get a company by ID")
def get_company(
    company_id: int,
    service: CompanyService = Depends(get_company_service),
) -> CompanyResponse:
    return CompanyResponse.from_domain(service.get_by_id(company_id))


@router.put("/{company_id}", response_model=CompanyResponse, summary="Update a company")
def update_company(
    company_id: int,
    request_data: UpdateCompanyRequest,
    service: CompanyService = Depends(get_company_service),
) -> CompanyResponse:
    company = service.update(company_id, request_data.name, request_data.address)
    return CompanyResponse.from_domain(company)


@router.delete(
    "/{company_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a company"
)
def delete_company(
    company_id: int,
    service: CompanyService = Depends(get_company_service),
) -> None:
    service.delete(company_id)


@router.get("", response_model=list[CompanyResponse], summary="List companies")
def list_companies(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    service: CompanyService = Depends(get_company_service),
) -> list[CompanyResponse]:
    return [CompanyResponse.from_domain(c) for c in service.list(limit, offset)]
