"""
API v1 package.

Contains versioned API routes for the account engine.
"""

from fastapi import APIRouter

from account_engine.api.v1.auth import router as auth_router
from account_engine.api.v1.companies import router as companies_router
from account_engine.api.v1.users import router as users_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(users_router)
router.include_router(companies_router)

__all__ = ["router"]
