"""API routers for the fintrack backend."""
from fastapi import APIRouter

from . import health, transactions, users


def get_api_router() -> APIRouter:
    """Return the root API router."""

    api_router = APIRouter()
    api_router.include_router(health.router)
    api_router.include_router(users.router)
    api_router.include_router(transactions.router)
    return api_router
