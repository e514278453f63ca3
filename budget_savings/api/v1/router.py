"""
API v1 Router
"""

from fastapi import APIRouter
from budget_savings.api.v1.endpoints import income, expenses, goals, analytics

api_router = APIRouter()

api_router.include_router(
    income.router,
    prefix="/income",
    tags=["income"]
)

api_router.include_router(
    expenses.router,
    prefix="/expenses",
    tags=["expenses"]
)

api_router.include_router(
    goals.router,
    prefix="/goals",
    tags=["savings-goals"]
)

api_router.include_router(
    analytics.router,
    prefix="/analytics",
    tags=["analytics"]
)
