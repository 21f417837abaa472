from fastapi import APIRouter

from spendbook.api.v1.routes import budget_categories, transactions

api_router = APIRouter()

api_router.include_router(transactions.router)
api_router.include_router(budget_categories.router)
