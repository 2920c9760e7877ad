from fastapi import APIRouter

from app.api.routes import (
    account_categories,
    auth,
    bank_accounts,
    bank_transactions,
    financial_accounts,
    health,
    payment_plans,
    sale_commissions,
    sales,
)

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(bank_accounts.router)
api_router.include_router(bank_transactions.router)
api_router.include_router(financial_accounts.router)
api_router.include_router(sales.router)
api_router.include_router(payment_plans.router)
api_router.include_router(sale_commissions.router)
api_router.include_router(account_categories.router)
