from fastapi import APIRouter

from pitaka.api.v1.endpoints import accounts, debts, paluwagans, transactions, users

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(accounts.router, prefix="/accounts", tags=["accounts"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
api_router.include_router(debts.router, prefix="/debts", tags=["debts"])
api_router.include_router(paluwagans.router, prefix="/paluwagans", tags=["paluwagans"])
