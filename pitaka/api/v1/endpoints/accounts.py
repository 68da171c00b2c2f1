from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from pitaka.api.deps import get_account_service, get_transaction_service
from pitaka.core.auth import get_current_user_id
from pitaka.core.config import settings
from pitaka.schemas.account import (
    AccountCreate,
    AccountListResponse,
    AccountOverview,
    AccountResponse,
    AccountUpdate,
)
from pitaka.schemas.transaction import TransactionPage
from pitaka.services.account_service import AccountService
from pitaka.services.transaction_service import TransactionService

router = APIRouter()


@router.get("/", response_model=AccountListResponse)
async def list_accounts(
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service)
):
    """List accounts with their total balance"""
    return await service.list_accounts(user_id)


@router.post("/", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    account_in: AccountCreate,
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service)
):
    """Create an account, recording any opening balance as income"""
    return await service.create_account(user_id, account_in)


@router.get("/overview", response_model=AccountOverview)
async def get_overview(
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service)
):
    """Dashboard totals, top accounts and recent transactions"""
    return await service.overview(user_id)


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service)
):
    return await service.get_account(user_id, account_id)


@router.patch("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: str,
    account_in: AccountUpdate,
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service)
):
    """Rename or change the type of an account"""
    return await service.update_account(user_id, account_id, account_in)


@router.delete("/{account_id}")
async def delete_account(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    service: AccountService = Depends(get_account_service)
):
    await service.delete_account(user_id, account_id)
    return {"message": "Account deleted successfully"}


@router.get("/{account_id}/transactions", response_model=TransactionPage)
async def list_account_transactions(
    account_id: str,
    limit: int = Query(settings.ACCOUNT_TRANSACTIONS_PAGE_SIZE, ge=1, le=100),
    start_after: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_account_service),
    transactions: TransactionService = Depends(get_transaction_service)
):
    """Newest transactions of one account"""
    await accounts.get_account(user_id, account_id)
    return await transactions.list_transactions(
        user_id,
        account_id=account_id,
        limit=limit,
        start_after=start_after,
    )
