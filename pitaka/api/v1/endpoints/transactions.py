from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from pitaka.api.deps import get_transaction_service
from pitaka.core.auth import get_current_user_id
from pitaka.core.config import settings
from pitaka.models.transaction import TransactionType
from pitaka.schemas.transaction import (
    CategoriesResponse,
    DateRange,
    TransactionCreate,
    TransactionPage,
    TransactionResponse,
    TransactionUpdate,
)
from pitaka.services.transaction_service import TransactionService

router = APIRouter()


@router.get("/", response_model=TransactionPage)
async def list_transactions(
    type: Optional[TransactionType] = None,
    account_id: Optional[str] = None,
    date_range: DateRange = DateRange.ALL,
    limit: int = Query(settings.TRANSACTIONS_PAGE_SIZE, ge=1, le=100),
    start_after: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    service: TransactionService = Depends(get_transaction_service)
):
    """List transactions, newest first. Pass next_cursor back as start_after."""
    return await service.list_transactions(
        user_id,
        tx_type=type,
        account_id=account_id,
        date_range=date_range,
        limit=limit,
        start_after=start_after,
    )


@router.get("/categories", response_model=CategoriesResponse)
async def list_categories():
    """Expense and income categories"""
    return TransactionService.categories()


@router.post("/", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    tx_in: TransactionCreate,
    user_id: str = Depends(get_current_user_id),
    service: TransactionService = Depends(get_transaction_service)
):
    """Record income or an expense and update the account balance"""
    return await service.create_transaction(user_id, tx_in)


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TransactionService = Depends(get_transaction_service)
):
    return await service.get_transaction(user_id, transaction_id)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def edit_transaction(
    transaction_id: str,
    tx_in: TransactionUpdate,
    user_id: str = Depends(get_current_user_id),
    service: TransactionService = Depends(get_transaction_service)
):
    """Edit a transaction, moving the balance difference"""
    return await service.edit_transaction(user_id, transaction_id, tx_in)


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TransactionService = Depends(get_transaction_service)
):
    """Delete a transaction and undo its balance effect"""
    await service.delete_transaction(user_id, transaction_id)
    return {"message": "Transaction deleted successfully"}
