from typing import Optional

from fastapi import APIRouter, Depends, status

from pitaka.api.deps import get_debt_service
from pitaka.core.auth import get_current_user_id
from pitaka.core.config import settings
from pitaka.models.debt import Debt, DebtType
from pitaka.schemas.debt import (
    DebtCreate,
    DebtListResponse,
    DebtResponse,
    DebtUpdate,
    InstallmentSettle,
    InstallmentUnmark,
)
from pitaka.services.debt_service import DebtService
from pitaka.utils.schedules import local_today

router = APIRouter()


def _respond(debt: Debt) -> DebtResponse:
    return DebtResponse.from_debt(debt, local_today(), settings.DUE_SOON_DAYS)


@router.get("/", response_model=DebtListResponse)
async def list_debts(
    type: Optional[DebtType] = None,
    user_id: str = Depends(get_current_user_id),
    service: DebtService = Depends(get_debt_service)
):
    """List debts with remaining totals"""
    return await service.list_debts(user_id, debt_type=type)


@router.post("/", response_model=DebtResponse, status_code=status.HTTP_201_CREATED)
async def create_debt(
    debt_in: DebtCreate,
    user_id: str = Depends(get_current_user_id),
    service: DebtService = Depends(get_debt_service)
):
    """Create a debt and its installment schedule"""
    return _respond(await service.create_debt(user_id, debt_in))


@router.get("/{debt_id}", response_model=DebtResponse)
async def get_debt(
    debt_id: str,
    user_id: str = Depends(get_current_user_id),
    service: DebtService = Depends(get_debt_service)
):
    return _respond(await service.get_debt(user_id, debt_id))


@router.patch("/{debt_id}", response_model=DebtResponse)
async def update_debt(
    debt_id: str,
    debt_in: DebtUpdate,
    user_id: str = Depends(get_current_user_id),
    service: DebtService = Depends(get_debt_service)
):
    return _respond(await service.update_debt(user_id, debt_id, debt_in))


@router.delete("/{debt_id}")
async def delete_debt(
    debt_id: str,
    user_id: str = Depends(get_current_user_id),
    service: DebtService = Depends(get_debt_service)
):
    await service.delete_debt(user_id, debt_id)
    return {"message": "Debt deleted successfully"}


@router.post("/{debt_id}/settle", response_model=DebtResponse)
async def settle_installments(
    debt_id: str,
    settle_in: InstallmentSettle,
    user_id: str = Depends(get_current_user_id),
    service: DebtService = Depends(get_debt_service)
):
    """Mark installments paid, optionally through an account"""
    return _respond(await service.settle_installments(user_id, debt_id, settle_in))


@router.post("/{debt_id}/unmark", response_model=DebtResponse)
async def unmark_installments(
    debt_id: str,
    unmark_in: InstallmentUnmark,
    user_id: str = Depends(get_current_user_id),
    service: DebtService = Depends(get_debt_service)
):
    """Mark installments unpaid, reversing account settlements"""
    return _respond(await service.unmark_installments(user_id, debt_id, unmark_in))
