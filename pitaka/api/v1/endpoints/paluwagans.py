from typing import List

from fastapi import APIRouter, Depends, status

from pitaka.api.deps import get_paluwagan_service
from pitaka.core.auth import get_current_user_id
from pitaka.core.config import settings
from pitaka.models.paluwagan import Paluwagan
from pitaka.schemas.paluwagan import (
    PaluwaganCreate,
    PaluwaganResponse,
    PaluwaganUpdate,
    PayoutSettle,
    PayoutUnmark,
    WeeklyPaymentSettle,
    WeeklyPaymentUnmark,
)
from pitaka.services.paluwagan_service import PaluwaganService
from pitaka.utils.schedules import local_today

router = APIRouter()


def _respond(paluwagan: Paluwagan) -> PaluwaganResponse:
    return PaluwaganResponse.from_paluwagan(paluwagan, local_today(), settings.DUE_SOON_DAYS)


@router.get("/", response_model=List[PaluwaganResponse])
async def list_paluwagans(
    user_id: str = Depends(get_current_user_id),
    service: PaluwaganService = Depends(get_paluwagan_service)
):
    return [_respond(p) for p in await service.list_paluwagans(user_id)]


@router.post("/", response_model=PaluwaganResponse, status_code=status.HTTP_201_CREATED)
async def create_paluwagan(
    pal_in: PaluwaganCreate,
    user_id: str = Depends(get_current_user_id),
    service: PaluwaganService = Depends(get_paluwagan_service)
):
    """Create a paluwagan with its payout and weekly payment schedules"""
    return _respond(await service.create_paluwagan(user_id, pal_in))


@router.get("/{paluwagan_id}", response_model=PaluwaganResponse)
async def get_paluwagan(
    paluwagan_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PaluwaganService = Depends(get_paluwagan_service)
):
    return _respond(await service.get_paluwagan(user_id, paluwagan_id))


@router.patch("/{paluwagan_id}", response_model=PaluwaganResponse)
async def update_paluwagan(
    paluwagan_id: str,
    pal_in: PaluwaganUpdate,
    user_id: str = Depends(get_current_user_id),
    service: PaluwaganService = Depends(get_paluwagan_service)
):
    return _respond(await service.update_paluwagan(user_id, paluwagan_id, pal_in))


@router.delete("/{paluwagan_id}")
async def delete_paluwagan(
    paluwagan_id: str,
    user_id: str = Depends(get_current_user_id),
    service: PaluwaganService = Depends(get_paluwagan_service)
):
    await service.delete_paluwagan(user_id, paluwagan_id)
    return {"message": "Paluwagan deleted successfully"}


@router.post("/{paluwagan_id}/payments/settle", response_model=PaluwaganResponse)
async def settle_weekly_payments(
    paluwagan_id: str,
    settle_in: WeeklyPaymentSettle,
    user_id: str = Depends(get_current_user_id),
    service: PaluwaganService = Depends(get_paluwagan_service)
):
    return _respond(await service.settle_weekly_payments(user_id, paluwagan_id, settle_in))


@router.post("/{paluwagan_id}/payments/unmark", response_model=PaluwaganResponse)
async def unmark_weekly_payments(
    paluwagan_id: str,
    unmark_in: WeeklyPaymentUnmark,
    user_id: str = Depends(get_current_user_id),
    service: PaluwaganService = Depends(get_paluwagan_service)
):
    return _respond(await service.unmark_weekly_payments(user_id, paluwagan_id, unmark_in))


@router.post("/{paluwagan_id}/payouts/settle", response_model=PaluwaganResponse)
async def settle_payouts(
    paluwagan_id: str,
    settle_in: PayoutSettle,
    user_id: str = Depends(get_current_user_id),
    service: PaluwaganService = Depends(get_paluwagan_service)
):
    """Receive payouts whose date has arrived"""
    return _respond(await service.settle_payouts(user_id, paluwagan_id, settle_in))


@router.post("/{paluwagan_id}/payouts/unmark", response_model=PaluwaganResponse)
async def unmark_payouts(
    paluwagan_id: str,
    unmark_in: PayoutUnmark,
    user_id: str = Depends(get_current_user_id),
    service: PaluwaganService = Depends(get_paluwagan_service)
):
    return _respond(await service.unmark_payouts(user_id, paluwagan_id, unmark_in))
