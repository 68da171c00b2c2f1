from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from pitaka.models.base import Money
from pitaka.models.paluwagan import Paluwagan
from pitaka.models.settlement import SettlementMode
from pitaka.utils import schedules


class PaluwaganCreate(BaseModel):
    """payout_per_number is derived, never accepted from the client"""
    name: str = Field(..., min_length=1, max_length=100)
    amount_per_number: Money
    start_date: date
    total_numbers: int = Field(..., ge=1)
    organizer: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    owned_numbers: List[int] = Field(..., min_length=1)


class PaluwaganUpdate(BaseModel):
    """Schedule fields regenerate the pool and are only honoured while nothing is settled"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    organizer: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    amount_per_number: Optional[Money] = None
    start_date: Optional[date] = None
    total_numbers: Optional[int] = Field(None, ge=1)
    owned_numbers: Optional[List[int]] = None


class WeeklyPaymentSettle(BaseModel):
    week_numbers: List[int] = Field(..., min_length=1)
    mode: SettlementMode = SettlementMode.MARK_ONLY
    account_id: Optional[str] = None


class WeeklyPaymentUnmark(BaseModel):
    week_numbers: List[int] = Field(..., min_length=1)


class PayoutSettle(BaseModel):
    numbers: List[int] = Field(..., min_length=1)
    mode: SettlementMode = SettlementMode.MARK_ONLY
    account_id: Optional[str] = None


class PayoutUnmark(BaseModel):
    numbers: List[int] = Field(..., min_length=1)


class PaluwaganNumberResponse(BaseModel):
    number: int
    payout_date: date
    is_paid: bool
    is_owner: bool
    owner_name: Optional[str] = None
    account_id: Optional[str] = None

    model_config = {"from_attributes": True}


class WeeklyPaymentResponse(BaseModel):
    week_number: int
    due_date: date
    is_paid: bool
    amount: Money
    account_id: Optional[str] = None

    model_config = {"from_attributes": True}


class PaluwaganResponse(BaseModel):
    id: str
    name: str
    amount_per_number: Money
    payout_per_number: Money
    start_date: date
    total_numbers: int
    organizer: str
    description: Optional[str] = None
    numbers: List[PaluwaganNumberResponse]
    weekly_payments: List[WeeklyPaymentResponse]
    created_at: datetime
    updated_at: datetime

    # Derived
    owned_numbers: List[int]
    total_paid: Money
    total_received: Money
    net_position: Money
    current_week: int
    next_payout: Optional[PaluwaganNumberResponse] = None
    current_week_payment: Optional[WeeklyPaymentResponse] = None
    status: schedules.ScheduleStatus

    @classmethod
    def from_paluwagan(cls, paluwagan: Paluwagan, today: date, due_soon_days: int = 7) -> "PaluwaganResponse":
        next_payout = schedules.next_payout(paluwagan, today)
        current_payment = schedules.current_week_payment(paluwagan, today, due_soon_days)
        return cls(
            id=paluwagan.id,
            name=paluwagan.name,
            amount_per_number=paluwagan.amount_per_number,
            payout_per_number=paluwagan.payout_per_number,
            start_date=paluwagan.start_date,
            total_numbers=paluwagan.total_numbers,
            organizer=paluwagan.organizer,
            description=paluwagan.description,
            numbers=[PaluwaganNumberResponse.model_validate(n) for n in paluwagan.numbers],
            weekly_payments=[WeeklyPaymentResponse.model_validate(p) for p in paluwagan.weekly_payments],
            created_at=paluwagan.created_at,
            updated_at=paluwagan.updated_at,
            owned_numbers=[n.number for n in paluwagan.owned_numbers],
            total_paid=schedules.total_paid(paluwagan),
            total_received=schedules.total_received(paluwagan),
            net_position=schedules.net_position(paluwagan),
            current_week=schedules.current_week(paluwagan, today),
            next_payout=PaluwaganNumberResponse.model_validate(next_payout) if next_payout else None,
            current_week_payment=(
                WeeklyPaymentResponse.model_validate(current_payment) if current_payment else None
            ),
            status=schedules.paluwagan_status(paluwagan, today, due_soon_days),
        )
