from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from pitaka.models.base import Money
from pitaka.models.debt import Debt, DebtType, Frequency, PaymentSchedule, PaymentType
from pitaka.models.settlement import SettlementMode
from pitaka.utils import schedules


class DebtCreate(BaseModel):
    type: DebtType
    name: str = Field(..., min_length=1, max_length=100)
    counterparty_name: str = Field(..., min_length=1, max_length=100)
    total_amount: Money
    payment_type: PaymentType = PaymentType.SINGLE
    due_date: Optional[date] = None             # single
    number_of_payments: Optional[int] = None    # multiple
    start_date: Optional[date] = None           # multiple
    frequency: Frequency = Frequency.WEEKLY     # multiple


class DebtUpdate(BaseModel):
    """
    Schedule fields are only honoured while no installment is paid;
    the schedule is then regenerated from the merged values.
    """
    type: Optional[DebtType] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    counterparty_name: Optional[str] = Field(None, min_length=1, max_length=100)
    total_amount: Optional[Money] = None
    payment_type: Optional[PaymentType] = None
    due_date: Optional[date] = None
    number_of_payments: Optional[int] = None
    start_date: Optional[date] = None
    frequency: Optional[Frequency] = None


class InstallmentSettle(BaseModel):
    indexes: List[int] = Field(..., min_length=1)
    mode: SettlementMode = SettlementMode.MARK_ONLY
    account_id: Optional[str] = None


class InstallmentUnmark(BaseModel):
    indexes: List[int] = Field(..., min_length=1)


class PaymentScheduleResponse(BaseModel):
    due_date: date
    amount: Money
    is_paid: bool
    account_id: Optional[str] = None

    model_config = {"from_attributes": True}


class DebtResponse(BaseModel):
    id: str
    type: DebtType
    name: str
    counterparty_name: str
    total_amount: Money
    payment_schedule: List[PaymentScheduleResponse]
    created_at: datetime
    updated_at: datetime

    # Derived
    payment_type: PaymentType
    frequency: Frequency
    remaining_amount: Money
    paid_count: int
    progress: int
    next_due_date: Optional[date] = None
    status: schedules.ScheduleStatus
    overdue_indexes: List[int] = []
    upcoming_indexes: List[int] = []

    @classmethod
    def from_debt(cls, debt: Debt, today: date, due_soon_days: int = 7) -> "DebtResponse":
        schedule: List[PaymentSchedule] = debt.payment_schedule
        paid_count = sum(1 for ps in schedule if ps.is_paid)
        return cls(
            id=debt.id,
            type=debt.type,
            name=debt.name,
            counterparty_name=debt.counterparty_name,
            total_amount=debt.total_amount,
            payment_schedule=[PaymentScheduleResponse.model_validate(ps) for ps in schedule],
            created_at=debt.created_at,
            updated_at=debt.updated_at,
            payment_type=PaymentType.MULTIPLE if len(schedule) > 1 else PaymentType.SINGLE,
            frequency=schedules.determine_frequency(schedule),
            remaining_amount=schedules.remaining_amount(schedule),
            paid_count=paid_count,
            progress=schedules.progress_percentage(paid_count, len(schedule)),
            next_due_date=schedules.next_due_date(schedule),
            status=schedules.debt_status(schedule, today, due_soon_days),
            overdue_indexes=schedules.overdue_installments(schedule, today),
            upcoming_indexes=schedules.upcoming_installments(schedule, today, due_soon_days),
        )


class DebtListResponse(BaseModel):
    debts: List[DebtResponse]
    total_owe: Money   # remaining across "owe" debts
    total_owed: Money  # remaining across "owed" debts
