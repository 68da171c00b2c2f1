from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from pitaka.models.base import DocumentModel, Money, utcnow


class DebtType(str, Enum):
    OWE = "owe"    # user owes the counterparty
    OWED = "owed"  # counterparty owes the user


class PaymentType(str, Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"


class Frequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# Embedded documents don't need DocumentModel (no separate id)
class PaymentSchedule(BaseModel):
    due_date: date
    amount: Money
    is_paid: bool = False
    account_id: Optional[str] = None  # set only when settled through an account


class Debt(DocumentModel):
    type: DebtType
    name: str
    counterparty_name: str
    total_amount: Money
    payment_schedule: List[PaymentSchedule] = []
    updated_at: datetime = Field(default_factory=utcnow)
