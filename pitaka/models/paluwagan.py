from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from pitaka.models.base import DocumentModel, Money, utcnow


class PaluwaganNumber(BaseModel):
    """One slot in the pool; receives the full pool once, on ``payout_date``."""
    number: int
    payout_date: date
    is_paid: bool = False
    is_owner: bool = False
    owner_name: Optional[str] = None  # snapshot of the holder's display name
    account_id: Optional[str] = None


class WeeklyPayment(BaseModel):
    """One contribution cycle: amount_per_number x numbers owned."""
    week_number: int
    due_date: date
    is_paid: bool = False
    amount: Money
    account_id: Optional[str] = None


class Paluwagan(DocumentModel):
    name: str
    amount_per_number: Money
    payout_per_number: Money
    start_date: date
    total_numbers: int
    organizer: str
    description: Optional[str] = None
    numbers: List[PaluwaganNumber] = []
    weekly_payments: List[WeeklyPayment] = []
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def owned_numbers(self) -> List[PaluwaganNumber]:
        return [n for n in self.numbers if n.is_owner]
