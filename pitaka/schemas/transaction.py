from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from pitaka.models.base import Money
from pitaka.models.transaction import TransactionType


class DateRange(str, Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"


class TransactionCreate(BaseModel):
    account_id: str
    type: TransactionType
    amount: Money
    description: str = Field(..., max_length=200)
    category: str
    date: Optional[datetime] = None  # defaults to now


class TransactionUpdate(BaseModel):
    """Any subset of fields; omitted ones keep their current value"""
    account_id: Optional[str] = None
    type: Optional[TransactionType] = None
    amount: Optional[Money] = None
    description: Optional[str] = Field(None, max_length=200)
    category: Optional[str] = None
    date: Optional[datetime] = None


class TransactionResponse(BaseModel):
    id: str
    type: TransactionType
    amount: Money
    description: str
    category: str
    account_id: str
    account_name: str
    date: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class TransactionPage(BaseModel):
    items: List[TransactionResponse]
    next_cursor: Optional[str] = None  # id of the last item when more remain


class CategoriesResponse(BaseModel):
    expense: List[str]
    income: List[str]
