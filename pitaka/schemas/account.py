from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from pitaka.models.account import AccountType
from pitaka.models.base import Money, ZERO
from pitaka.schemas.transaction import TransactionResponse


class AccountCreate(BaseModel):
    """Schema for creating an account"""
    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType = AccountType.CASH
    opening_balance: Money = ZERO


class AccountUpdate(BaseModel):
    """Name and type only; balances move through transactions"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[AccountType] = None


class AccountResponse(BaseModel):
    id: str
    name: str
    type: AccountType
    balance: Money
    created_at: datetime

    model_config = {"from_attributes": True}


class AccountListResponse(BaseModel):
    accounts: List[AccountResponse]
    total_balance: Money


class AccountOverview(BaseModel):
    """Dashboard figures"""
    total_balance: Money
    account_count: int
    top_accounts: List[AccountResponse]
    recent_transactions: List[TransactionResponse]
