from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import Field, field_validator

from pitaka.models.base import DocumentModel, Money, as_utc, utcnow


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


EXPENSE_CATEGORIES = [
    "Food", "Transport", "Utilities", "Rent", "Entertainment",
    "Shopping", "Health", "Education", "Subscriptions", "Other",
]

INCOME_CATEGORIES = [
    "Salary", "Bonus", "Refund", "Gift", "Interest", "Investment", "Other",
]

# Written by the ledger itself (opening balances, debt and paluwagan settlements)
INITIAL_CATEGORY = "Initial"
DEBT_CATEGORY = "Debt"
PALUWAGAN_CATEGORY = "Paluwagan"
SYSTEM_CATEGORIES = [INITIAL_CATEGORY, DEBT_CATEGORY, PALUWAGAN_CATEGORY]


def categories_for(tx_type: str) -> list[str]:
    if tx_type == TransactionType.INCOME:
        return INCOME_CATEGORIES
    return EXPENSE_CATEGORIES


def signed_amount(tx_type: str, amount: Decimal) -> Decimal:
    """Effect of a transaction on its account balance."""
    return amount if tx_type == TransactionType.INCOME else -amount


def opposite(tx_type: str) -> TransactionType:
    if tx_type == TransactionType.INCOME:
        return TransactionType.EXPENSE
    return TransactionType.INCOME


class Transaction(DocumentModel):
    type: TransactionType
    amount: Money
    description: str
    category: str
    account_id: str
    account_name: str = ""  # snapshot taken at write time, never re-synced
    date: datetime = Field(default_factory=utcnow)

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def effect(self) -> Decimal:
        return signed_amount(self.type, self.amount)
