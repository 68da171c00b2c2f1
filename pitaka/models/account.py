from enum import Enum

from pydantic import Field

from pitaka.models.base import DocumentModel, Money, ZERO


class AccountType(str, Enum):
    CASH = "cash"
    BANK = "bank"
    CREDIT = "credit"
    EWALLET = "ewallet"


class Account(DocumentModel):
    """
    A money container owned by one user.

    Invariant: ``balance`` only moves through signed increments issued by
    the settlement services, never by writing a recomputed total.
    """
    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType = AccountType.CASH
    balance: Money = ZERO
