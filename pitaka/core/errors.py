"""Domain errors raised by the store, repositories and settlement services."""
from decimal import Decimal
from typing import Optional


class FinanceError(Exception):
    """Base class for every error surfaced to the API boundary."""
    kind = "finance_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FinanceError):
    """Missing or malformed input, caught before any write."""
    kind = "validation_error"


class InsufficientFunds(FinanceError):
    """A balance change would leave an account below zero."""
    kind = "insufficient_funds"

    def __init__(
        self,
        account_name: str,
        balance: Decimal,
        message: Optional[str] = None,
        max_amount: Optional[Decimal] = None
    ):
        self.account_name = account_name
        self.balance = balance
        self.max_amount = max_amount
        if message is None:
            message = f"Insufficient funds in {account_name}. Available: {balance:.2f}"
        super().__init__(message)


class NotYetAvailable(FinanceError):
    """A paluwagan payout was settled before its payout date."""
    kind = "not_yet_available"


class NotFound(FinanceError):
    """A referenced document does not exist."""
    kind = "not_found"


class StoreWriteFailure(FinanceError):
    """The underlying document store rejected or failed a write."""
    kind = "store_write_failure"
