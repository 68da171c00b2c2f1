from enum import Enum
from typing import Optional

from pydantic import EmailStr

from pitaka.models.base import DocumentModel


class Currency(str, Enum):
    PHP = "PHP"
    USD = "USD"
    EUR = "EUR"


CURRENCY_SYMBOLS = {
    Currency.PHP: "₱",
    Currency.USD: "$",
    Currency.EUR: "€",
}


class UserProfile(DocumentModel):
    """
    Per-user preferences stored at ``users/{uid}``.

    The currency is a display preference; amounts are never converted.
    """
    email: Optional[EmailStr] = None
    display_name: str = "Me"
    currency: Currency = Currency.PHP
    setup_complete: bool = False
