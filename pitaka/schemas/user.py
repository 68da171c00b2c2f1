from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from pitaka.core.config import settings
from pitaka.models.user import CURRENCY_SYMBOLS, Currency, UserProfile
from pitaka.schemas.account import AccountCreate, AccountResponse


class UserSetup(BaseModel):
    """First-run setup: preferences plus the first account"""
    display_name: str = Field("Me", min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    currency: Currency = Field(default_factory=lambda: Currency(settings.DEFAULT_CURRENCY))
    first_account: Optional[AccountCreate] = None


class UserProfileResponse(BaseModel):
    id: str
    email: Optional[EmailStr] = None
    display_name: str
    currency: Currency
    currency_symbol: str
    setup_complete: bool

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "UserProfileResponse":
        return cls(
            id=profile.id,
            email=profile.email,
            display_name=profile.display_name,
            currency=profile.currency,
            currency_symbol=CURRENCY_SYMBOLS[Currency(profile.currency)],
            setup_complete=profile.setup_complete,
        )


class UserSetupResponse(BaseModel):
    profile: UserProfileResponse
    account: Optional[AccountResponse] = None
