from decimal import Decimal

import pytest

from pitaka.core.config import settings
from pitaka.models.user import Currency
from pitaka.schemas.account import AccountCreate
from pitaka.schemas.user import UserSetup
from pitaka.services.user_service import UserService


@pytest.mark.asyncio
async def test_default_profile_before_setup(store, user_id):
    profile = await UserService(store).get_profile(user_id)

    assert profile.id == user_id
    assert profile.display_name == "Me"
    assert profile.currency == "PHP"
    assert profile.setup_complete is False


@pytest.mark.asyncio
async def test_setup_saves_profile_and_first_account(store, user_id, balance_of):
    service = UserService(store)

    profile, account = await service.setup(user_id, UserSetup(
        display_name="Ana",
        email="ana@example.com",
        currency="USD",
        first_account=AccountCreate(name="Cash", opening_balance=Decimal("150")),
    ))

    assert profile.setup_complete is True
    assert account.name == "Cash"
    assert account.balance == Decimal("150.00")
    assert await balance_of(account.id) == Decimal("150.00")

    stored = await service.get_profile(user_id)
    assert stored.display_name == "Ana"
    assert stored.currency == "USD"
    assert stored.email == "ana@example.com"
    assert stored.setup_complete is True


@pytest.mark.asyncio
async def test_setup_without_account(store, user_id):
    profile, account = await UserService(store).setup(user_id, UserSetup(currency="EUR"))

    assert account is None
    assert profile.currency == "EUR"


def test_setup_currency_defaults_to_configured_currency(monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_CURRENCY", "EUR")

    assert UserSetup().currency == Currency.EUR
