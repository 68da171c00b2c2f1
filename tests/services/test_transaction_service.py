from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from pitaka.core.errors import InsufficientFunds, NotFound, ValidationError
from pitaka.schemas.account import AccountUpdate
from pitaka.schemas.transaction import DateRange, TransactionCreate, TransactionUpdate
from pitaka.services.account_service import AccountService
from pitaka.services.transaction_service import TransactionService, range_start


def expense(account_id, amount, description="Lunch", category="Food", **kwargs):
    return TransactionCreate(
        account_id=account_id,
        type="expense",
        amount=Decimal(amount),
        description=description,
        category=category,
        **kwargs,
    )


def income(account_id, amount, description="Pay", category="Salary", **kwargs):
    return TransactionCreate(
        account_id=account_id,
        type="income",
        amount=Decimal(amount),
        description=description,
        category=category,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_create_edit_delete_round_trip(store, user_id, make_account, balance_of, ledger_sum):
    service = TransactionService(store)
    account = await make_account("Wallet", "100")

    spent = await service.create_transaction(user_id, expense(account.id, "30"))
    assert await balance_of(account.id) == Decimal("70.00")

    await service.edit_transaction(user_id, spent.id, TransactionUpdate(amount=Decimal("50")))
    assert await balance_of(account.id) == Decimal("50.00")

    await service.delete_transaction(user_id, spent.id)
    assert await balance_of(account.id) == Decimal("100.00")
    assert await ledger_sum(account.id) == Decimal("100.00")


@pytest.mark.asyncio
async def test_expense_equal_to_balance_succeeds_one_cent_more_fails(store, user_id, make_account, balance_of):
    service = TransactionService(store)
    first = await make_account("First", "250")
    second = await make_account("Second", "250")

    await service.create_transaction(user_id, expense(first.id, "250"))
    assert await balance_of(first.id) == Decimal("0.00")

    with pytest.raises(InsufficientFunds) as exc:
        await service.create_transaction(user_id, expense(second.id, "250.01"))
    assert "250.00" in exc.value.message
    assert await balance_of(second.id) == Decimal("250.00")


@pytest.mark.asyncio
async def test_overspend_is_rejected_and_balance_kept(store, user_id, make_account, balance_of):
    service = TransactionService(store)
    account = await make_account("Wallet", "0")

    await service.create_transaction(user_id, income(account.id, "500"))
    with pytest.raises(InsufficientFunds):
        await service.create_transaction(user_id, expense(account.id, "600"))

    assert await balance_of(account.id) == Decimal("500.00")


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides, message", [
    ({"amount": Decimal("0")}, "Please enter a valid amount"),
    ({"description": "   "}, "Please enter a description"),
    ({"category": ""}, "Please select a category"),
    ({"category": "Salary"}, "Unknown expense category: Salary"),
])
async def test_create_validation(store, user_id, wallet, overrides, message):
    service = TransactionService(store)
    fields = {"account_id": wallet.id, "type": "expense", "amount": Decimal("10"),
              "description": "Lunch", "category": "Food", **overrides}

    with pytest.raises(ValidationError) as exc:
        await service.create_transaction(user_id, TransactionCreate(**fields))
    assert exc.value.message == message


@pytest.mark.asyncio
async def test_create_against_unknown_account(store, user_id):
    service = TransactionService(store)
    with pytest.raises(NotFound):
        await service.create_transaction(user_id, income("507f191e810c19729de860ea", "5"))


@pytest.mark.asyncio
async def test_edit_same_account_reports_max_amount(store, user_id, make_account, balance_of):
    service = TransactionService(store)
    account = await make_account("Wallet", "100")
    spent = await service.create_transaction(user_id, expense(account.id, "40"))

    with pytest.raises(InsufficientFunds) as exc:
        await service.edit_transaction(user_id, spent.id, TransactionUpdate(amount=Decimal("100.01")))

    assert exc.value.max_amount == Decimal("100.00")
    assert await balance_of(account.id) == Decimal("60.00")


@pytest.mark.asyncio
async def test_edit_type_flip_moves_twice_the_amount(store, user_id, make_account, balance_of):
    service = TransactionService(store)
    account = await make_account("Wallet", "100")
    spent = await service.create_transaction(user_id, expense(account.id, "20"))

    await service.edit_transaction(
        user_id, spent.id, TransactionUpdate(type="income", category="Refund")
    )

    assert await balance_of(account.id) == Decimal("120.00")


@pytest.mark.asyncio
async def test_edit_moves_between_accounts(store, user_id, make_account, balance_of, ledger_sum):
    service = TransactionService(store)
    cash = await make_account("Cash", "100")
    bank = await make_account("Bank", "500")
    spent = await service.create_transaction(user_id, expense(cash.id, "40"))

    edited = await service.edit_transaction(user_id, spent.id, TransactionUpdate(account_id=bank.id))

    assert edited.account_name == "Bank"
    assert await balance_of(cash.id) == Decimal("100.00")
    assert await balance_of(bank.id) == Decimal("460.00")
    assert await ledger_sum(cash.id) == await balance_of(cash.id)
    assert await ledger_sum(bank.id) == await balance_of(bank.id)


@pytest.mark.asyncio
async def test_edit_move_checks_each_account(store, user_id, make_account, balance_of):
    service = TransactionService(store)
    cash = await make_account("Cash", "0")
    bank = await make_account("Bank", "10")
    earned = await service.create_transaction(user_id, income(cash.id, "50"))
    await service.create_transaction(user_id, expense(cash.id, "30"))

    # Moving the income away would leave Cash at -30
    with pytest.raises(InsufficientFunds) as exc:
        await service.edit_transaction(user_id, earned.id, TransactionUpdate(account_id=bank.id))

    assert exc.value.account_name == "Cash"
    assert await balance_of(cash.id) == Decimal("20.00")
    assert await balance_of(bank.id) == Decimal("10.00")


@pytest.mark.asyncio
async def test_deleting_spent_income_is_rejected(store, user_id, make_account, balance_of):
    service = TransactionService(store)
    account = await make_account("Wallet", "0")
    earned = await service.create_transaction(user_id, income(account.id, "100"))
    await service.create_transaction(user_id, expense(account.id, "80"))

    with pytest.raises(InsufficientFunds):
        await service.delete_transaction(user_id, earned.id)

    assert await balance_of(account.id) == Decimal("20.00")


@pytest.mark.asyncio
async def test_account_name_snapshot_survives_rename(store, user_id, wallet):
    service = TransactionService(store)
    spent = await service.create_transaction(user_id, expense(wallet.id, "5"))
    await AccountService(store).update_account(user_id, wallet.id, AccountUpdate(name="Purse"))

    stored = await service.get_transaction(user_id, spent.id)
    assert stored.account_name == "Wallet"


@pytest.mark.asyncio
async def test_list_pages_newest_first(store, user_id, wallet):
    service = TransactionService(store)
    base = datetime(2026, 3, 1, 12, tzinfo=timezone.utc)
    for day in range(5):
        await service.create_transaction(
            user_id, expense(wallet.id, "1", description=f"Day {day}", date=base + timedelta(days=day))
        )

    first = await service.list_transactions(user_id, tx_type="expense", limit=3)
    assert [t.description for t in first.items] == ["Day 4", "Day 3", "Day 2"]
    assert first.next_cursor == first.items[-1].id

    second = await service.list_transactions(user_id, tx_type="expense", limit=3, start_after=first.next_cursor)
    assert [t.description for t in second.items] == ["Day 1", "Day 0"]
    assert second.next_cursor is None


@pytest.mark.asyncio
async def test_list_date_range_filter(store, user_id, wallet):
    service = TransactionService(store)
    now = datetime(2026, 3, 20, 15, tzinfo=timezone.utc)
    await service.create_transaction(user_id, expense(wallet.id, "1", description="Old", date=now - timedelta(days=10)))
    await service.create_transaction(user_id, expense(wallet.id, "1", description="Recent", date=now - timedelta(days=2)))
    await service.create_transaction(user_id, expense(wallet.id, "1", description="Today", date=now - timedelta(hours=1)))

    week = await service.list_transactions(user_id, tx_type="expense", date_range=DateRange.WEEK, now=now)
    today = await service.list_transactions(user_id, tx_type="expense", date_range=DateRange.TODAY, now=now)
    month = await service.list_transactions(user_id, tx_type="expense", date_range=DateRange.MONTH, now=now)

    assert [t.description for t in week.items] == ["Today", "Recent"]
    assert [t.description for t in today.items] == ["Today"]
    assert [t.description for t in month.items] == ["Today", "Recent", "Old"]


def test_range_start():
    now = datetime(2026, 3, 31, 9, 30, tzinfo=timezone.utc)
    assert range_start(DateRange.ALL, now) is None
    assert range_start(DateRange.TODAY, now) == datetime(2026, 3, 31, tzinfo=timezone.utc)
    assert range_start(DateRange.WEEK, now) == datetime(2026, 3, 24, 9, 30, tzinfo=timezone.utc)
    assert range_start(DateRange.MONTH, now) == datetime(2026, 2, 28, 9, 30, tzinfo=timezone.utc)


def test_categories():
    categories = TransactionService.categories()
    assert "Food" in categories.expense
    assert "Salary" in categories.income
    assert "Debt" not in categories.expense
