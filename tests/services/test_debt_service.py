from datetime import date, timedelta
from decimal import Decimal

import pytest

from pitaka.core.errors import InsufficientFunds, ValidationError
from pitaka.repositories.transaction_repo import TransactionRepository
from pitaka.schemas.debt import DebtCreate, DebtResponse, DebtUpdate, InstallmentSettle, InstallmentUnmark
from pitaka.schemas.transaction import TransactionCreate
from pitaka.services.debt_service import DebtService
from pitaka.services.transaction_service import TransactionService
from pitaka.utils.schedules import ScheduleStatus

START = date(2026, 2, 2)


def owe_in_four(total="1000"):
    return DebtCreate(
        type="owe",
        name="Laptop loan",
        counterparty_name="Ben",
        total_amount=Decimal(total),
        payment_type="multiple",
        number_of_payments=4,
        start_date=START,
        frequency="weekly",
    )


@pytest.mark.asyncio
async def test_owe_debt_settled_through_account(store, user_id, wallet, balance_of, ledger_sum):
    service = DebtService(store)
    debt = await service.create_debt(user_id, owe_in_four())
    assert [ps.amount for ps in debt.payment_schedule] == [Decimal("250.00")] * 4

    settled = await service.settle_installments(user_id, debt.id, InstallmentSettle(
        indexes=[0, 1, 2, 3], mode="affect_account", account_id=wallet.id
    ))

    assert await balance_of(wallet.id) == Decimal("0.00")
    assert await ledger_sum(wallet.id) == Decimal("0.00")
    assert all(ps.is_paid and ps.account_id == wallet.id for ps in settled.payment_schedule)
    summary = DebtResponse.from_debt(settled, START)
    assert summary.status == ScheduleStatus.PAID_OFF
    assert summary.progress == 100
    assert summary.remaining_amount == Decimal("0.00")

    payments = await TransactionRepository(store).list_transactions(user_id, tx_type="expense")
    assert len(payments) == 4
    assert {t.description for t in payments} == {"Debt payment to Ben"}
    assert {t.category for t in payments} == {"Debt"}


@pytest.mark.asyncio
async def test_settle_then_unmark_restores_state(store, user_id, wallet, balance_of, ledger_sum):
    service = DebtService(store)
    debt = await service.create_debt(user_id, owe_in_four())

    await service.settle_installments(user_id, debt.id, InstallmentSettle(
        indexes=[1], mode="affect_account", account_id=wallet.id
    ))
    assert await balance_of(wallet.id) == Decimal("750.00")

    restored = await service.unmark_installments(user_id, debt.id, InstallmentUnmark(indexes=[1]))

    assert await balance_of(wallet.id) == Decimal("1000.00")
    assert await ledger_sum(wallet.id) == Decimal("1000.00")
    assert restored.payment_schedule[1].is_paid is False
    assert restored.payment_schedule[1].account_id is None
    reversals = await TransactionRepository(store).list_transactions(user_id, tx_type="income")
    assert "Reversal of debt payment to Ben" in [t.description for t in reversals]


@pytest.mark.asyncio
async def test_owed_debt_settles_as_income(store, user_id, make_account, balance_of):
    service = DebtService(store)
    account = await make_account("Bank", "0")
    debt = await service.create_debt(user_id, DebtCreate(
        type="owed", name="Concert ticket", counterparty_name="Carla",
        total_amount=Decimal("300"), payment_type="single", due_date=START,
    ))

    await service.settle_installments(user_id, debt.id, InstallmentSettle(
        indexes=[0], mode="affect_account", account_id=account.id
    ))

    assert await balance_of(account.id) == Decimal("300.00")
    [received] = await TransactionRepository(store).list_transactions(user_id, account_id=account.id)
    assert received.description == "Debt payment from Carla"


@pytest.mark.asyncio
async def test_reversing_owed_payment_requires_funds(store, user_id, make_account, balance_of):
    service = DebtService(store)
    account = await make_account("Bank", "0")
    debt = await service.create_debt(user_id, DebtCreate(
        type="owed", name="Loan to Dan", counterparty_name="Dan",
        total_amount=Decimal("100"), payment_type="single", due_date=START,
    ))
    await service.settle_installments(user_id, debt.id, InstallmentSettle(
        indexes=[0], mode="affect_account", account_id=account.id
    ))
    await TransactionService(store).create_transaction(user_id, TransactionCreate(
        account_id=account.id, type="expense", amount=Decimal("60"), description="Dinner", category="Food"
    ))

    with pytest.raises(InsufficientFunds):
        await service.unmark_installments(user_id, debt.id, InstallmentUnmark(indexes=[0]))

    assert await balance_of(account.id) == Decimal("40.00")
    assert (await service.get_debt(user_id, debt.id)).payment_schedule[0].is_paid is True


@pytest.mark.asyncio
async def test_mark_only_moves_no_money(store, user_id, wallet, balance_of):
    service = DebtService(store)
    debt = await service.create_debt(user_id, owe_in_four())

    settled = await service.settle_installments(user_id, debt.id, InstallmentSettle(indexes=[0, 2]))
    assert [ps.is_paid for ps in settled.payment_schedule] == [True, False, True, False]
    assert settled.payment_schedule[0].account_id is None

    await service.unmark_installments(user_id, debt.id, InstallmentUnmark(indexes=[0]))
    assert await balance_of(wallet.id) == Decimal("1000.00")
    assert await TransactionRepository(store).list_transactions(user_id, tx_type="expense") == []


@pytest.mark.asyncio
async def test_owe_settlement_checks_total_against_balance(store, user_id, make_account, balance_of):
    service = DebtService(store)
    account = await make_account("Wallet", "400")
    debt = await service.create_debt(user_id, owe_in_four())

    with pytest.raises(InsufficientFunds):
        await service.settle_installments(user_id, debt.id, InstallmentSettle(
            indexes=[0, 1], mode="affect_account", account_id=account.id
        ))

    assert await balance_of(account.id) == Decimal("400.00")
    assert not any(ps.is_paid for ps in (await service.get_debt(user_id, debt.id)).payment_schedule)


@pytest.mark.asyncio
async def test_mixed_selection_is_rejected(store, user_id):
    service = DebtService(store)
    debt = await service.create_debt(user_id, owe_in_four())
    await service.settle_installments(user_id, debt.id, InstallmentSettle(indexes=[0]))

    with pytest.raises(ValidationError):
        await service.settle_installments(user_id, debt.id, InstallmentSettle(indexes=[0, 1]))
    with pytest.raises(ValidationError):
        await service.unmark_installments(user_id, debt.id, InstallmentUnmark(indexes=[0, 1]))


@pytest.mark.asyncio
async def test_affect_account_requires_account(store, user_id):
    service = DebtService(store)
    debt = await service.create_debt(user_id, owe_in_four())

    with pytest.raises(ValidationError) as exc:
        await service.settle_installments(user_id, debt.id, InstallmentSettle(indexes=[0], mode="affect_account"))
    assert exc.value.message == "Please select an account"


@pytest.mark.asyncio
async def test_out_of_range_index(store, user_id):
    service = DebtService(store)
    debt = await service.create_debt(user_id, owe_in_four())

    with pytest.raises(ValidationError):
        await service.settle_installments(user_id, debt.id, InstallmentSettle(indexes=[4]))


@pytest.mark.asyncio
async def test_update_regenerates_schedule_while_unpaid(store, user_id):
    service = DebtService(store)
    debt = await service.create_debt(user_id, owe_in_four())

    updated = await service.update_debt(user_id, debt.id, DebtUpdate(
        total_amount=Decimal("1200"), number_of_payments=3, frequency="monthly"
    ))

    assert updated.total_amount == Decimal("1200.00")
    assert [ps.amount for ps in updated.payment_schedule] == [Decimal("400.00")] * 3
    assert [ps.due_date for ps in updated.payment_schedule] == [START, date(2026, 3, 2), date(2026, 4, 2)]
    stored = await service.get_debt(user_id, debt.id)
    assert stored.payment_schedule == updated.payment_schedule


@pytest.mark.asyncio
async def test_update_after_payment_allows_only_descriptive_fields(store, user_id):
    service = DebtService(store)
    debt = await service.create_debt(user_id, owe_in_four())
    await service.settle_installments(user_id, debt.id, InstallmentSettle(indexes=[0]))

    renamed = await service.update_debt(user_id, debt.id, DebtUpdate(name="Old laptop", counterparty_name="Benjie"))
    assert renamed.name == "Old laptop"
    assert renamed.payment_schedule[0].is_paid is True

    with pytest.raises(ValidationError):
        await service.update_debt(user_id, debt.id, DebtUpdate(total_amount=Decimal("2000")))


@pytest.mark.asyncio
async def test_list_debts_with_totals(store, user_id):
    service = DebtService(store)
    await service.create_debt(user_id, owe_in_four())
    owed = await service.create_debt(user_id, DebtCreate(
        type="owed", name="Lunch", counterparty_name="Eli",
        total_amount=Decimal("80"), payment_type="single", due_date=START,
    ))

    listing = await service.list_debts(user_id, today=START - timedelta(days=30))
    assert listing.total_owe == Decimal("1000.00")
    assert listing.total_owed == Decimal("80.00")
    assert {d.status for d in listing.debts} == {ScheduleStatus.ON_TRACK}

    only_owed = await service.list_debts(user_id, debt_type="owed")
    assert [d.id for d in only_owed.debts] == [owed.id]


@pytest.mark.asyncio
async def test_delete_debt_keeps_recorded_transactions(store, user_id, wallet, balance_of):
    service = DebtService(store)
    debt = await service.create_debt(user_id, owe_in_four())
    await service.settle_installments(user_id, debt.id, InstallmentSettle(
        indexes=[0], mode="affect_account", account_id=wallet.id
    ))

    await service.delete_debt(user_id, debt.id)

    assert await balance_of(wallet.id) == Decimal("750.00")
    assert len(await TransactionRepository(store).list_transactions(user_id, tx_type="expense")) == 1


@pytest.mark.asyncio
async def test_type_change_refused_after_payment(store, user_id, wallet, balance_of):
    service = DebtService(store)
    debt = await service.create_debt(user_id, owe_in_four())
    await service.settle_installments(user_id, debt.id, InstallmentSettle(
        indexes=[0], mode="affect_account", account_id=wallet.id
    ))

    with pytest.raises(ValidationError):
        await service.update_debt(user_id, debt.id, DebtUpdate(type="owed"))

    await service.unmark_installments(user_id, debt.id, InstallmentUnmark(indexes=[0]))
    assert await balance_of(wallet.id) == Decimal("1000.00")
    assert (await service.get_debt(user_id, debt.id)).type == "owe"


@pytest.mark.asyncio
async def test_type_change_allowed_while_unpaid(store, user_id):
    service = DebtService(store)
    debt = await service.create_debt(user_id, owe_in_four())

    updated = await service.update_debt(user_id, debt.id, DebtUpdate(type="owed"))

    assert updated.type == "owed"
    assert (await service.get_debt(user_id, debt.id)).type == "owed"
