"""
DebtService - debts, their installment schedules and settlement.

Settling an installment either just marks it paid or, through an account,
records a "Debt" transaction and moves the balance: an expense for debts
the user owes, an income for debts owed to the user. Unmarking an
installment that went through an account records the opposite-type
reversal. Each action is committed as one LedgerBatch.
"""

from datetime import date
from typing import List, Optional, Sequence

from pitaka.core.config import settings
from pitaka.core.errors import InsufficientFunds, ValidationError
from pitaka.core.logging import get_logger
from pitaka.db.store import DocumentStore
from pitaka.models.base import ZERO, utcnow
from pitaka.models.debt import Debt, DebtType, PaymentSchedule, PaymentType
from pitaka.models.settlement import SettlementMode
from pitaka.models.transaction import DEBT_CATEGORY, TransactionType
from pitaka.repositories.debt_repo import DebtRepository
from pitaka.schemas.debt import (
    DebtCreate,
    DebtListResponse,
    DebtResponse,
    DebtUpdate,
    InstallmentSettle,
    InstallmentUnmark,
)
from pitaka.services.ledger import LedgerBatch
from pitaka.utils import schedules

logger = get_logger(__name__)

SCHEDULE_FIELDS = {
    "total_amount",
    "payment_type",
    "due_date",
    "number_of_payments",
    "start_date",
    "frequency",
}


def _require_text(value: Optional[str], message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(message)
    return value


def _payment_description(debt: Debt, reversal: bool = False) -> str:
    direction = "to" if debt.type == DebtType.OWE else "from"
    prefix = "Reversal of debt payment" if reversal else "Debt payment"
    return f"{prefix} {direction} {debt.counterparty_name}"


def _select(schedule: Sequence[PaymentSchedule], indexes: Sequence[int]) -> List[int]:
    """Distinct, in-range installment indexes in schedule order."""
    if not indexes:
        raise ValidationError("Please select at least one installment")
    selected = sorted(set(indexes))
    for index in selected:
        if index < 0 or index >= len(schedule):
            raise ValidationError(f"Invalid installment index: {index}")
    return selected


class DebtService:
    """Debt CRUD and installment settlement"""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.debts = DebtRepository(store)

    async def create_debt(self, user_id: str, debt_in: DebtCreate) -> Debt:
        name = _require_text(debt_in.name, "Please enter a name")
        counterparty = _require_text(debt_in.counterparty_name, "Please enter the counterparty name")
        schedule = schedules.build_debt_schedule(
            debt_in.total_amount,
            debt_in.payment_type,
            due_date=debt_in.due_date,
            number_of_payments=debt_in.number_of_payments,
            start_date=debt_in.start_date,
            frequency=debt_in.frequency,
        )

        debt = Debt(
            type=debt_in.type,
            name=name,
            counterparty_name=counterparty,
            total_amount=debt_in.total_amount,
            payment_schedule=schedule,
        )
        await self.debts.insert(user_id, debt)

        logger.info(
            "debt_created",
            user_id=user_id,
            debt_id=debt.id,
            type=debt.type,
            installments=len(schedule),
        )
        return debt

    async def get_debt(self, user_id: str, debt_id: str) -> Debt:
        return await self.debts.require(user_id, debt_id)

    async def list_debts(
        self,
        user_id: str,
        debt_type: Optional[DebtType] = None,
        today: Optional[date] = None
    ) -> DebtListResponse:
        today = today or schedules.local_today()
        debts = await self.debts.list_debts(
            user_id,
            debt_type.value if isinstance(debt_type, DebtType) else debt_type,
        )
        responses = [DebtResponse.from_debt(d, today, settings.DUE_SOON_DAYS) for d in debts]
        return DebtListResponse(
            debts=responses,
            total_owe=sum((r.remaining_amount for r in responses if r.type == DebtType.OWE), ZERO),
            total_owed=sum((r.remaining_amount for r in responses if r.type == DebtType.OWED), ZERO),
        )

    async def update_debt(self, user_id: str, debt_id: str, debt_in: DebtUpdate) -> Debt:
        """
        Edit a debt.

        Name and counterparty can always change. Type, amount and schedule
        fields are refused once any installment has been paid; the amount
        and schedule fields regenerate the whole schedule.
        """
        debt = await self.debts.require(user_id, debt_id)
        changes = debt_in.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return debt

        fields = {}
        if "name" in changes:
            fields["name"] = _require_text(changes["name"], "Please enter a name")
        if "counterparty_name" in changes:
            fields["counterparty_name"] = _require_text(
                changes["counterparty_name"], "Please enter the counterparty name"
            )
        if "type" in changes and changes["type"] != debt.type:
            if any(ps.is_paid for ps in debt.payment_schedule):
                raise ValidationError("Cannot change the type of a debt with paid installments")
            fields["type"] = changes["type"]

        if SCHEDULE_FIELDS & changes.keys():
            if any(ps.is_paid for ps in debt.payment_schedule):
                raise ValidationError(
                    "Cannot change the amount or schedule of a debt with paid installments"
                )
            current = debt.payment_schedule
            first_due = current[0].due_date if current else None
            payment_type = changes.get(
                "payment_type",
                PaymentType.MULTIPLE if len(current) > 1 else PaymentType.SINGLE,
            )
            total_amount = changes.get("total_amount", debt.total_amount)
            fields["total_amount"] = total_amount
            fields["payment_schedule"] = schedules.build_debt_schedule(
                total_amount,
                payment_type,
                due_date=changes.get("due_date", first_due),
                number_of_payments=changes.get("number_of_payments", len(current)),
                start_date=changes.get("start_date", first_due),
                frequency=changes.get("frequency", schedules.determine_frequency(current)),
            )

        updated = Debt(**{**debt.model_dump(), **fields, "updated_at": utcnow()})
        document = updated.to_document()
        await self.debts.update(
            user_id,
            debt_id,
            {key: document[key] for key in [*fields, "updated_at"]},
        )
        logger.info("debt_updated", user_id=user_id, debt_id=debt_id, fields=sorted(fields))
        return updated

    async def delete_debt(self, user_id: str, debt_id: str) -> None:
        # Settlement transactions already recorded stay in the ledger.
        await self.debts.require(user_id, debt_id)
        await self.debts.delete(user_id, debt_id)
        logger.info("debt_deleted", user_id=user_id, debt_id=debt_id)

    async def settle_installments(self, user_id: str, debt_id: str, settle_in: InstallmentSettle) -> Debt:
        debt = await self.debts.require(user_id, debt_id)
        indexes = _select(debt.payment_schedule, settle_in.indexes)
        selected = [debt.payment_schedule[i] for i in indexes]
        if any(ps.is_paid for ps in selected):
            raise ValidationError("Selected installments must all be unpaid")

        batch = LedgerBatch(self.store, user_id)
        account_id = None
        if settle_in.mode == SettlementMode.AFFECT_ACCOUNT:
            if not settle_in.account_id:
                raise ValidationError("Please select an account")
            account_id = settle_in.account_id
            account = await batch.account(account_id)
            if debt.type == DebtType.OWE:
                total = sum((ps.amount for ps in selected), ZERO)
                if total > account.balance:
                    raise InsufficientFunds(account.name, account.balance)
                tx_type = TransactionType.EXPENSE
            else:
                tx_type = TransactionType.INCOME
            for ps in selected:
                await batch.record(account_id, tx_type, ps.amount, _payment_description(debt), DEBT_CATEGORY)

        schedule = list(debt.payment_schedule)
        for index in indexes:
            schedule[index] = schedule[index].model_copy(update={"is_paid": True, "account_id": account_id})
        await self._commit_schedule(batch, user_id, debt_id, schedule)

        logger.info(
            "debt_installments_settled",
            user_id=user_id,
            debt_id=debt_id,
            installments=len(indexes),
            mode=settle_in.mode,
            account_id=account_id,
            transactions=len(batch.recorded),
        )
        return await self.debts.require(user_id, debt_id)

    async def unmark_installments(self, user_id: str, debt_id: str, unmark_in: InstallmentUnmark) -> Debt:
        debt = await self.debts.require(user_id, debt_id)
        indexes = _select(debt.payment_schedule, unmark_in.indexes)
        selected = [debt.payment_schedule[i] for i in indexes]
        if not all(ps.is_paid for ps in selected):
            raise ValidationError("Selected installments must all be paid")

        if debt.type == DebtType.OWE:
            reversal_type = TransactionType.INCOME
        else:
            reversal_type = TransactionType.EXPENSE
        description = _payment_description(debt, reversal=True)

        batch = LedgerBatch(self.store, user_id)
        for ps in selected:
            if ps.account_id:
                await batch.record(ps.account_id, reversal_type, ps.amount, description, DEBT_CATEGORY)

        schedule = list(debt.payment_schedule)
        for index in indexes:
            schedule[index] = schedule[index].model_copy(update={"is_paid": False, "account_id": None})
        await self._commit_schedule(batch, user_id, debt_id, schedule)

        logger.info(
            "debt_installments_unmarked",
            user_id=user_id,
            debt_id=debt_id,
            installments=len(indexes),
            reversals=len(batch.recorded),
        )
        return await self.debts.require(user_id, debt_id)

    async def _commit_schedule(
        self,
        batch: LedgerBatch,
        user_id: str,
        debt_id: str,
        schedule: List[PaymentSchedule]
    ) -> None:
        batch.add(self.debts.update_op(
            user_id,
            debt_id,
            {"payment_schedule": [ps.model_dump() for ps in schedule]},
            touch=True,
        ))
        await batch.commit()
