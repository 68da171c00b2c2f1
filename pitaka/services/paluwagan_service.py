"""
PaluwaganService - rotating savings pools.

Two schedules live on each paluwagan: the weekly contributions the user
pays (one entry per week, amount_per_number times the numbers owned) and
the payouts of the numbers the user owns (the whole pool, once per
number). Both can be settled as mark-only or through an account, and
unmarked again with a reversal transaction where money moved.
"""

from datetime import date
from typing import Dict, List, Optional, Sequence

from pitaka.core.errors import InsufficientFunds, NotYetAvailable, ValidationError
from pitaka.core.logging import get_logger
from pitaka.db.store import DocumentStore
from pitaka.models.base import ZERO, utcnow
from pitaka.models.paluwagan import Paluwagan, PaluwaganNumber, WeeklyPayment
from pitaka.models.settlement import SettlementMode
from pitaka.models.transaction import PALUWAGAN_CATEGORY, TransactionType
from pitaka.repositories.paluwagan_repo import PaluwaganRepository
from pitaka.repositories.user_repo import UserRepository
from pitaka.schemas.paluwagan import (
    PaluwaganCreate,
    PaluwaganUpdate,
    PayoutSettle,
    PayoutUnmark,
    WeeklyPaymentSettle,
    WeeklyPaymentUnmark,
)
from pitaka.services.ledger import LedgerBatch
from pitaka.utils import schedules

logger = get_logger(__name__)

REGENERATING_FIELDS = {"amount_per_number", "start_date", "total_numbers", "owned_numbers"}


def _require_text(value: Optional[str], message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(message)
    return value


def _has_settlements(paluwagan: Paluwagan) -> bool:
    return (
        any(p.is_paid for p in paluwagan.weekly_payments)
        or any(n.is_paid for n in paluwagan.numbers)
    )


def _select_weeks(paluwagan: Paluwagan, week_numbers: Sequence[int]) -> List[int]:
    """Indexes into weekly_payments for the given week numbers."""
    if not week_numbers:
        raise ValidationError("Please select at least one week")
    by_week: Dict[int, int] = {p.week_number: i for i, p in enumerate(paluwagan.weekly_payments)}
    indexes = []
    for week in sorted(set(week_numbers)):
        if week not in by_week:
            raise ValidationError(f"Invalid week number: {week}")
        indexes.append(by_week[week])
    return indexes


def _select_owned_numbers(paluwagan: Paluwagan, numbers: Sequence[int]) -> List[int]:
    """Indexes into numbers for the given owned numbers."""
    if not numbers:
        raise ValidationError("Please select at least one number")
    by_number: Dict[int, int] = {n.number: i for i, n in enumerate(paluwagan.numbers)}
    indexes = []
    for number in sorted(set(numbers)):
        if number not in by_number:
            raise ValidationError(f"Invalid number: {number}")
        if not paluwagan.numbers[by_number[number]].is_owner:
            raise ValidationError(f"Number {number} is not yours; only your own payouts can be settled")
        indexes.append(by_number[number])
    return indexes


class PaluwaganService:
    """Paluwagan CRUD plus weekly payment and payout settlement"""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.paluwagans = PaluwaganRepository(store)
        self.users = UserRepository(store)

    async def create_paluwagan(self, user_id: str, pal_in: PaluwaganCreate) -> Paluwagan:
        name = _require_text(pal_in.name, "Please enter a name")
        organizer = _require_text(pal_in.organizer, "Please enter the organizer")
        profile = await self.users.get_or_default(user_id)

        numbers, weekly_payments = schedules.build_paluwagan_schedules(
            pal_in.start_date,
            pal_in.total_numbers,
            pal_in.amount_per_number,
            pal_in.owned_numbers,
            owner_name=profile.display_name,
        )
        paluwagan = Paluwagan(
            name=name,
            amount_per_number=pal_in.amount_per_number,
            payout_per_number=schedules.payout_for(pal_in.amount_per_number, pal_in.total_numbers),
            start_date=pal_in.start_date,
            total_numbers=pal_in.total_numbers,
            organizer=organizer,
            description=pal_in.description,
            numbers=numbers,
            weekly_payments=weekly_payments,
        )
        await self.paluwagans.insert(user_id, paluwagan)

        logger.info(
            "paluwagan_created",
            user_id=user_id,
            paluwagan_id=paluwagan.id,
            total_numbers=paluwagan.total_numbers,
            owned=len(paluwagan.owned_numbers),
        )
        return paluwagan

    async def get_paluwagan(self, user_id: str, paluwagan_id: str) -> Paluwagan:
        return await self.paluwagans.require(user_id, paluwagan_id)

    async def list_paluwagans(self, user_id: str, limit: Optional[int] = None) -> List[Paluwagan]:
        return await self.paluwagans.list_paluwagans(user_id, limit=limit)

    async def update_paluwagan(self, user_id: str, paluwagan_id: str, pal_in: PaluwaganUpdate) -> Paluwagan:
        """
        Edit a paluwagan.

        Name, organizer and description can always change. Amount, start
        date, size and owned numbers regenerate both schedules and the
        payout, so they are refused once anything has been settled.
        """
        paluwagan = await self.paluwagans.require(user_id, paluwagan_id)
        changes = pal_in.model_dump(exclude_unset=True)
        if not changes:
            return paluwagan

        fields = {}
        if changes.get("name") is not None:
            fields["name"] = _require_text(changes["name"], "Please enter a name")
        if changes.get("organizer") is not None:
            fields["organizer"] = _require_text(changes["organizer"], "Please enter the organizer")
        if "description" in changes:
            fields["description"] = changes["description"]

        regenerating = {k for k in REGENERATING_FIELDS if changes.get(k) is not None}
        if regenerating:
            if _has_settlements(paluwagan):
                raise ValidationError(
                    "Cannot change the schedule of a paluwagan with settled payments or payouts"
                )

            def pick(key, current):
                value = changes.get(key)
                return current if value is None else value

            amount = pick("amount_per_number", paluwagan.amount_per_number)
            start_date = pick("start_date", paluwagan.start_date)
            total_numbers = pick("total_numbers", paluwagan.total_numbers)
            owned = pick("owned_numbers", [n.number for n in paluwagan.owned_numbers])
            profile = await self.users.get_or_default(user_id)

            numbers, weekly_payments = schedules.build_paluwagan_schedules(
                start_date, total_numbers, amount, owned, owner_name=profile.display_name
            )
            fields.update(
                amount_per_number=amount,
                payout_per_number=schedules.payout_for(amount, total_numbers),
                start_date=start_date,
                total_numbers=total_numbers,
                numbers=numbers,
                weekly_payments=weekly_payments,
            )

        if not fields:
            return paluwagan
        updated = Paluwagan(**{**paluwagan.model_dump(), **fields, "updated_at": utcnow()})
        document = updated.to_document()
        await self.paluwagans.update(
            user_id,
            paluwagan_id,
            {key: document[key] for key in [*fields, "updated_at"]},
        )
        logger.info("paluwagan_updated", user_id=user_id, paluwagan_id=paluwagan_id, fields=sorted(fields))
        return updated

    async def delete_paluwagan(self, user_id: str, paluwagan_id: str) -> None:
        await self.paluwagans.require(user_id, paluwagan_id)
        await self.paluwagans.delete(user_id, paluwagan_id)
        logger.info("paluwagan_deleted", user_id=user_id, paluwagan_id=paluwagan_id)

    # ===== WEEKLY PAYMENTS =====

    async def settle_weekly_payments(
        self,
        user_id: str,
        paluwagan_id: str,
        settle_in: WeeklyPaymentSettle
    ) -> Paluwagan:
        paluwagan = await self.paluwagans.require(user_id, paluwagan_id)
        indexes = _select_weeks(paluwagan, settle_in.week_numbers)
        selected = [paluwagan.weekly_payments[i] for i in indexes]
        if any(p.is_paid for p in selected):
            raise ValidationError("Selected weeks must all be unpaid")

        batch = LedgerBatch(self.store, user_id)
        account_id = await self._settlement_account(batch, settle_in.mode, settle_in.account_id)
        if account_id:
            account = await batch.account(account_id)
            total = sum((p.amount for p in selected), ZERO)
            if total > account.balance:
                raise InsufficientFunds(account.name, account.balance)
            for payment in selected:
                await batch.record(
                    account_id,
                    TransactionType.EXPENSE,
                    payment.amount,
                    f"Paluwagan payment for week {payment.week_number}",
                    PALUWAGAN_CATEGORY,
                )

        weekly_payments = list(paluwagan.weekly_payments)
        for index in indexes:
            weekly_payments[index] = weekly_payments[index].model_copy(
                update={"is_paid": True, "account_id": account_id}
            )
        await self._commit(batch, user_id, paluwagan_id, weekly_payments=weekly_payments)

        logger.info(
            "paluwagan_payments_settled",
            user_id=user_id,
            paluwagan_id=paluwagan_id,
            weeks=[p.week_number for p in selected],
            mode=settle_in.mode,
            account_id=account_id,
        )
        return await self.paluwagans.require(user_id, paluwagan_id)

    async def unmark_weekly_payments(
        self,
        user_id: str,
        paluwagan_id: str,
        unmark_in: WeeklyPaymentUnmark
    ) -> Paluwagan:
        paluwagan = await self.paluwagans.require(user_id, paluwagan_id)
        indexes = _select_weeks(paluwagan, unmark_in.week_numbers)
        selected = [paluwagan.weekly_payments[i] for i in indexes]
        if not all(p.is_paid for p in selected):
            raise ValidationError("Selected weeks must all be paid")

        batch = LedgerBatch(self.store, user_id)
        for payment in selected:
            if payment.account_id:
                await batch.record(
                    payment.account_id,
                    TransactionType.INCOME,
                    payment.amount,
                    f"Reversal of paluwagan payment for week {payment.week_number}",
                    PALUWAGAN_CATEGORY,
                )

        weekly_payments = list(paluwagan.weekly_payments)
        for index in indexes:
            weekly_payments[index] = weekly_payments[index].model_copy(
                update={"is_paid": False, "account_id": None}
            )
        await self._commit(batch, user_id, paluwagan_id, weekly_payments=weekly_payments)

        logger.info(
            "paluwagan_payments_unmarked",
            user_id=user_id,
            paluwagan_id=paluwagan_id,
            weeks=[p.week_number for p in selected],
            reversals=len(batch.recorded),
        )
        return await self.paluwagans.require(user_id, paluwagan_id)

    # ===== PAYOUTS =====

    async def settle_payouts(
        self,
        user_id: str,
        paluwagan_id: str,
        settle_in: PayoutSettle,
        today: Optional[date] = None
    ) -> Paluwagan:
        """Receive payouts of owned numbers whose payout date has arrived."""
        today = today or schedules.local_today()
        paluwagan = await self.paluwagans.require(user_id, paluwagan_id)
        indexes = _select_owned_numbers(paluwagan, settle_in.numbers)
        selected = [paluwagan.numbers[i] for i in indexes]
        if any(n.is_paid for n in selected):
            raise ValidationError("Selected payouts must all be unreceived")
        for number in selected:
            if not schedules.is_payout_date_valid(number.payout_date, today):
                raise NotYetAvailable(
                    f"Payout for number {number.number} is not available until "
                    f"{number.payout_date.isoformat()}"
                )

        batch = LedgerBatch(self.store, user_id)
        account_id = await self._settlement_account(batch, settle_in.mode, settle_in.account_id)
        if account_id:
            for number in selected:
                await batch.record(
                    account_id,
                    TransactionType.INCOME,
                    paluwagan.payout_per_number,
                    f"Paluwagan payout for number {number.number}",
                    PALUWAGAN_CATEGORY,
                )

        numbers = list(paluwagan.numbers)
        for index in indexes:
            numbers[index] = numbers[index].model_copy(update={"is_paid": True, "account_id": account_id})
        await self._commit(batch, user_id, paluwagan_id, numbers=numbers)

        logger.info(
            "paluwagan_payouts_settled",
            user_id=user_id,
            paluwagan_id=paluwagan_id,
            numbers=[n.number for n in selected],
            mode=settle_in.mode,
            account_id=account_id,
        )
        return await self.paluwagans.require(user_id, paluwagan_id)

    async def unmark_payouts(self, user_id: str, paluwagan_id: str, unmark_in: PayoutUnmark) -> Paluwagan:
        paluwagan = await self.paluwagans.require(user_id, paluwagan_id)
        indexes = _select_owned_numbers(paluwagan, unmark_in.numbers)
        selected = [paluwagan.numbers[i] for i in indexes]
        if not all(n.is_paid for n in selected):
            raise ValidationError("Selected payouts must all be received")

        batch = LedgerBatch(self.store, user_id)
        for number in selected:
            if number.account_id:
                await batch.record(
                    number.account_id,
                    TransactionType.EXPENSE,
                    paluwagan.payout_per_number,
                    f"Reversal of paluwagan payout for number {number.number}",
                    PALUWAGAN_CATEGORY,
                )

        numbers = list(paluwagan.numbers)
        for index in indexes:
            numbers[index] = numbers[index].model_copy(update={"is_paid": False, "account_id": None})
        await self._commit(batch, user_id, paluwagan_id, numbers=numbers)

        logger.info(
            "paluwagan_payouts_unmarked",
            user_id=user_id,
            paluwagan_id=paluwagan_id,
            numbers=[n.number for n in selected],
            reversals=len(batch.recorded),
        )
        return await self.paluwagans.require(user_id, paluwagan_id)

    # ===== HELPERS =====

    @staticmethod
    async def _settlement_account(
        batch: LedgerBatch,
        mode: SettlementMode,
        account_id: Optional[str]
    ) -> Optional[str]:
        """Account id for affect_account settlements, None for mark_only."""
        if mode != SettlementMode.AFFECT_ACCOUNT:
            return None
        if not account_id:
            raise ValidationError("Please select an account")
        await batch.account(account_id)
        return account_id

    async def _commit(
        self,
        batch: LedgerBatch,
        user_id: str,
        paluwagan_id: str,
        numbers: Optional[List[PaluwaganNumber]] = None,
        weekly_payments: Optional[List[WeeklyPayment]] = None
    ) -> None:
        fields = {}
        if numbers is not None:
            fields["numbers"] = [n.model_dump() for n in numbers]
        if weekly_payments is not None:
            fields["weekly_payments"] = [p.model_dump() for p in weekly_payments]
        batch.add(self.paluwagans.update_op(user_id, paluwagan_id, fields, touch=True))
        await batch.commit()
