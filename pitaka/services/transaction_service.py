"""
TransactionService - user-entered income and expenses.

Every write goes through a LedgerBatch so the transaction document and the
balance delta it implies land together or not at all.
"""

from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional

from pitaka.core.config import settings
from pitaka.core.errors import InsufficientFunds, ValidationError
from pitaka.core.logging import get_logger
from pitaka.db.store import DocumentStore
from pitaka.models.base import as_utc, to_money, utcnow
from pitaka.models.transaction import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    SYSTEM_CATEGORIES,
    Transaction,
    TransactionType,
    categories_for,
    signed_amount,
)
from pitaka.repositories.transaction_repo import TransactionRepository
from pitaka.schemas.transaction import (
    CategoriesResponse,
    DateRange,
    TransactionCreate,
    TransactionPage,
    TransactionResponse,
    TransactionUpdate,
)
from pitaka.services.ledger import LedgerBatch
from pitaka.utils.schedules import add_months

logger = get_logger(__name__)


def validate_transaction_fields(tx_type: str, amount: Decimal, description: str, category: str) -> None:
    try:
        tx_type = TransactionType(tx_type)
    except ValueError:
        raise ValidationError(f"Unknown transaction type: {tx_type}") from None
    if amount is None or amount <= 0:
        raise ValidationError("Please enter a valid amount")
    if not description or not description.strip():
        raise ValidationError("Please enter a description")
    if not category:
        raise ValidationError("Please select a category")
    if category not in categories_for(tx_type) and category not in SYSTEM_CATEGORIES:
        raise ValidationError(f"Unknown {tx_type.value} category: {category}")


def range_start(date_range: DateRange, now: datetime) -> Optional[datetime]:
    """Earliest transaction date included by a date-range filter."""
    now = as_utc(now)
    if date_range == DateRange.TODAY:
        return datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    if date_range == DateRange.WEEK:
        return now - timedelta(days=7)
    if date_range == DateRange.MONTH:
        return datetime.combine(add_months(now.date(), -1), now.timetz())
    return None


class TransactionService:
    """Create, edit, delete and list transactions"""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.transactions = TransactionRepository(store)

    async def create_transaction(self, user_id: str, tx_in: TransactionCreate) -> Transaction:
        amount = to_money(tx_in.amount)
        validate_transaction_fields(tx_in.type, amount, tx_in.description, tx_in.category)

        batch = LedgerBatch(self.store, user_id)
        account = await batch.account(tx_in.account_id)
        if tx_in.type == TransactionType.EXPENSE and amount > account.balance:
            raise InsufficientFunds(account.name, account.balance)

        transaction = await batch.record(
            tx_in.account_id,
            tx_in.type,
            amount,
            tx_in.description.strip(),
            tx_in.category,
            tx_in.date,
        )
        await batch.commit()

        logger.info(
            "transaction_created",
            user_id=user_id,
            transaction_id=transaction.id,
            account_id=transaction.account_id,
            type=transaction.type,
            amount=str(transaction.amount),
        )
        return transaction

    async def get_transaction(self, user_id: str, transaction_id: str) -> Transaction:
        return await self.transactions.require(user_id, transaction_id)

    async def edit_transaction(
        self,
        user_id: str,
        transaction_id: str,
        tx_in: TransactionUpdate
    ) -> Transaction:
        """
        Apply edits and move the balance difference.

        The original effect is undone and the new one applied. When the
        account is unchanged the two are netted into one delta; when it
        changes each account is checked on its own.
        """
        original = await self.transactions.require(user_id, transaction_id)
        changes = tx_in.model_dump(exclude_unset=True, exclude_none=True)

        new_type = changes.get("type", original.type)
        new_amount = to_money(changes.get("amount", original.amount))
        new_description = changes.get("description", original.description).strip()
        new_category = changes.get("category", original.category)
        new_account_id = changes.get("account_id", original.account_id)
        new_date = changes.get("date", original.date)
        validate_transaction_fields(new_type, new_amount, new_description, new_category)
        new_type = TransactionType(new_type).value

        original_adjustment = -original.effect
        new_adjustment = signed_amount(new_type, new_amount)

        batch = LedgerBatch(self.store, user_id)
        target = await batch.account(new_account_id)

        if new_account_id == original.account_id:
            delta = original_adjustment + new_adjustment
            if target.balance + delta < 0:
                max_amount = target.balance + original_adjustment
                raise InsufficientFunds(
                    target.name,
                    target.balance,
                    message=(
                        f"Insufficient funds in {target.name}. "
                        f"Maximum amount allowed: {max_amount:.2f}"
                    ),
                    max_amount=max_amount,
                )
            batch.adjust(new_account_id, delta)
        else:
            source = await batch.account(original.account_id)
            if source.balance + original_adjustment < 0:
                raise InsufficientFunds(
                    source.name,
                    source.balance,
                    message=(
                        f"Cannot move this transaction: {source.name} would go negative. "
                        f"Available: {source.balance:.2f}"
                    ),
                )
            if target.balance + new_adjustment < 0:
                raise InsufficientFunds(
                    target.name,
                    target.balance,
                    message=(
                        f"Insufficient funds in {target.name}. "
                        f"Maximum amount allowed: {target.balance:.2f}"
                    ),
                    max_amount=target.balance,
                )
            batch.adjust(original.account_id, original_adjustment)
            batch.adjust(new_account_id, new_adjustment)

        fields = {
            "type": new_type,
            "amount": new_amount,
            "description": new_description,
            "category": new_category,
            "account_id": new_account_id,
            "account_name": target.name,
            "date": as_utc(new_date),
        }
        batch.add(self.transactions.update_op(user_id, transaction_id, fields))
        await batch.commit()

        logger.info(
            "transaction_edited",
            user_id=user_id,
            transaction_id=transaction_id,
            from_account=original.account_id,
            to_account=new_account_id,
        )
        return original.model_copy(update=fields)

    async def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        transaction = await self.transactions.require(user_id, transaction_id)

        batch = LedgerBatch(self.store, user_id)
        account = await batch.account(transaction.account_id)
        if account.balance - transaction.effect < 0:
            raise InsufficientFunds(
                account.name,
                account.balance,
                message=(
                    f"Cannot delete this income: {account.name} would go negative. "
                    f"Available: {account.balance:.2f}"
                ),
            )
        batch.remove(transaction)
        await batch.commit()

        logger.info(
            "transaction_deleted",
            user_id=user_id,
            transaction_id=transaction_id,
            account_id=transaction.account_id,
        )

    async def list_transactions(
        self,
        user_id: str,
        tx_type: Optional[TransactionType] = None,
        account_id: Optional[str] = None,
        date_range: DateRange = DateRange.ALL,
        limit: Optional[int] = None,
        start_after: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> TransactionPage:
        """One page, newest first. ``next_cursor`` is set only when more remain."""
        limit = limit or settings.TRANSACTIONS_PAGE_SIZE
        items: List[Transaction] = await self.transactions.list_transactions(
            user_id,
            tx_type=tx_type.value if isinstance(tx_type, TransactionType) else tx_type,
            account_id=account_id,
            date_from=range_start(date_range, now or utcnow()),
            limit=limit + 1,
            start_after=start_after,
        )
        has_more = len(items) > limit
        items = items[:limit]
        return TransactionPage(
            items=[TransactionResponse.model_validate(tx) for tx in items],
            next_cursor=items[-1].id if has_more else None,
        )

    @staticmethod
    def categories() -> CategoriesResponse:
        return CategoriesResponse(expense=list(EXPENSE_CATEGORIES), income=list(INCOME_CATEGORIES))
