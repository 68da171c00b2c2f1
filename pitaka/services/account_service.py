from typing import List

from pitaka.core.errors import ValidationError
from pitaka.core.logging import get_logger
from pitaka.db.store import DocumentStore
from pitaka.models.account import Account
from pitaka.models.base import ZERO, to_money
from pitaka.models.transaction import INITIAL_CATEGORY, TransactionType
from pitaka.repositories.account_repo import AccountRepository
from pitaka.repositories.transaction_repo import TransactionRepository
from pitaka.schemas.account import (
    AccountCreate,
    AccountListResponse,
    AccountOverview,
    AccountResponse,
    AccountUpdate,
)
from pitaka.schemas.transaction import TransactionResponse
from pitaka.services.ledger import LedgerBatch

logger = get_logger(__name__)

OPENING_BALANCE_DESCRIPTION = "Initial balance"


class AccountService:
    """Account lifecycle and dashboard figures"""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.accounts = AccountRepository(store)
        self.transactions = TransactionRepository(store)

    async def stage_account(self, batch: LedgerBatch, account_in: AccountCreate) -> Account:
        """
        Stage a new account in ``batch``.

        The account starts at zero; a positive opening balance is recorded
        as an income transaction so the balance always equals the sum of
        its transactions.
        """
        name = account_in.name.strip()
        if not name:
            raise ValidationError("Please enter an account name")
        opening_balance = to_money(account_in.opening_balance)
        if opening_balance < 0:
            raise ValidationError("Opening balance cannot be negative")

        account = Account(name=name, type=account_in.type)
        batch.add(self.accounts.insert_op(batch.user_id, account))
        batch.remember(account)
        if opening_balance > 0:
            await batch.record(
                account.id,
                TransactionType.INCOME,
                opening_balance,
                OPENING_BALANCE_DESCRIPTION,
                INITIAL_CATEGORY,
            )
        return account.model_copy(update={"balance": batch.delta(account.id)})

    async def create_account(self, user_id: str, account_in: AccountCreate) -> Account:
        batch = LedgerBatch(self.store, user_id)
        account = await self.stage_account(batch, account_in)
        await batch.commit()

        logger.info(
            "account_created",
            user_id=user_id,
            account_id=account.id,
            opening_balance=str(batch.delta(account.id)),
        )
        return account

    async def get_account(self, user_id: str, account_id: str) -> Account:
        return await self.accounts.require(user_id, account_id)

    async def list_accounts(self, user_id: str) -> AccountListResponse:
        accounts = await self.accounts.list_accounts(user_id)
        return AccountListResponse(
            accounts=[AccountResponse.model_validate(a) for a in accounts],
            total_balance=sum((a.balance for a in accounts), ZERO),
        )

    async def update_account(self, user_id: str, account_id: str, account_in: AccountUpdate) -> Account:
        """Rename or retype. Existing transactions keep their account_name snapshot."""
        account = await self.accounts.require(user_id, account_id)
        fields = account_in.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in fields:
            fields["name"] = fields["name"].strip()
            if not fields["name"]:
                raise ValidationError("Please enter an account name")
        if "type" in fields:
            fields["type"] = fields["type"].value
        if not fields:
            return account
        return await self.accounts.update(user_id, account_id, fields)

    async def delete_account(self, user_id: str, account_id: str) -> None:
        # Transactions, debt and paluwagan entries that reference the
        # account are left in place.
        await self.accounts.require(user_id, account_id)
        await self.accounts.delete(user_id, account_id)
        logger.info("account_deleted", user_id=user_id, account_id=account_id)

    async def overview(self, user_id: str, top: int = 3, recent: int = 5) -> AccountOverview:
        accounts: List[Account] = await self.accounts.list_accounts(user_id)
        recent_transactions = await self.transactions.recent(user_id, limit=recent)
        top_accounts = sorted(accounts, key=lambda a: a.balance, reverse=True)[:top]
        return AccountOverview(
            total_balance=sum((a.balance for a in accounts), ZERO),
            account_count=len(accounts),
            top_accounts=[AccountResponse.model_validate(a) for a in top_accounts],
            recent_transactions=[TransactionResponse.model_validate(t) for t in recent_transactions],
        )
