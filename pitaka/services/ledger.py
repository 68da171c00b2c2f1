"""
LedgerBatch - one settlement's worth of writes, committed atomically.

A service stages everything a user action implies (new or removed
transactions, per-account balance deltas, schedule updates), the batch
checks that no account ends up below zero, then hands every operation to
the store as a single all-or-nothing write.

Balance deltas are netted per account before checking, so settling two
installments from one account is checked against their sum.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pitaka.core.errors import InsufficientFunds
from pitaka.db.store import DocumentStore, WriteOp
from pitaka.models.account import Account
from pitaka.models.base import ZERO, to_money, utcnow
from pitaka.models.transaction import Transaction, signed_amount
from pitaka.repositories.account_repo import AccountRepository
from pitaka.repositories.transaction_repo import TransactionRepository


class LedgerBatch:
    """Unit of work for balance-affecting changes of one user."""

    def __init__(self, store: DocumentStore, user_id: str):
        self.store = store
        self.user_id = user_id
        self.accounts = AccountRepository(store)
        self.transactions = TransactionRepository(store)
        self._ops: List[WriteOp] = []
        self._deltas: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        self._accounts: Dict[str, Account] = {}
        self.recorded: List[Transaction] = []

    async def account(self, account_id: str) -> Account:
        """Account as of the start of the batch. Raises NotFound."""
        if account_id not in self._accounts:
            self._accounts[account_id] = await self.accounts.require(self.user_id, account_id)
        return self._accounts[account_id]

    def remember(self, account: Account) -> None:
        """Register an account created inside this batch."""
        self._accounts[account.id] = account

    def add(self, op: WriteOp) -> None:
        self._ops.append(op)

    def adjust(self, account_id: str, delta: Decimal) -> None:
        self._deltas[account_id] += to_money(delta)

    def delta(self, account_id: str) -> Decimal:
        return self._deltas.get(account_id, ZERO)

    async def record(
        self,
        account_id: str,
        tx_type: str,
        amount: Decimal,
        description: str,
        category: str,
        date: Optional[datetime] = None
    ) -> Transaction:
        """Stage a new transaction and its balance effect."""
        account = await self.account(account_id)
        transaction = Transaction(
            type=tx_type,
            amount=amount,
            description=description,
            category=category,
            account_id=account_id,
            account_name=account.name,
            date=date or utcnow(),
        )
        self.add(self.transactions.insert_op(self.user_id, transaction))
        self.adjust(account_id, signed_amount(transaction.type, transaction.amount))
        self.recorded.append(transaction)
        return transaction

    def remove(self, transaction: Transaction) -> None:
        """Stage deletion of a transaction, undoing its balance effect."""
        self.add(self.transactions.delete_op(self.user_id, transaction.id))
        self.adjust(transaction.account_id, -transaction.effect)

    async def check_funds(self) -> None:
        """Raise InsufficientFunds if any account would drop below zero."""
        for account_id, delta in self._deltas.items():
            if delta >= 0:
                continue
            account = await self.account(account_id)
            if account.balance + delta < 0:
                raise InsufficientFunds(account.name, account.balance)

    async def commit(self) -> None:
        await self.check_funds()
        ops = list(self._ops)
        for account_id, delta in self._deltas.items():
            if delta != 0:
                ops.append(self.accounts.balance_op(self.user_id, account_id, delta))
        await self.store.batch_write(ops)
