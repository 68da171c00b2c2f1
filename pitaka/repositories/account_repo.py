"""
AccountRepository - the account ledger.

Balances are only ever changed with atomic increments. Negative
increments carry a floor of zero so the store itself refuses to
overdraw an account, even if a concurrent writer slipped in between a
service's balance check and its commit.
"""

from decimal import Decimal
from typing import List

from pitaka.db.store import ACCOUNTS, IncrementOp, Query
from pitaka.models.account import Account
from pitaka.models.base import ZERO
from pitaka.repositories.base import DocumentRepository


class AccountRepository(DocumentRepository[Account]):
    kind = ACCOUNTS
    model = Account
    label = "Account"

    async def list_accounts(self, user_id: str) -> List[Account]:
        return await self.find(user_id, Query(order_by=[("created_at", "asc")]))

    async def adjust_balance(self, user_id: str, account_id: str, delta: Decimal) -> None:
        """Apply a signed delta. Raises NotFound for an unknown account."""
        await self.store.atomic_increment(self.path(user_id, account_id), "balance", delta)

    def balance_op(self, user_id: str, account_id: str, delta: Decimal) -> IncrementOp:
        return IncrementOp(
            self.path(user_id, account_id),
            "balance",
            delta,
            floor=ZERO if delta < 0 else None,
        )
