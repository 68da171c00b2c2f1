from datetime import datetime
from typing import List, Optional

from pitaka.db.store import TRANSACTIONS, Query
from pitaka.models.transaction import Transaction
from pitaka.repositories.base import DocumentRepository


class TransactionRepository(DocumentRepository[Transaction]):
    kind = TRANSACTIONS
    model = Transaction
    label = "Transaction"

    async def list_transactions(
        self,
        user_id: str,
        tx_type: Optional[str] = None,
        account_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        limit: Optional[int] = None,
        start_after: Optional[str] = None
    ) -> List[Transaction]:
        """Newest first by transaction date; filters combine."""
        query = Query(order_by=[("date", "desc")], limit=limit, start_after=start_after)
        if tx_type is not None:
            query.where.append(("type", "==", tx_type))
        if account_id is not None:
            query.where.append(("account_id", "==", account_id))
        if date_from is not None:
            query.where.append(("date", ">=", date_from))
        return await self.find(user_id, query)

    async def recent(self, user_id: str, limit: int = 5) -> List[Transaction]:
        return await self.find(user_id, Query(order_by=[("created_at", "desc")], limit=limit))
