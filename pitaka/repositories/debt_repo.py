from typing import List, Optional

from pitaka.db.store import DEBTS, Query
from pitaka.models.debt import Debt
from pitaka.repositories.base import DocumentRepository


class DebtRepository(DocumentRepository[Debt]):
    kind = DEBTS
    model = Debt
    label = "Debt"

    async def list_debts(self, user_id: str, debt_type: Optional[str] = None) -> List[Debt]:
        query = Query(order_by=[("created_at", "desc")])
        if debt_type is not None:
            query.where.append(("type", "==", debt_type))
        return await self.find(user_id, query)
