from typing import List, Optional

from pitaka.db.store import PALUWAGANS, Query
from pitaka.models.paluwagan import Paluwagan
from pitaka.repositories.base import DocumentRepository


class PaluwaganRepository(DocumentRepository[Paluwagan]):
    kind = PALUWAGANS
    model = Paluwagan
    label = "Paluwagan"

    async def list_paluwagans(self, user_id: str, limit: Optional[int] = None) -> List[Paluwagan]:
        return await self.find(user_id, Query(order_by=[("created_at", "desc")], limit=limit))
