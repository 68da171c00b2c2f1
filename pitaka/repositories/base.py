from typing import Generic, List, Optional, Type, TypeVar

from pitaka.core.errors import NotFound
from pitaka.db.store import (
    DeleteOp,
    DocumentStore,
    Query,
    SetOp,
    UpdateOp,
    collection_path,
    document_path,
)
from pitaka.models.base import DocumentModel, utcnow

ModelT = TypeVar("ModelT", bound=DocumentModel)


class DocumentRepository(Generic[ModelT]):
    """Typed access to one per-user collection."""

    kind: str
    model: Type[ModelT]
    label: str = "Document"

    def __init__(self, store: DocumentStore):
        self.store = store

    def path(self, user_id: str, doc_id: str) -> str:
        return document_path(user_id, self.kind, doc_id)

    def collection(self, user_id: str) -> str:
        return collection_path(user_id, self.kind)

    async def get(self, user_id: str, doc_id: str) -> Optional[ModelT]:
        doc = await self.store.get_document(self.path(user_id, doc_id))
        if doc is None:
            return None
        return self.model(**doc)

    async def require(self, user_id: str, doc_id: str) -> ModelT:
        item = await self.get(user_id, doc_id)
        if item is None:
            raise NotFound(f"{self.label} not found")
        return item

    async def find(self, user_id: str, query: Optional[Query] = None) -> List[ModelT]:
        docs = await self.store.query_collection(self.collection(user_id), query)
        return [self.model(**doc) for doc in docs]

    async def insert(self, user_id: str, item: ModelT) -> ModelT:
        await self.store.set_document(self.path(user_id, item.id), item.to_document())
        return item

    async def update(self, user_id: str, doc_id: str, fields: dict) -> ModelT:
        await self.store.update_document(self.path(user_id, doc_id), fields)
        return await self.require(user_id, doc_id)

    async def delete(self, user_id: str, doc_id: str) -> None:
        await self.store.delete_document(self.path(user_id, doc_id))

    # ===== BATCH OPERATIONS =====

    def insert_op(self, user_id: str, item: ModelT) -> SetOp:
        return SetOp(self.path(user_id, item.id), item.to_document())

    def update_op(self, user_id: str, doc_id: str, fields: dict, touch: bool = False) -> UpdateOp:
        if touch:
            fields = {**fields, "updated_at": utcnow()}
        return UpdateOp(self.path(user_id, doc_id), fields)

    def delete_op(self, user_id: str, doc_id: str) -> DeleteOp:
        return DeleteOp(self.path(user_id, doc_id))
