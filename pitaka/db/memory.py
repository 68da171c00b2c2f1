"""
In-process document store.

Used by the test-suite and for local runs with STORE_BACKEND=memory.
Batches are applied to a staged copy and swapped in only when every
operation succeeded.
"""

import copy
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from pitaka.core.errors import InsufficientFunds, NotFound
from pitaka.db.store import (
    DeleteOp,
    DocumentStore,
    IncrementOp,
    Query,
    SetOp,
    UpdateOp,
    WriteOp,
)

_COMPARATORS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a is not None and a < b,
    "<=": lambda a, b: a is not None and a <= b,
    ">": lambda a, b: a is not None and a > b,
    ">=": lambda a, b: a is not None and a >= b,
}


def _split(path: str) -> tuple[str, str]:
    parts = path.strip("/").split("/")
    if len(parts) % 2 != 0:
        raise ValueError(f"Not a document path: {path}")
    return "/".join(parts[:-1]), parts[-1]


def _sort_key(value):
    # None sorts before everything else
    return (value is not None, value)


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed implementation of the document store contract."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, dict]] = {}

    # ===== READS =====

    async def get_document(self, path: str) -> Optional[dict]:
        collection, doc_id = _split(path)
        doc = self._collections.get(collection, {}).get(doc_id)
        if doc is None:
            return None
        return {"id": doc_id, **copy.deepcopy(doc)}

    async def query_collection(self, path: str, query: Optional[Query] = None) -> List[dict]:
        query = query or Query()
        docs = [
            {"id": doc_id, **copy.deepcopy(doc)}
            for doc_id, doc in self._collections.get(path.strip("/"), {}).items()
        ]

        for field, op, value in query.where:
            compare = _COMPARATORS[op]
            docs = [doc for doc in docs if compare(doc.get(field), value)]

        # Stable multi-key sort, last key first; ties broken by id
        tie_direction = query.order_by[-1][1] if query.order_by else "asc"
        docs.sort(key=lambda d: d["id"], reverse=tie_direction == "desc")
        for field, direction in reversed(query.order_by):
            docs.sort(key=lambda d, f=field: _sort_key(d.get(f)), reverse=direction == "desc")

        if query.start_after is not None:
            ids = [doc["id"] for doc in docs]
            if query.start_after not in ids:
                raise NotFound(f"Cursor document {query.start_after} not found")
            docs = docs[ids.index(query.start_after) + 1:]

        if query.limit is not None:
            docs = docs[:query.limit]
        return docs

    # ===== WRITES =====

    async def set_document(self, path: str, fields: dict, merge: bool = False) -> None:
        self._apply(self._collections, SetOp(path, fields, merge))

    async def update_document(self, path: str, fields: dict) -> None:
        self._apply(self._collections, UpdateOp(path, fields))

    async def delete_document(self, path: str) -> None:
        self._apply(self._collections, DeleteOp(path))

    async def atomic_increment(
        self,
        path: str,
        field: str,
        delta: Decimal,
        floor: Optional[Decimal] = None
    ) -> None:
        self._apply(self._collections, IncrementOp(path, field, delta, floor))

    async def batch_write(self, ops: Sequence[WriteOp]) -> None:
        staged = copy.deepcopy(self._collections)
        for op in ops:
            self._apply(staged, op)
        self._collections = staged

    @staticmethod
    def _apply(collections: Dict[str, Dict[str, dict]], op: WriteOp) -> None:
        collection, doc_id = _split(op.path)
        docs = collections.setdefault(collection, {})
        fields = getattr(op, "fields", None)
        if fields is not None:
            fields = {k: copy.deepcopy(v) for k, v in fields.items() if k != "id"}

        if isinstance(op, SetOp):
            if op.merge and doc_id in docs:
                docs[doc_id].update(fields)
            else:
                docs[doc_id] = fields
        elif isinstance(op, UpdateOp):
            if doc_id not in docs:
                raise NotFound(f"Document {op.path} not found")
            docs[doc_id].update(fields)
        elif isinstance(op, DeleteOp):
            docs.pop(doc_id, None)
        elif isinstance(op, IncrementOp):
            doc = docs.get(doc_id)
            if doc is None:
                raise NotFound(f"Document {op.path} not found")
            current = Decimal(doc.get(op.field) or 0)
            result = current + Decimal(op.delta)
            if op.floor is not None and op.delta < 0 and result < op.floor:
                raise InsufficientFunds(doc.get("name", doc_id), current)
            doc[op.field] = result
        else:
            raise TypeError(f"Unsupported write operation: {op!r}")
