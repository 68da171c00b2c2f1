"""
Document store contract.

Documents live at slash-separated paths:

    users/{uid}
    users/{uid}/accounts/{id}
    users/{uid}/transactions/{id}
    users/{uid}/debts/{id}
    users/{uid}/paluwagans/{id}

A path with an even number of segments names a document; the path
without its last segment names the collection holding it. Documents are
plain dicts; the store adds an ``id`` key on the way out and strips it on
the way in.

Any backend (MongoDB, in-process) implements ``DocumentStore``. Services
only ever talk to this interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Literal, Optional, Sequence, Tuple, Union

from bson import ObjectId

USERS = "users"
ACCOUNTS = "accounts"
TRANSACTIONS = "transactions"
DEBTS = "debts"
PALUWAGANS = "paluwagans"

USER_COLLECTIONS = (ACCOUNTS, TRANSACTIONS, DEBTS, PALUWAGANS)

WhereOp = Literal["==", "!=", "<", "<=", ">", ">="]
Direction = Literal["asc", "desc"]


def new_id() -> str:
    """Collision-resistant document id."""
    return str(ObjectId())


def user_path(user_id: str) -> str:
    return f"{USERS}/{user_id}"


def collection_path(user_id: str, kind: str) -> str:
    if kind not in USER_COLLECTIONS:
        raise ValueError(f"Unknown collection: {kind}")
    return f"{USERS}/{user_id}/{kind}"


def document_path(user_id: str, kind: str, doc_id: str) -> str:
    return f"{collection_path(user_id, kind)}/{doc_id}"


@dataclass(frozen=True)
class DocumentRef:
    """Parsed document path."""
    collection: str
    doc_id: str
    user_id: Optional[str] = None


def parse_document_path(path: str) -> DocumentRef:
    parts = path.strip("/").split("/")
    if len(parts) == 2 and parts[0] == USERS:
        return DocumentRef(collection=USERS, doc_id=parts[1])
    if len(parts) == 4 and parts[0] == USERS and parts[2] in USER_COLLECTIONS:
        return DocumentRef(collection=parts[2], doc_id=parts[3], user_id=parts[1])
    raise ValueError(f"Not a document path: {path}")


def parse_collection_path(path: str) -> Tuple[str, Optional[str]]:
    """Return (collection, user_id) for a collection path."""
    parts = path.strip("/").split("/")
    if parts == [USERS]:
        return USERS, None
    if len(parts) == 3 and parts[0] == USERS and parts[2] in USER_COLLECTIONS:
        return parts[2], parts[1]
    raise ValueError(f"Not a collection path: {path}")


# ===== BATCH OPERATIONS =====

@dataclass(frozen=True)
class SetOp:
    path: str
    fields: dict
    merge: bool = False


@dataclass(frozen=True)
class UpdateOp:
    path: str
    fields: dict


@dataclass(frozen=True)
class DeleteOp:
    path: str


@dataclass(frozen=True)
class IncrementOp:
    """
    Server-side numeric increment.

    With ``floor`` set, the increment only applies while the result stays
    at or above it; otherwise the whole batch fails with InsufficientFunds.
    """
    path: str
    field: str
    delta: Decimal
    floor: Optional[Decimal] = None


WriteOp = Union[SetOp, UpdateOp, DeleteOp, IncrementOp]


@dataclass
class Query:
    where: List[Tuple[str, WhereOp, Any]] = field(default_factory=list)
    order_by: List[Tuple[str, Direction]] = field(default_factory=list)
    limit: Optional[int] = None
    start_after: Optional[str] = None  # document id of the last row of the previous page


class DocumentStore(ABC):
    """Abstract document database used by every repository."""

    @abstractmethod
    async def get_document(self, path: str) -> Optional[dict]:
        """Return the document at ``path`` or None if it does not exist."""

    @abstractmethod
    async def set_document(self, path: str, fields: dict, merge: bool = False) -> None:
        """Create or replace a document; ``merge`` keeps unspecified fields."""

    @abstractmethod
    async def update_document(self, path: str, fields: dict) -> None:
        """Update fields of an existing document. Raises NotFound if absent."""

    @abstractmethod
    async def delete_document(self, path: str) -> None:
        """Delete a document. Deleting a missing document is a no-op."""

    @abstractmethod
    async def query_collection(self, path: str, query: Optional[Query] = None) -> List[dict]:
        """Return an ordered page of documents from a collection."""

    @abstractmethod
    async def atomic_increment(
        self,
        path: str,
        field: str,
        delta: Decimal,
        floor: Optional[Decimal] = None
    ) -> None:
        """Race-free numeric increment. Raises NotFound if the document is absent."""

    @abstractmethod
    async def batch_write(self, ops: Sequence[WriteOp]) -> None:
        """Commit every operation or none of them."""

    async def close(self) -> None:
        """Release backend resources."""
        return None
