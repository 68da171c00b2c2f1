from typing import Optional

from pitaka.core.config import settings
from pitaka.db.memory import InMemoryDocumentStore
from pitaka.db.mongo import close_mongo_connection, connect_to_mongo
from pitaka.db.store import DocumentStore

_store: Optional[DocumentStore] = None


async def open_store() -> DocumentStore:
    """Create the configured document store."""
    global _store
    if settings.STORE_BACKEND == "memory":
        _store = InMemoryDocumentStore()
    else:
        _store = await connect_to_mongo()
    return _store


async def close_store() -> None:
    global _store
    if settings.STORE_BACKEND == "mongo":
        await close_mongo_connection()
    _store = None


async def get_store() -> DocumentStore:
    """Return the active document store."""
    if _store is None:
        return await open_store()
    return _store
