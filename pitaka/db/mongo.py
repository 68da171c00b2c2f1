from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional, Sequence

from bson.decimal128 import Decimal128
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from pitaka.core.config import settings
from pitaka.core.errors import InsufficientFunds, NotFound, StoreWriteFailure
from pitaka.core.logging import get_logger
from pitaka.db.store import (
    USER_COLLECTIONS,
    DeleteOp,
    DocumentStore,
    IncrementOp,
    Query,
    SetOp,
    UpdateOp,
    WriteOp,
    parse_collection_path,
    parse_document_path,
)

logger = get_logger(__name__)

_MONGO_OPERATORS = {
    "==": "$eq",
    "!=": "$ne",
    "<": "$lt",
    "<=": "$lte",
    ">": "$gt",
    ">=": "$gte",
}


def encode_value(value: Any) -> Any:
    """Convert Python values into BSON-storable ones."""
    if isinstance(value, Decimal):
        return Decimal128(value)
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


def decode_value(value: Any) -> Any:
    """Convert BSON values back into Python ones."""
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, dict):
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def _to_document(doc: dict) -> dict:
    doc = decode_value(doc)
    doc["id"] = str(doc.pop("_id"))
    doc.pop("user_id", None)
    return doc


class MongoDocumentStore(DocumentStore):
    """Document store backed by MongoDB through Motor."""

    def __init__(self, db: AsyncIOMotorDatabase, client: Optional[AsyncIOMotorClient] = None):
        self.db = db
        self.client = client if client is not None else db.client

    def _locate(self, path: str):
        ref = parse_document_path(path)
        selector = {"_id": ref.doc_id}
        if ref.user_id is not None:
            selector["user_id"] = ref.user_id
        return self.db[ref.collection], selector, ref

    def _encode_fields(self, fields: dict) -> dict:
        return {k: encode_value(v) for k, v in fields.items() if k not in ("id", "_id")}

    # ===== READS =====

    async def get_document(self, path: str) -> Optional[dict]:
        collection, selector, _ = self._locate(path)
        try:
            doc = await collection.find_one(selector)
        except PyMongoError as exc:
            raise StoreWriteFailure(f"Failed to read {path}") from exc
        if doc is None:
            return None
        return _to_document(doc)

    async def query_collection(self, path: str, query: Optional[Query] = None) -> List[dict]:
        query = query or Query()
        name, user_id = parse_collection_path(path)
        collection = self.db[name]

        clauses: list[dict] = []
        if user_id is not None:
            clauses.append({"user_id": user_id})
        for field, op, value in query.where:
            clauses.append({field: {_MONGO_OPERATORS[op]: encode_value(value)}})

        order = list(query.order_by)
        tie_direction = order[-1][1] if order else "asc"
        order.append(("_id", tie_direction))

        try:
            if query.start_after is not None:
                anchor_selector = {"_id": query.start_after}
                if user_id is not None:
                    anchor_selector["user_id"] = user_id
                anchor = await collection.find_one(anchor_selector)
                if anchor is None:
                    raise NotFound(f"Cursor document {query.start_after} not found")
                clauses.append(self._keyset_filter(order, anchor))

            selector = {"$and": clauses} if clauses else {}
            cursor = collection.find(selector).sort(
                [(f, DESCENDING if d == "desc" else ASCENDING) for f, d in order]
            )
            if query.limit is not None:
                cursor = cursor.limit(query.limit)
            docs = await cursor.to_list(None)
        except PyMongoError as exc:
            raise StoreWriteFailure(f"Failed to query {path}") from exc
        return [_to_document(doc) for doc in docs]

    @staticmethod
    def _keyset_filter(order: list, anchor: dict) -> dict:
        """Rows strictly after ``anchor`` in the given sort order."""
        branches = []
        for i, (field, direction) in enumerate(order):
            branch = {f: anchor.get(f) for f, _ in order[:i]}
            branch[field] = {"$lt" if direction == "desc" else "$gt": anchor.get(field)}
            branches.append(branch)
        return {"$or": branches}

    # ===== WRITES =====

    async def set_document(self, path: str, fields: dict, merge: bool = False) -> None:
        await self._run(SetOp(path, fields, merge))

    async def update_document(self, path: str, fields: dict) -> None:
        await self._run(UpdateOp(path, fields))

    async def delete_document(self, path: str) -> None:
        await self._run(DeleteOp(path))

    async def atomic_increment(
        self,
        path: str,
        field: str,
        delta: Decimal,
        floor: Optional[Decimal] = None
    ) -> None:
        await self._run(IncrementOp(path, field, delta, floor))

    async def batch_write(self, ops: Sequence[WriteOp]) -> None:
        if not ops:
            return
        try:
            async with await self.client.start_session() as session:
                async with session.start_transaction():
                    for op in ops:
                        await self._apply(op, session=session)
        except PyMongoError as exc:
            logger.error("batch_write_failed", operations=len(ops), error=str(exc))
            raise StoreWriteFailure("Failed to commit changes") from exc

    async def _run(self, op: WriteOp) -> None:
        try:
            await self._apply(op)
        except PyMongoError as exc:
            raise StoreWriteFailure(f"Failed to write {op.path}") from exc

    async def _apply(self, op: WriteOp, session=None) -> None:
        collection, selector, ref = self._locate(op.path)

        if isinstance(op, SetOp):
            fields = self._encode_fields(op.fields)
            if ref.user_id is not None:
                fields["user_id"] = ref.user_id
            if op.merge:
                await collection.update_one(selector, {"$set": fields}, upsert=True, session=session)
            else:
                await collection.replace_one(selector, fields, upsert=True, session=session)

        elif isinstance(op, UpdateOp):
            result = await collection.update_one(
                selector,
                {"$set": self._encode_fields(op.fields)},
                session=session
            )
            if result.matched_count == 0:
                raise NotFound(f"Document {op.path} not found")

        elif isinstance(op, DeleteOp):
            await collection.delete_one(selector, session=session)

        elif isinstance(op, IncrementOp):
            guarded = dict(selector)
            if op.floor is not None and op.delta < 0:
                guarded[op.field] = {"$gte": Decimal128(op.floor - op.delta)}
            result = await collection.update_one(
                guarded,
                {"$inc": {op.field: Decimal128(op.delta)}},
                session=session
            )
            if result.matched_count == 0:
                doc = await collection.find_one(selector, session=session)
                if doc is None:
                    raise NotFound(f"Document {op.path} not found")
                balance = decode_value(doc.get(op.field, Decimal("0")))
                raise InsufficientFunds(doc.get("name", ref.doc_id), balance)

        else:
            raise TypeError(f"Unsupported write operation: {op!r}")


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None
    store: MongoDocumentStore = None

mongodb = MongoDatabase()

async def connect_to_mongo() -> MongoDocumentStore:
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]
    mongodb.store = MongoDocumentStore(mongodb.db, mongodb.client)

    await create_indexes()
    logger.info("mongo_connected", database=settings.DATABASE_NAME)
    return mongodb.store

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
        logger.info("mongo_disconnected")

async def create_indexes():
    """Create database indexes."""
    for name in USER_COLLECTIONS:
        await mongodb.db[name].create_index("user_id")

    await mongodb.db["transactions"].create_index([("user_id", 1), ("date", -1), ("_id", -1)])
    await mongodb.db["transactions"].create_index([("user_id", 1), ("account_id", 1), ("date", -1)])
    await mongodb.db["transactions"].create_index([("user_id", 1), ("created_at", -1)])
    await mongodb.db["debts"].create_index([("user_id", 1), ("type", 1)])
    await mongodb.db["paluwagans"].create_index([("user_id", 1), ("created_at", -1)])
