from decimal import Decimal

import pytest

from pitaka.core.errors import InsufficientFunds, NotFound
from pitaka.db.memory import InMemoryDocumentStore
from pitaka.db.store import (
    DeleteOp,
    IncrementOp,
    Query,
    SetOp,
    UpdateOp,
    collection_path,
    document_path,
    new_id,
)

UID = "user-1"


def account_path(doc_id: str) -> str:
    return document_path(UID, "accounts", doc_id)


@pytest.mark.asyncio
async def test_set_get_update_delete():
    store = InMemoryDocumentStore()
    path = account_path("a1")

    await store.set_document(path, {"name": "Wallet", "balance": Decimal("10.00")})
    assert await store.get_document(path) == {"id": "a1", "name": "Wallet", "balance": Decimal("10.00")}

    await store.update_document(path, {"name": "Cash"})
    assert (await store.get_document(path))["name"] == "Cash"

    await store.delete_document(path)
    assert await store.get_document(path) is None


@pytest.mark.asyncio
async def test_set_with_merge_keeps_other_fields():
    store = InMemoryDocumentStore()
    path = document_path(UID, "accounts", "a1")
    await store.set_document(path, {"name": "Wallet", "type": "cash"})

    await store.set_document(path, {"name": "Purse"}, merge=True)

    assert await store.get_document(path) == {"id": "a1", "name": "Purse", "type": "cash"}


@pytest.mark.asyncio
async def test_update_missing_document_raises():
    store = InMemoryDocumentStore()
    with pytest.raises(NotFound):
        await store.update_document(account_path("missing"), {"name": "x"})


@pytest.mark.asyncio
async def test_returned_documents_are_copies():
    store = InMemoryDocumentStore()
    path = account_path("a1")
    await store.set_document(path, {"tags": ["a"]})

    doc = await store.get_document(path)
    doc["tags"].append("b")

    assert (await store.get_document(path))["tags"] == ["a"]


@pytest.mark.asyncio
async def test_atomic_increment_and_floor():
    store = InMemoryDocumentStore()
    path = account_path("a1")
    await store.set_document(path, {"name": "Wallet", "balance": Decimal("50.00")})

    await store.atomic_increment(path, "balance", Decimal("-50.00"), floor=Decimal("0"))
    assert (await store.get_document(path))["balance"] == Decimal("0.00")

    with pytest.raises(InsufficientFunds) as exc:
        await store.atomic_increment(path, "balance", Decimal("-0.01"), floor=Decimal("0"))
    assert exc.value.account_name == "Wallet"


@pytest.mark.asyncio
async def test_atomic_increment_missing_document():
    store = InMemoryDocumentStore()
    with pytest.raises(NotFound):
        await store.atomic_increment(account_path("nope"), "balance", Decimal("1"))


@pytest.mark.asyncio
async def test_batch_write_is_all_or_nothing():
    store = InMemoryDocumentStore()
    wallet = account_path("a1")
    await store.set_document(wallet, {"name": "Wallet", "balance": Decimal("20.00")})
    tx_path = document_path(UID, "transactions", "t1")

    with pytest.raises(InsufficientFunds):
        await store.batch_write([
            SetOp(tx_path, {"amount": Decimal("30.00")}),
            IncrementOp(wallet, "balance", Decimal("-30.00"), floor=Decimal("0")),
        ])

    assert await store.get_document(tx_path) is None
    assert (await store.get_document(wallet))["balance"] == Decimal("20.00")


@pytest.mark.asyncio
async def test_batch_write_applies_in_order():
    store = InMemoryDocumentStore()
    wallet = account_path("a1")

    await store.batch_write([
        SetOp(wallet, {"name": "Wallet", "balance": Decimal("0")}),
        IncrementOp(wallet, "balance", Decimal("100.00")),
        UpdateOp(wallet, {"name": "Main"}),
        DeleteOp(account_path("never-existed")),
    ])

    assert await store.get_document(wallet) == {"id": "a1", "name": "Main", "balance": Decimal("100.00")}


@pytest.mark.asyncio
async def test_query_filters_order_and_cursor():
    store = InMemoryDocumentStore()
    for doc_id, tx_type, amount in [("t1", "income", 5), ("t2", "expense", 7), ("t3", "income", 9), ("t4", "income", 3)]:
        await store.set_document(document_path(UID, "transactions", doc_id), {"type": tx_type, "amount": amount})
    path = collection_path(UID, "transactions")

    docs = await store.query_collection(path, Query(
        where=[("type", "==", "income")],
        order_by=[("amount", "desc")],
    ))
    assert [d["id"] for d in docs] == ["t3", "t1", "t4"]

    page = await store.query_collection(path, Query(
        where=[("type", "==", "income")],
        order_by=[("amount", "desc")],
        start_after="t3",
        limit=1,
    ))
    assert [d["id"] for d in page] == ["t1"]


@pytest.mark.asyncio
async def test_query_unknown_cursor_raises():
    store = InMemoryDocumentStore()
    with pytest.raises(NotFound):
        await store.query_collection(collection_path(UID, "transactions"), Query(start_after="ghost"))


@pytest.mark.asyncio
async def test_collections_are_isolated_per_user():
    store = InMemoryDocumentStore()
    await store.set_document(document_path("alice", "accounts", "a1"), {"name": "A"})
    await store.set_document(document_path("bob", "accounts", "b1"), {"name": "B"})

    docs = await store.query_collection(collection_path("alice", "accounts"))
    assert [d["id"] for d in docs] == ["a1"]


def test_new_id_is_object_id_hex():
    first, second = new_id(), new_id()
    assert len(first) == 24
    int(first, 16)
    assert first != second
